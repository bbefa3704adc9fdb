"""Exception hierarchy for the print2pdf printing core.

Every error raised by the core derives from PrintError, and callers tell the
kinds apart by type only. ValidationError is the one kind caused by bad
caller input; everything else is an infrastructure failure or a
cancellation.
"""

from typing import Optional


class PrintError(Exception):
    """Base error for the printing core."""

    def __init__(
        self,
        message: str = "PDF printing failed",
        error_code: str = "print_failed",
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(PrintError):
    """Raised when a caller-supplied print parameter is invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(
            message=message,
            error_code="validation_error",
            details={"field": field} if field else {}
        )


class StartupError(PrintError):
    """Raised when the shared browser cannot be launched or initialized."""

    def __init__(self, message: str = "Browser failed to start"):
        super().__init__(message=message, error_code="startup_failed")


class BrowserNotStartedError(PrintError):
    """Raised when printing is attempted before the browser was started."""

    def __init__(self, message: str = "Browser not started. Call start() first."):
        super().__init__(message=message, error_code="browser_not_started")


class ProtocolError(PrintError):
    """Raised when a DevTools protocol round trip fails."""

    def __init__(self, message: str, method: Optional[str] = None, details: Optional[dict] = None):
        self.method = method
        super().__init__(message=message, error_code="protocol_error", details=details)


class CancellationError(PrintError):
    """Raised when a print is abandoned before completion.

    Covers an expired caller deadline and an execution context closed by
    its owner underneath a pending wait or stream read. A context the
    browser closed on its own is a ProtocolError.
    """

    def __init__(self, message: str = "Print operation cancelled"):
        super().__init__(message=message, error_code="cancelled")


class SinkError(PrintError):
    """Raised when a sink fails to store or forward the PDF stream."""

    def __init__(self, message: str, destination: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="sink_failed",
            details={"destination": destination} if destination else {}
        )
