"""PDF printing core for print2pdf.

This package drives a shared headless Chromium through the DevTools
protocol to print web pages to PDF, streaming the result into a sink.

Main Components:
- Browser Manager: shared browser process and per-request execution contexts
- Parameter Resolver: request parameters to print command arguments
- Cookie Injector: forwarded cookies set before navigation
- Readiness Detector: waits for "InteractiveTime" and "networkIdle"
- Stream Reader: chunked, base64 protocol stream as a byte source
- Printer: orchestration of one print operation
- Sinks: file, stream and S3 destinations

Usage:
    from print2pdf.printing import BrowserManager, PDFPrinter, FileSink, PrintRequest

    manager = BrowserManager()
    await manager.start()
    path = await PDFPrinter(manager).print_pdf(
        PrintRequest(url="https://example.com", file_name="example.pdf"),
        FileSink("example.pdf"),
    )
"""

__version__ = "1.0.0"

__all__ = [
    # Data models
    "PrintRequest",
    "PrintMargins",
    "PrintParams",
    "PrintFormat",
    "FORMATS",

    # Errors
    "PrintError",
    "ValidationError",
    "StartupError",
    "BrowserNotStartedError",
    "ProtocolError",
    "CancellationError",
    "SinkError",

    # Main components
    "BrowserManager",
    "BrowserSettings",
    "ExecutionContext",
    "PDFPrinter",
    "ReadinessDetector",
    "PDFStreamReader",
    "ReadResult",
    "resolve_print_params",
    "resolve_media",
    "inject_cookies",

    # Sinks
    "PDFSink",
    "FileSink",
    "StreamSink",
    "S3Sink",

    # Process-wide API
    "get_browser_manager",
    "start_browser",
    "is_running",
    "print_pdf",
    "shutdown_browser",
]

from .models import PrintRequest, PrintMargins, PrintParams
from .formats import PrintFormat, FORMATS
from .exceptions import (
    PrintError,
    ValidationError,
    StartupError,
    BrowserNotStartedError,
    ProtocolError,
    CancellationError,
    SinkError,
)
from .config import BrowserSettings
from .browser_manager import BrowserManager, ExecutionContext, get_browser_manager
from .params import resolve_print_params, resolve_media
from .cookies import inject_cookies
from .readiness import ReadinessDetector
from .stream_reader import PDFStreamReader, ReadResult
from .sinks import PDFSink, FileSink, StreamSink, S3Sink
from .printer import PDFPrinter, start_browser, is_running, print_pdf, shutdown_browser
