"""Print orchestration: one web page in, one PDF stream out.

PDFPrinter sequences a print operation inside its own execution context:
cookie injection, navigation, readiness wait, print command and streaming
into a sink. The execution context and the PDF stream handle are released
on every exit path, and nothing an operation does reaches the shared
browser.
"""

import asyncio
import logging
from typing import Optional

from .browser_manager import BrowserManager, ExecutionContext, get_browser_manager
from .cookies import cookie_host, inject_cookies
from .exceptions import BrowserNotStartedError, CancellationError, ProtocolError
from .models import PrintParams, PrintRequest
from .params import resolve_media, resolve_print_params
from .readiness import ReadinessDetector
from .sinks import PDFSink
from .stream_reader import PDFStreamReader
from .utils import elapsed

logger = logging.getLogger(__name__)


class PDFPrinter:
    """Prints web pages to PDF using the shared browser."""

    def __init__(self, browser: BrowserManager):
        """Initialize printer.

        Args:
            browser: Started (or soon to be started) browser manager
        """
        self.browser = browser

    async def print_pdf(
        self,
        request: PrintRequest,
        sink: PDFSink,
        *,
        timeout: Optional[float] = None
    ) -> str:
        """Print the requested page and hand the PDF stream to the sink.

        Args:
            request: Print parameters
            sink: Consumer of the PDF byte stream
            timeout: Deadline in seconds for the browser work, None for no deadline

        Returns:
            Destination identifier reported by the sink

        Raises:
            BrowserNotStartedError: If the browser has not been started
            ValidationError: If a request parameter is invalid
            CancellationError: If the deadline expires or the context closes
            ProtocolError: If a browser round trip fails
        """
        if not self.browser.is_running:
            raise BrowserNotStartedError("must start the browser before printing a PDF")

        params = resolve_print_params(request)
        media = resolve_media(request)
        if request.cookies:
            cookie_host(request.url)

        with elapsed("Total time to print PDF", logger):
            try:
                return await asyncio.wait_for(self._print(request, params, media, sink), timeout)
            except asyncio.TimeoutError as e:
                raise CancellationError(f"print of {request.url} timed out after {timeout}s") from e

    async def _print(self, request: PrintRequest, params: PrintParams, media: str, sink: PDFSink) -> str:
        async with self.browser.execution_context() as context:
            with elapsed(f"Forward cookies ({sorted(request.cookies)})", logger):
                await inject_cookies(context, request.url, request.cookies)

            with elapsed(f"Navigate to {request.url}", logger):
                await self._navigate(context, request.url)

            with elapsed("Export as PDF", logger):
                await context.send("Emulation.setEmulatedMedia", {"media": media})
                result = await context.send("Page.printToPDF", params.to_cdp_params())
                handle = result.get("stream")
                if not handle:
                    raise ProtocolError("print command returned no stream handle", method="Page.printToPDF")

                reader = PDFStreamReader(context, handle)
                try:
                    destination = await sink.handle(reader)
                except BaseException:
                    await reader.abort()
                    raise
                await reader.close()

        return destination

    async def _navigate(self, context: ExecutionContext, url: str) -> None:
        """Navigate the context's page and wait until it is interactive and idle."""
        detector = ReadinessDetector(context)
        detector.arm()
        try:
            result = await context.send("Page.navigate", {"url": url})
            error_text = result.get("errorText")
            if error_text:
                raise ProtocolError(f"navigation to {url} failed: {error_text}", method="Page.navigate")

            detector.bind(result.get("frameId"), result.get("loaderId"))
            await detector.wait()
        finally:
            detector.disarm()


async def start_browser() -> None:
    """Start the process-wide browser; must be called once before printing."""
    await get_browser_manager().start()


def is_running() -> bool:
    """Check whether the process-wide browser is running."""
    return get_browser_manager().is_running


async def print_pdf(request: PrintRequest, sink: PDFSink, timeout: Optional[float] = None) -> str:
    """Print a web page with the process-wide browser.

    Cancelling the calling task closes only this print's execution context.
    """
    return await PDFPrinter(get_browser_manager()).print_pdf(request, sink, timeout=timeout)


async def shutdown_browser() -> None:
    """Close the process-wide browser. Intended for process shutdown only."""
    await get_browser_manager().shutdown()
