"""Unit tests for print orchestration."""

import asyncio
from typing import List

import pytest

from print2pdf.printing.exceptions import (
    BrowserNotStartedError,
    CancellationError,
    ProtocolError,
    SinkError,
    ValidationError,
)
from print2pdf.printing.models import PrintRequest
from print2pdf.printing.printer import PDFPrinter
from print2pdf.printing.sinks import PDFSink, StreamSink


class CollectingSink(PDFSink):
    """Sink keeping the streamed bytes in memory."""

    def __init__(self):
        self.chunks: List[bytes] = []

    async def handle(self, reader) -> str:
        async for chunk in reader:
            self.chunks.append(chunk)
        return "memory://collected"

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)


class FailingSink(PDFSink):
    """Sink failing after the first chunk."""

    async def handle(self, reader) -> str:
        await reader.read(16)
        raise SinkError("destination unavailable", destination="nowhere")


def make_request(**kwargs) -> PrintRequest:
    values = {"url": "https://example.com/report", "file_name": "report.pdf"}
    values.update(kwargs)
    return PrintRequest(**values)


class TestPDFPrinter:
    """Tests for PDFPrinter."""

    @pytest.mark.asyncio
    async def test_print_streams_document(self, fake_browser, sample_pdf):
        """Test a successful print delivers the whole document to the sink."""
        sink = CollectingSink()

        destination = await PDFPrinter(fake_browser).print_pdf(make_request(), sink)

        assert destination == "memory://collected"
        assert sink.data == sample_pdf

        context = fake_browser.contexts[0]
        assert context.is_closed is True
        assert context.methods()[:4] == [
            "Page.navigate",
            "Emulation.setEmulatedMedia",
            "Page.printToPDF",
            "IO.read",
        ]
        assert context.methods()[-1] == "IO.close"
        assert context.listener_count() == 0

    @pytest.mark.asyncio
    async def test_print_command_arguments(self, fake_browser):
        """Test resolved parameters reach the browser."""
        request = make_request(format="Letter", layout="landscape", media="screen", scale=1.5)

        await PDFPrinter(fake_browser).print_pdf(request, CollectingSink())

        context = fake_browser.contexts[0]
        assert context.params_of("Page.navigate") == [{"url": "https://example.com/report"}]
        assert context.params_of("Emulation.setEmulatedMedia") == [{"media": "screen"}]

        print_params = context.params_of("Page.printToPDF")[0]
        assert print_params["paperWidth"] == 8.5
        assert print_params["landscape"] is True
        assert print_params["scale"] == 1.5
        assert print_params["transferMode"] == "ReturnAsStream"

    @pytest.mark.asyncio
    async def test_cookies_set_before_navigation(self, fake_browser):
        """Test forwarded cookies are injected before the page loads."""
        request = make_request(cookies={"session": "abc"})

        await PDFPrinter(fake_browser).print_pdf(request, CollectingSink())

        methods = fake_browser.contexts[0].methods()
        assert methods.index("Network.setCookie") < methods.index("Page.navigate")

    @pytest.mark.asyncio
    async def test_browser_not_started(self, fake_browser):
        """Test printing before start fails without opening a context."""
        fake_browser.running = False

        with pytest.raises(BrowserNotStartedError):
            await PDFPrinter(fake_browser).print_pdf(make_request(), CollectingSink())

        assert fake_browser.contexts == []

    @pytest.mark.asyncio
    async def test_invalid_parameters_fail_before_browser_work(self, fake_browser):
        """Test validation errors happen before any context is opened."""
        with pytest.raises(ValidationError):
            await PDFPrinter(fake_browser).print_pdf(make_request(format="Poster"), CollectingSink())

        assert fake_browser.contexts == []

    @pytest.mark.asyncio
    async def test_cookies_for_hostless_url_fail_before_browser_work(self, fake_browser):
        """Test cookies for a URL without host are refused before a context is opened."""
        request = make_request(url="about:blank", cookies={"session": "abc"})

        with pytest.raises(ValidationError) as exc_info:
            await PDFPrinter(fake_browser).print_pdf(request, CollectingSink())

        assert exc_info.value.field == "url"
        assert fake_browser.contexts == []

    @pytest.mark.asyncio
    async def test_navigation_error(self, fake_browser, printable_context):
        """Test a navigation error text fails the print and closes the context."""
        context = printable_context()
        context.handlers["Page.navigate"] = {
            "frameId": "frame-1",
            "loaderId": "loader-1",
            "errorText": "net::ERR_NAME_NOT_RESOLVED",
        }
        fake_browser.context_factory = lambda: context

        with pytest.raises(ProtocolError) as exc_info:
            await PDFPrinter(fake_browser).print_pdf(make_request(), CollectingSink())

        assert "net::ERR_NAME_NOT_RESOLVED" in exc_info.value.message
        assert context.is_closed is True
        assert context.listener_count() == 0
        assert "Page.printToPDF" not in context.methods()

    @pytest.mark.asyncio
    async def test_missing_stream_handle(self, fake_browser, printable_context):
        """Test a print result without stream handle is a protocol error."""
        context = printable_context()
        context.handlers["Page.printToPDF"] = {}
        fake_browser.context_factory = lambda: context

        with pytest.raises(ProtocolError):
            await PDFPrinter(fake_browser).print_pdf(make_request(), CollectingSink())

        assert context.is_closed is True

    @pytest.mark.asyncio
    async def test_sink_failure_releases_stream(self, fake_browser):
        """Test a failing sink still releases the stream and the context."""
        with pytest.raises(SinkError):
            await PDFPrinter(fake_browser).print_pdf(make_request(), FailingSink())

        context = fake_browser.contexts[0]
        assert context.params_of("IO.close") == [{"handle": "stream-1"}]
        assert context.is_closed is True

    @pytest.mark.asyncio
    async def test_timeout_cancels_operation(self, fake_browser, printable_context):
        """Test the deadline ends a print that never becomes ready."""
        context = printable_context(fire_lifecycle=False)
        fake_browser.context_factory = lambda: context

        with pytest.raises(CancellationError):
            await PDFPrinter(fake_browser).print_pdf(make_request(), CollectingSink(), timeout=0.05)

        assert context.is_closed is True
        assert context.listener_count() == 0
        assert "Page.printToPDF" not in context.methods()

    @pytest.mark.asyncio
    async def test_cancelled_print_leaves_others_running(self, fake_browser, printable_context, sample_pdf):
        """Test cancelling one print does not affect a concurrent one."""
        stuck = printable_context(fire_lifecycle=False)
        healthy = printable_context()
        contexts = iter([stuck, healthy])
        fake_browser.context_factory = lambda: next(contexts)
        printer = PDFPrinter(fake_browser)

        stuck_task = asyncio.create_task(printer.print_pdf(make_request(), CollectingSink()))
        await asyncio.sleep(0.01)

        sink = CollectingSink()
        healthy_task = asyncio.create_task(printer.print_pdf(make_request(), sink))
        stuck_task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await stuck_task
        await asyncio.wait_for(healthy_task, 1)

        assert stuck.is_closed is True
        assert sink.data == sample_pdf
        assert fake_browser.is_running is True

    @pytest.mark.asyncio
    async def test_stream_sink(self, fake_browser, sample_pdf):
        """Test printing into an async writer."""
        received = bytearray()

        async def write(chunk: bytes) -> None:
            received.extend(chunk)

        destination = await PDFPrinter(fake_browser).print_pdf(make_request(), StreamSink(write))

        assert destination == ""
        assert bytes(received) == sample_pdf
