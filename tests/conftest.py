"""Shared test fixtures and configuration for print2pdf tests."""

import asyncio
import base64
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from print2pdf.printing.exceptions import BrowserNotStartedError, CancellationError
from print2pdf.printing.readiness import LIFECYCLE_EVENT

SAMPLE_PDF = b"%PDF-1.4\n" + bytes(range(256)) * 8 + b"\n%%EOF\n"


class FakeExecutionContext:
    """In-memory stand-in for an execution context and its protocol session.

    Handlers map a protocol method to either a result dict or a callable
    taking the params (sync or async) and returning the result.
    """

    def __init__(self, handlers: Optional[Dict[str, Any]] = None):
        self.handlers: Dict[str, Any] = dict(handlers or {})
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.listeners: Dict[str, List[Callable]] = {}
        self.waiters: List[asyncio.Future] = []
        self.is_closed = False
        self.close_calls = 0

    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self.is_closed:
            raise CancellationError(f"execution context closed before {method}")
        params = params or {}
        self.calls.append((method, params))

        handler = self.handlers.get(method)
        if handler is None:
            return {}
        if callable(handler):
            result = handler(params)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        return handler

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    def params_of(self, method: str) -> List[Dict[str, Any]]:
        return [params for called, params in self.calls if called == method]

    def on(self, event: str, handler: Callable) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable) -> None:
        self.listeners.get(event, []).remove(handler)

    def listener_count(self, event: str = LIFECYCLE_EVENT) -> int:
        return len(self.listeners.get(event, []))

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        for handler in list(self.listeners.get(event, [])):
            handler(payload)

    def lifecycle(self, name: str, loader_id: str = "loader-1", frame_id: str = "frame-1") -> None:
        self.emit(LIFECYCLE_EVENT, {"name": name, "loaderId": loader_id, "frameId": frame_id})

    def watch(self, future: asyncio.Future) -> None:
        if self.is_closed:
            if not future.done():
                future.set_exception(CancellationError("execution context closed"))
            return
        self.waiters.append(future)

    def unwatch(self, future: asyncio.Future) -> None:
        if future in self.waiters:
            self.waiters.remove(future)

    async def close(self) -> None:
        self.close_calls += 1
        if self.is_closed:
            return
        self.is_closed = True
        waiters, self.waiters = self.waiters, []
        for future in waiters:
            if not future.done():
                future.set_exception(CancellationError("execution context closed"))


def stream_read_handler(data: bytes, max_chunk: Optional[int] = None) -> Callable:
    """IO.read handler serving data in base64 chunks, honouring offset and size."""

    def handler(params: Dict[str, Any]) -> Dict[str, Any]:
        offset = params["offset"]
        size = params["size"]
        if max_chunk is not None:
            size = min(size, max_chunk)
        chunk = data[offset:offset + size]
        return {
            "data": base64.b64encode(chunk).decode("ascii"),
            "base64Encoded": True,
            "eof": offset + len(chunk) >= len(data),
        }

    return handler


def make_printable_context(
    pdf: bytes = SAMPLE_PDF,
    max_chunk: Optional[int] = None,
    fire_lifecycle: bool = True
) -> FakeExecutionContext:
    """Fake context whose page loads, becomes ready and prints the given PDF."""
    context = FakeExecutionContext()

    def navigate(params: Dict[str, Any]) -> Dict[str, Any]:
        if fire_lifecycle:
            loop = asyncio.get_running_loop()
            loop.call_soon(context.lifecycle, "init")
            loop.call_soon(context.lifecycle, "InteractiveTime")
            loop.call_soon(context.lifecycle, "networkIdle")
        return {"frameId": "frame-1", "loaderId": "loader-1"}

    context.handlers.update({
        "Network.setCookie": {"success": True},
        "Page.navigate": navigate,
        "Emulation.setEmulatedMedia": {},
        "Page.printToPDF": {"stream": "stream-1"},
        "IO.read": stream_read_handler(pdf, max_chunk),
        "IO.close": {},
    })
    return context


class FakeBrowserManager:
    """Browser manager handing out fake execution contexts."""

    def __init__(self, context_factory: Callable[[], FakeExecutionContext] = make_printable_context):
        self.context_factory = context_factory
        self.contexts: List[FakeExecutionContext] = []
        self.running = True
        self.start_calls = 0
        self.shutdown_calls = 0

    @property
    def is_running(self) -> bool:
        return self.running

    async def start(self) -> None:
        self.start_calls += 1
        self.running = True

    async def shutdown(self) -> None:
        self.shutdown_calls += 1
        self.running = False

    @asynccontextmanager
    async def execution_context(self):
        if not self.running:
            raise BrowserNotStartedError()
        context = self.context_factory()
        self.contexts.append(context)
        try:
            yield context
        finally:
            await context.close()


@pytest.fixture
def fake_context():
    """Bare fake execution context with no protocol handlers."""
    return FakeExecutionContext()


@pytest.fixture
def printable_context():
    """Factory for fake contexts that load and print a PDF."""
    return make_printable_context


@pytest.fixture
def stream_handler():
    """Factory for IO.read handlers over a byte string."""
    return stream_read_handler


@pytest.fixture
def fake_browser():
    """Running fake browser manager."""
    return FakeBrowserManager()


@pytest.fixture
def sample_pdf():
    """Bytes of the PDF served by printable contexts."""
    return SAMPLE_PDF
