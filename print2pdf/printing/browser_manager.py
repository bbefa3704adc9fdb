"""Lifecycle management of the shared Chromium process.

This module provides the BrowserManager class, which owns the single browser
process shared by every print operation, and ExecutionContext, the isolated
per-request browser context (one page plus a DevTools protocol session)
derived from it. Closing an execution context never affects the shared
browser; only BrowserManager.shutdown() does.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Set

from playwright.async_api import (
    Browser,
    BrowserContext,
    CDPSession,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from .config import BrowserSettings
from .exceptions import BrowserNotStartedError, CancellationError, PrintError, ProtocolError, StartupError
from .utils import elapsed

logger = logging.getLogger(__name__)


class ExecutionContext:
    """Isolated browser context used by exactly one print operation."""

    def __init__(self, browser_context: BrowserContext):
        """Initialize execution context.

        Args:
            browser_context: Fresh Playwright browser context owned by this object
        """
        self.browser_context = browser_context
        self.page: Optional[Page] = None
        self.session: Optional[CDPSession] = None
        self._closed = False
        self._crashed = False
        self._waiters: List[asyncio.Future] = []
        browser_context.on("close", self._on_close)

    async def open(self) -> None:
        """Create the page and attach a protocol session with lifecycle events on."""
        try:
            self.page = await self.browser_context.new_page()
            self.session = await self.browser_context.new_cdp_session(self.page)
        except PlaywrightError as e:
            raise ProtocolError(f"failed to open execution context: {e}") from e

        await self.send("Page.enable")
        await self.send("Page.setLifecycleEventsEnabled", {"enabled": True})

    @property
    def is_closed(self) -> bool:
        """Whether this context was closed or torn down with the browser."""
        return self._closed

    @property
    def crashed(self) -> bool:
        """Whether the browser closed this context without close() being called."""
        return self._crashed

    def _closed_error(self, message: str, method: Optional[str] = None) -> PrintError:
        if self._crashed:
            return ProtocolError(f"browser went away: {message}", method=method)
        return CancellationError(message)

    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a DevTools protocol command in this context.

        Raises:
            CancellationError: If close() was called before or during the call
            ProtocolError: If the browser reports an error or went away
        """
        if self._closed:
            raise self._closed_error(f"execution context closed before {method}", method)
        if self.session is None:
            raise ProtocolError("protocol session not attached", method=method)

        try:
            return await self.session.send(method, params or {})
        except PlaywrightError as e:
            if self._closed:
                raise self._closed_error(f"execution context closed during {method}", method) from e
            raise ProtocolError(f"{method} failed: {e}", method=method) from e

    def on(self, event: str, handler: Callable[[Dict[str, Any]], None]) -> None:
        """Subscribe to a protocol event of this context's page."""
        if self.session is None:
            raise ProtocolError("protocol session not attached")
        self.session.on(event, handler)

    def remove_listener(self, event: str, handler: Callable[[Dict[str, Any]], None]) -> None:
        """Unsubscribe a handler registered with on()."""
        if self.session is not None:
            self.session.remove_listener(event, handler)

    def watch(self, future: asyncio.Future) -> None:
        """Fail the future once this context closes.

        The failure is CancellationError after close(), ProtocolError when the
        browser closed the context on its own.
        """
        if self._closed:
            if not future.done():
                future.set_exception(self._closed_error("execution context closed"))
            return
        self._waiters.append(future)

    def unwatch(self, future: asyncio.Future) -> None:
        """Stop watching a future registered with watch()."""
        if future in self._waiters:
            self._waiters.remove(future)

    def _on_close(self, *_: Any) -> None:
        # Fired by Playwright; after close() this is a no-op.
        self.mark_crashed()

    def mark_crashed(self) -> None:
        """Fail this context because the browser closed it or exited."""
        if not self._closed:
            logger.error("Execution context closed by the browser")
        self._mark_closed(crashed=True)

    def _mark_closed(self, crashed: bool) -> None:
        if self._closed:
            return
        self._closed = True
        self._crashed = crashed
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_exception(self._closed_error("execution context closed"))

    async def close(self) -> None:
        """Close the browser context; safe to call more than once."""
        if self._closed:
            return
        self._mark_closed(crashed=False)

        try:
            await self.browser_context.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing execution context: {e}")


class BrowserManager:
    """Owner of the single browser process shared by all print operations."""

    def __init__(self, settings: Optional[BrowserSettings] = None):
        """Initialize browser manager.

        Args:
            settings: Browser launch settings, read from the environment if omitted
        """
        self.settings = settings or BrowserSettings.from_environment()
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self._start_lock = asyncio.Lock()
        self._shutting_down = False
        self._contexts: Set[ExecutionContext] = set()

    async def start(self) -> None:
        """Launch the browser and force its initialization.

        Idempotent: returns immediately when the browser is already running.
        Concurrent callers are serialized so the browser is launched once.

        Raises:
            StartupError: If the executable is missing or the browser fails to start
        """
        async with self._start_lock:
            if self.is_running:
                logger.debug("Browser already running")
                return

            executable_path = self.settings.executable_path
            if not executable_path:
                raise StartupError("missing required environment variable CHROMIUM_PATH")
            if not Path(executable_path).is_file():
                raise StartupError(f"Chromium executable not found: {executable_path}")

            logger.info(f"Starting browser: {executable_path}")
            self._shutting_down = False

            with elapsed("Browser startup", logger):
                try:
                    self.playwright = await async_playwright().start()
                    self.browser = await self.playwright.chromium.launch(
                        **self.settings.to_launch_options()
                    )
                    self.browser.on("disconnected", self._on_disconnected)
                    await self._navigate_blank()
                except Exception as e:
                    logger.error(f"Error initializing browser: {e}")
                    await self._release()
                    raise StartupError(f"error initializing browser: {e}") from e

            logger.info(f"Browser started (version {self.browser.version})")

    async def _navigate_blank(self) -> None:
        """Open a throwaway page on about:blank so the browser is fully up."""
        context = await self.browser.new_context()
        try:
            page = await context.new_page()
            await page.goto("about:blank", timeout=self.settings.startup_timeout_ms)
        finally:
            await context.close()

    def _on_disconnected(self, *_: Any) -> None:
        if self._shutting_down:
            return
        logger.error("Browser process disconnected unexpectedly")
        for context in list(self._contexts):
            context.mark_crashed()

    @property
    def is_running(self) -> bool:
        """Check if the shared browser is up and usable."""
        if self.browser is None or self._shutting_down:
            return False
        return self.browser.is_connected()

    @property
    def context_count(self) -> int:
        """Number of execution contexts currently open."""
        return len(self._contexts)

    @asynccontextmanager
    async def execution_context(self) -> AsyncGenerator[ExecutionContext, None]:
        """Context manager for one isolated execution context.

        Yields:
            Execution context that is closed on every exit path

        Raises:
            BrowserNotStartedError: If start() has not completed
        """
        if not self.is_running:
            raise BrowserNotStartedError()

        # A context created after the caller was cancelled must still be closed.
        creation = asyncio.ensure_future(self.browser.new_context())
        try:
            browser_context = await asyncio.shield(creation)
        except asyncio.CancelledError:
            await self._discard_context(creation)
            raise
        except PlaywrightError as e:
            raise ProtocolError(f"failed to create browser context: {e}") from e

        execution_context = ExecutionContext(browser_context)
        self._contexts.add(execution_context)
        logger.debug(f"Opened execution context (open: {self.context_count})")

        try:
            await execution_context.open()
            yield execution_context
        finally:
            self._contexts.discard(execution_context)
            await execution_context.close()
            logger.debug(f"Closed execution context (open: {self.context_count})")

    async def _discard_context(self, creation: "asyncio.Future[BrowserContext]") -> None:
        """Close a browser context whose requester was cancelled mid-creation."""
        try:
            browser_context = await creation
            await browser_context.close()
        except PlaywrightError as e:
            logger.warning(f"Error discarding abandoned browser context: {e}")
        else:
            logger.debug("Closed browser context created after cancellation")

    async def shutdown(self) -> None:
        """Close the browser process and every context derived from it."""
        if self.browser is None and self.playwright is None:
            return

        logger.info("Shutting down browser")
        self._shutting_down = True
        await self._release()
        logger.info("Browser shut down")

    async def _release(self) -> None:
        try:
            if self.browser is not None:
                await self.browser.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing browser: {e}")
        finally:
            self.browser = None

        try:
            if self.playwright is not None:
                await self.playwright.stop()
        except PlaywrightError as e:
            logger.warning(f"Error stopping Playwright: {e}")
        finally:
            self.playwright = None

    def __repr__(self) -> str:
        return (
            f"BrowserManager(executable={self.settings.executable_path}, "
            f"running={self.is_running}, contexts={self.context_count})"
        )


# Process-wide manager shared by all print operations
_browser_manager: Optional[BrowserManager] = None


def get_browser_manager(settings: Optional[BrowserSettings] = None) -> BrowserManager:
    """Get the process-wide browser manager.

    Args:
        settings: Browser settings (only used on first call)

    Returns:
        Global BrowserManager instance
    """
    global _browser_manager
    if _browser_manager is None:
        _browser_manager = BrowserManager(settings)
    return _browser_manager
