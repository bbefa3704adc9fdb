"""Page readiness detection from DevTools lifecycle events.

A page is considered ready once it has been reported both interactive
("InteractiveTime") and network idle ("networkIdle"), in either order.
There is no timeout in here: the wait ends when both signals were seen,
when the caller cancels or its deadline expires, or when the execution
context closes underneath it.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LIFECYCLE_EVENT = "Page.lifecycleEvent"
INTERACTIVE_EVENT = "InteractiveTime"
NETWORK_IDLE_EVENT = "networkIdle"
NEW_DOCUMENT_EVENT = "init"


class ReadinessDetector:
    """Single-shot wait for a navigated page to become interactive and idle.

    The detector is armed before navigation is issued so no event can be
    missed, then bound to the navigation's frame and loader. Events seen in
    between are buffered and replayed on bind; events of other documents,
    such as the initial about:blank, are ignored.
    """

    def __init__(self, context):
        """Initialize readiness detector.

        Args:
            context: Execution context whose page is being navigated
        """
        self.context = context
        self.interactive_reached = False
        self.idle_reached = False
        self.frame_id: Optional[str] = None
        self.loader_id: Optional[str] = None
        self._bound = False
        self._buffered: List[Dict[str, Any]] = []
        self._future: Optional[asyncio.Future] = None
        self._subscribed = False

    @property
    def is_ready(self) -> bool:
        return self.interactive_reached and self.idle_reached

    def arm(self) -> None:
        """Start listening for lifecycle events."""
        if self._future is not None:
            return
        self._future = asyncio.get_running_loop().create_future()
        self.context.on(LIFECYCLE_EVENT, self._on_lifecycle_event)
        self._subscribed = True
        self.context.watch(self._future)

    def bind(self, frame_id: Optional[str] = None, loader_id: Optional[str] = None) -> None:
        """Attach to the navigation just issued and replay buffered events.

        Args:
            frame_id: Main frame id returned by Page.navigate
            loader_id: Loader id returned by Page.navigate; None accepts any document
        """
        self.frame_id = frame_id
        self.loader_id = loader_id
        self._bound = True
        buffered, self._buffered = self._buffered, []
        for event in buffered:
            self._handle(event)

    def _on_lifecycle_event(self, event: Dict[str, Any]) -> None:
        if not self._bound:
            self._buffered.append(event)
            return
        self._handle(event)

    def _handle(self, event: Dict[str, Any]) -> None:
        if self._future is None or self._future.done():
            return

        name = event.get("name")
        loader_id = event.get("loaderId")

        if self.loader_id and loader_id != self.loader_id:
            # A new document in the main frame (client side redirect) replaces the tracked one.
            if name == NEW_DOCUMENT_EVENT and self.frame_id and event.get("frameId") == self.frame_id:
                logger.debug(f"Main frame switched to loader {loader_id}")
                self.loader_id = loader_id
                self.interactive_reached = False
                self.idle_reached = False
            return

        if name == INTERACTIVE_EVENT:
            self.interactive_reached = True
        elif name == NETWORK_IDLE_EVENT:
            self.idle_reached = True

        if self.is_ready:
            self._future.set_result(None)
            self._unsubscribe()

    async def wait(self) -> None:
        """Block until the page is ready.

        Raises:
            CancellationError: If the execution context closes first
            RuntimeError: If the detector was never armed
        """
        if self._future is None:
            raise RuntimeError("Readiness detector not armed. Call arm() first.")
        if not self._bound:
            self.bind()

        try:
            await self._future
        finally:
            self._unsubscribe()

    def disarm(self) -> None:
        """Stop listening; a pending wait is cancelled."""
        self._unsubscribe()
        if self._future is None:
            return
        if not self._future.done():
            self._future.cancel()
        elif not self._future.cancelled():
            # Mark a close-triggered failure as retrieved when nobody waited on it.
            self._future.exception()

    def _unsubscribe(self) -> None:
        if not self._subscribed:
            return
        self._subscribed = False
        self.context.remove_listener(LIFECYCLE_EVENT, self._on_lifecycle_event)
        if self._future is not None:
            self.context.unwatch(self._future)
