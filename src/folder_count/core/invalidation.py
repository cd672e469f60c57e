"""Change-driven invalidation of previously computed results.

This module turns filesystem change events into staleness announcements:
- Each event announces its path, the parent, and the registered root
- Announcements are deduplicated within one event
- Events are processed one at a time in arrival order
- Re-entrant submissions made while notifying are queued, not nested
- An explicit open/close lifecycle owns the change source subscription

State transitions:
    IDLE → NOTIFYING: an event is being announced
    NOTIFYING → IDLE: all pending events announced
    * → CLOSED: close() called, announcements become no-ops
"""

import asyncio
import logging
import uuid
from collections import deque
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import Self

from folder_count.types.aliases import ChangeSource, StaleCallback
from folder_count.types.models import StalenessEvent
from folder_count.utils.logging import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)


class ControllerState(Enum):
    """Lifecycle states of the invalidation controller."""

    IDLE = "idle"
    NOTIFYING = "notifying"
    CLOSED = "closed"


class InvalidationController:
    """Announces stale paths to subscribers as change events arrive.

    Subscribers receive one call per stale path. A subscriber that raises is
    logged and does not prevent delivery to the others.

    Attributes:
        root: Traversal root announced with every event, if registered
        state: Current lifecycle state
    """

    def __init__(self, root: Path | None = None) -> None:
        """Initialize the controller in IDLE state.

        Args:
            root: Optional traversal root to announce alongside each event
        """
        self._root: Path | None = root
        self._state: ControllerState = ControllerState.IDLE
        self._subscribers: list[StaleCallback] = []
        self._pending: deque[StalenessEvent] = deque()
        self._worker: asyncio.Task[None] | None = None
        self._source: ChangeSource | None = None

    @property
    def root(self) -> Path | None:
        return self._root

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is ControllerState.CLOSED

    def register_root(self, root: Path | None) -> None:
        """Register (or clear) the traversal root."""
        self._root = root

    def on_stale(self, callback: StaleCallback) -> Callable[[], None]:
        """Subscribe to staleness announcements.

        Args:
            callback: Called with each stale path

        Returns:
            Callable that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def affected_paths(self, event: StalenessEvent) -> tuple[Path, ...]:
        """Compute the deduplicated paths made stale by one event.

        Args:
            event: Change event

        Returns:
            The changed path, its parent when distinct, then the root when
            distinct from both
        """
        paths: list[Path] = [event.path]
        parent = event.path.parent
        if parent != event.path:
            paths.append(parent)
        if self._root is not None and self._root not in paths:
            paths.append(self._root)
        return tuple(paths)

    def submit(self, event: StalenessEvent) -> tuple[Path, ...]:
        """Process one change event.

        While another event is being announced the event is queued and
        handled by the outer call once the current one finishes.

        Args:
            event: Change event

        Returns:
            Paths announced by this call, in order (empty when queued or closed)
        """
        if self._state is ControllerState.CLOSED:
            logger.debug("Ignoring change event on closed controller", extra={"path": str(event.path)})
            return ()

        self._pending.append(event)
        if self._state is ControllerState.NOTIFYING:
            return ()

        announced: list[Path] = []
        while self._pending and self._state is not ControllerState.CLOSED:
            announced.extend(self._process(self._pending.popleft()))
        return tuple(announced)

    def _process(self, event: StalenessEvent) -> tuple[Path, ...]:
        self._state = ControllerState.NOTIFYING
        set_correlation_id(uuid.uuid4().hex[:12])
        try:
            paths = self.affected_paths(event)
            logger.debug(
                "Announcing stale paths",
                extra={
                    "path": str(event.path),
                    "reason": event.reason,
                    "stale_paths": [str(p) for p in paths],
                },
            )
            for path in paths:
                self._announce(path)
            return paths
        finally:
            clear_correlation_id()
            if self._state is ControllerState.NOTIFYING:
                self._state = ControllerState.IDLE

    def announce_missing(self, path: Path) -> None:
        """Announce the parent of a path that vanished while being described."""
        if self._state is ControllerState.CLOSED:
            return
        parent = path.parent
        if parent != path:
            self._announce(parent)

    def _announce(self, path: Path) -> None:
        for callback in list(self._subscribers):
            try:
                callback(path)
            except Exception:
                logger.exception("Staleness subscriber failed", extra={"path": str(path)})

    async def open(self, source: ChangeSource | None = None) -> None:
        """Start consuming a change source.

        Args:
            source: Async stream of change events; None leaves the controller
                fed only through ``submit``

        Raises:
            RuntimeError: If the controller is closed or already consuming
        """
        if self._state is ControllerState.CLOSED:
            msg = "Cannot open a closed invalidation controller"
            raise RuntimeError(msg)
        if self._worker is not None:
            msg = "Invalidation controller is already open"
            raise RuntimeError(msg)
        if source is None:
            return
        self._source = source
        self._worker = asyncio.create_task(self._consume(source), name="invalidation-worker")
        logger.info(
            "Invalidation controller opened",
            extra={"root": str(self._root) if self._root is not None else None},
        )

    async def _consume(self, source: ChangeSource) -> None:
        async for event in source:
            _ = self.submit(event)
        logger.info("Change source exhausted")

    async def close(self) -> None:
        """Release the change source and make announcements inert.

        Safe to call more than once.
        """
        if self._state is ControllerState.CLOSED:
            return
        self._state = ControllerState.CLOSED
        self._subscribers.clear()
        self._pending.clear()

        if self._worker is not None:
            if not self._worker.done():
                _ = self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Change source failed")
            self._worker = None

        if self._source is not None:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                await aclose()
            self._source = None

        logger.info("Invalidation controller closed")

    @asynccontextmanager
    async def opened(self, source: ChangeSource | None = None) -> AsyncIterator[Self]:
        """Scoped form of open/close.

        Examples:
            >>> async with controller.opened(watch_tree(root)) as ctrl:
            ...     unsubscribe = ctrl.on_stale(print)
        """
        await self.open(source)
        try:
            yield self
        finally:
            await self.close()

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
