"""Workspace inspector wiring engine, cache, controller and change source.

The inspector keeps results for one root live: every path announced stale is
described again, and a newer request for a path cancels the one still in
flight for it.
"""

import asyncio
import inspect
import logging
from pathlib import Path

from folder_count.core.aggregation import AggregationEngine
from folder_count.core.cache import ResultCache
from folder_count.core.cancellation import CancellationToken
from folder_count.core.config import MainConfig
from folder_count.core.invalidation import InvalidationController
from folder_count.core.watcher import watch_tree
from folder_count.types.aliases import AggregationResult, UpdateCallback
from folder_count.types.protocols import CancelSignal, ChangeSourceFactory, FilesystemReader
from folder_count.utils.logging import log_with_context

logger = logging.getLogger(__name__)


class WorkspaceInspector:
    """Keeps aggregation results for a root current as the tree changes.

    An inspector runs at most once: ``start`` closes the invalidation
    controller when it returns.

    Attributes:
        root: Resolved traversal root
        engine: Aggregation engine used for every describe
        controller: Invalidation controller fed by the change source
    """

    def __init__(
        self,
        config: MainConfig,
        root: Path,
        *,
        reader: FilesystemReader | None = None,
        change_source_factory: ChangeSourceFactory = watch_tree,
    ) -> None:
        """Initialize the inspector.

        Args:
            config: Validated configuration
            root: Directory to keep live
            reader: Filesystem collaborator (default: local filesystem)
            change_source_factory: Builds the change event stream for the root
        """
        self.root: Path = root.resolve()
        self._config: MainConfig = config
        self._change_source_factory: ChangeSourceFactory = change_source_factory

        self._cache: ResultCache | None = ResultCache() if config.cache.enabled else None
        self.controller: InvalidationController = InvalidationController(root=self.root)
        self.engine: AggregationEngine = AggregationEngine(
            reader,
            policy=config.traversal.to_policy(),
            cache=self._cache,
            on_missing=self.controller.announce_missing,
            max_concurrency=config.traversal.max_concurrency,
        )
        if self._cache is not None:
            _ = self.controller.on_stale(self._invalidate_cached)

        self._shutdown_event: asyncio.Event = asyncio.Event()
        self._in_flight: dict[Path, CancellationToken] = {}
        self._is_running: bool = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def _invalidate_cached(self, path: Path) -> None:
        if self._cache is not None:
            _ = self._cache.invalidate(path)

    async def describe(self, path: Path, token: CancelSignal | None = None) -> AggregationResult | None:
        return await self.engine.describe(path, token)

    def request_shutdown(self) -> None:
        """Signal the inspector to stop gracefully."""
        if self._shutdown_event.is_set():
            return
        logger.info("Shutdown requested for inspector")
        self._shutdown_event.set()

    async def start(self, on_update: UpdateCallback) -> None:
        """Refresh stale paths until shutdown is requested.

        Args:
            on_update: Called with each re-described path and its result;
                may be a plain function or a coroutine function

        Raises:
            RuntimeError: If the inspector is already running
        """
        if self._is_running:
            msg = "Inspector is already running"
            raise RuntimeError(msg)

        self._is_running = True
        stale_paths: asyncio.Queue[Path] = asyncio.Queue()
        unsubscribe = self.controller.on_stale(stale_paths.put_nowait)

        source = None
        if self._config.watch.enabled:
            source = self._change_source_factory(
                self.root,
                poll_interval=self._config.watch.poll_interval,
            )

        logger.info("Inspector starting", extra={"root": str(self.root), "watching": source is not None})
        try:
            async with self.controller.opened(source):
                async with asyncio.TaskGroup() as task_group:
                    refresher = task_group.create_task(
                        self._refresh_loop(stale_paths, on_update, task_group),
                        name="stale-refresher",
                    )
                    _ = await self._shutdown_event.wait()
                    _ = refresher.cancel()
                    for token in self._in_flight.values():
                        token.cancel()
        finally:
            unsubscribe()
            self._in_flight.clear()
            self._is_running = False
            logger.info("Inspector stopped", extra={"root": str(self.root)})

    async def _refresh_loop(
        self,
        stale_paths: asyncio.Queue[Path],
        on_update: UpdateCallback,
        task_group: asyncio.TaskGroup,
    ) -> None:
        while True:
            path = await stale_paths.get()
            previous = self._in_flight.pop(path, None)
            if previous is not None:
                previous.cancel()
            token = CancellationToken()
            self._in_flight[path] = token
            _ = task_group.create_task(self._refresh(path, token, on_update), name=f"refresh:{path}")

    async def _refresh(self, path: Path, token: CancellationToken, on_update: UpdateCallback) -> None:
        try:
            result = await self.engine.describe(path, token)
            if token.is_cancelled:
                return
            log_with_context(
                logger,
                logging.DEBUG,
                "Path refreshed",
                extra={"path": str(path), "has_result": result is not None},
            )
            outcome = on_update(path, result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Failed to refresh stale path", extra={"path": str(path)})
        finally:
            if self._in_flight.get(path) is token:
                del self._in_flight[path]
