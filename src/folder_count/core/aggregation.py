"""Directory aggregation engine.

This module computes the size and count summaries shown for each entry of a
directory tree:
- Direct child counts filtered by the exclusion policy
- Recursive subtree size with concurrent sibling traversal
- Orchestrated ``describe`` producing a tagged result or nothing
- Tolerance of per-entry I/O failures (vanished entries, permission errors)
- Cooperative cancellation that degrades to partial, zero, or no result

Nothing in this module raises to its callers for filesystem errors. Failures
are logged and replaced with neutral values.
"""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from folder_count.core.cache import ResultCache
from folder_count.core.cancellation import CancellationToken
from folder_count.core.classifier import DEFAULT_POLICY, ExclusionPolicy
from folder_count.core.filesystem import LocalFilesystem
from folder_count.types.aliases import AggregationResult, MissingPathHook
from folder_count.types.models import (
    DirectCounts,
    DirectoryEntry,
    DirectoryResult,
    EntryKind,
    EntryStat,
    FileResult,
    SkippedDirectoryResult,
)
from folder_count.types.protocols import CancelSignal, FilesystemReader

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY: Final[int] = 8

# Directory identities (st_dev, st_ino) seen during one recursive_size call
type _Visited = set[tuple[int, int]]


class AggregationEngine:
    """Computes counts and sizes for paths under the exclusion policy.

    Each call walks the filesystem afresh unless a ``ResultCache`` is given,
    in which case ``describe`` serves and stores memoized results.

    Attributes:
        policy: Exclusion policy shared by traversal and self sizing
    """

    def __init__(
        self,
        reader: FilesystemReader | None = None,
        *,
        policy: ExclusionPolicy = DEFAULT_POLICY,
        cache: ResultCache | None = None,
        on_missing: MissingPathHook | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        """Initialize the engine.

        Args:
            reader: Filesystem collaborator (default: local filesystem)
            policy: Exclusion policy
            cache: Optional result cache used by ``describe``
            on_missing: Hook called with a path found to be gone during describe
            max_concurrency: Maximum filesystem calls in flight at once
        """
        if max_concurrency <= 0:
            msg = f"max_concurrency must be positive, got: {max_concurrency}"
            raise ValueError(msg)
        self.policy: ExclusionPolicy = policy
        self._reader: FilesystemReader = reader if reader is not None else LocalFilesystem()
        self._cache: ResultCache | None = cache
        self._on_missing: MissingPathHook | None = on_missing
        self._io_slots: asyncio.Semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def reader(self) -> FilesystemReader:
        return self._reader

    @property
    def cache(self) -> ResultCache | None:
        return self._cache

    def set_missing_hook(self, hook: MissingPathHook | None) -> None:
        """Install the hook called when describe discovers a vanished path."""
        self._on_missing = hook

    async def _list(self, path: Path) -> Sequence[DirectoryEntry]:
        async with self._io_slots:
            return await self._reader.list_directory(path)

    async def _stat(self, path: Path) -> EntryStat:
        async with self._io_slots:
            return await self._reader.stat(path)

    def _report_missing(self, path: Path) -> None:
        logger.debug("Described path no longer exists", extra={"path": str(path)})
        if self._on_missing is not None:
            self._on_missing(path)

    async def _count_children(self, path: Path, token: CancelSignal) -> DirectCounts:
        entries = await self._list(path)
        files = 0
        folders = 0
        for entry in entries:
            if token.is_cancelled:
                break
            if self.policy.is_excluded(entry.name, entry.kind):
                continue
            if entry.kind is EntryKind.FILE:
                files += 1
            elif entry.kind is EntryKind.DIRECTORY:
                folders += 1
        return DirectCounts(files=files, folders=folders)

    async def direct_counts(
        self,
        path: Path,
        token: CancelSignal | None = None,
    ) -> DirectCounts:
        """Count the non-excluded files and folders directly inside a directory.

        Cancellation stops the count early and returns the partial counts.
        A listing failure yields zero counts.

        Args:
            path: Directory to inspect
            token: Cancellation signal checked before each child

        Returns:
            File and folder counts
        """
        token = token if token is not None else CancellationToken.none()
        try:
            return await self._count_children(path, token)
        except OSError as exc:
            logger.warning(
                "Failed to list directory for counts",
                extra={"path": str(path), "error": str(exc)},
            )
            return DirectCounts()

    async def recursive_size(
        self,
        path: Path,
        token: CancelSignal | None = None,
    ) -> int:
        """Sum the sizes of all non-excluded files below a directory.

        Subtrees of excluded directories contribute nothing. Entries that
        fail to stat contribute 0. Cancellation at any point yields exactly
        0, never the partial sum.

        Args:
            path: Directory to size
            token: Cancellation signal checked between filesystem calls

        Returns:
            Total size in bytes, or 0 on cancellation or listing failure
        """
        token = token if token is not None else CancellationToken.none()
        if token.is_cancelled:
            return 0
        try:
            total = await self._sum_tree(path, token, set())
        except OSError as exc:
            logger.warning(
                "Failed to list directory for size",
                extra={"path": str(path), "error": str(exc)},
            )
            return 0
        return 0 if token.is_cancelled else total

    async def _sum_tree(self, path: Path, token: CancelSignal, visited: _Visited) -> int:
        entries = await self._list(path)
        if token.is_cancelled:
            return 0

        total = 0
        subdirectories: list[Path] = []
        for entry in entries:
            if self.policy.is_excluded(entry.name, entry.kind):
                continue
            if entry.kind is EntryKind.FILE:
                total += entry.size_bytes
            elif entry.kind is EntryKind.DIRECTORY and not self.policy.skip_self_sizing(entry.name):
                subdirectories.append(path / entry.name)

        if subdirectories:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(self._size_child(child, token, visited)) for child in subdirectories]
            total += sum(task.result() for task in tasks)

        return 0 if token.is_cancelled else total

    async def _size_child(self, path: Path, token: CancelSignal, visited: _Visited) -> int:
        if token.is_cancelled:
            return 0
        try:
            entry_stat = await self._stat(path)
            if entry_stat.kind is not EntryKind.DIRECTORY:
                return 0
            if entry_stat.identity in visited:
                logger.debug("Skipping already visited directory", extra={"path": str(path)})
                return 0
            visited.add(entry_stat.identity)
            return await self._sum_tree(path, token, visited)
        except OSError as exc:
            logger.debug(
                "Skipping unreadable entry during size calculation",
                extra={"path": str(path), "error": str(exc)},
            )
            return 0

    async def describe(
        self,
        path: Path,
        token: CancelSignal | None = None,
    ) -> AggregationResult | None:
        """Produce the displayable result for one path.

        Files yield their size. Directories yield direct counts plus either
        the recursive size or ``"skipped"`` when the directory itself matches
        the exclusion rule. Empty directories, symlinks, unknown kinds, stat
        failures and cancellation all yield None.

        Args:
            path: Path to describe
            token: Cancellation signal checked before the stat, after the
                counts and after the size

        Returns:
            Tagged result, or None when there is nothing to show
        """
        token = token if token is not None else CancellationToken.none()
        if token.is_cancelled:
            return None

        generation = 0
        if self._cache is not None:
            cached = self._cache.get(path)
            if cached is not None:
                return cached
            generation = self._cache.generation

        try:
            entry_stat = await self._stat(path)
        except FileNotFoundError:
            self._report_missing(path)
            return None
        except OSError as exc:
            logger.debug("Cannot stat described path", extra={"path": str(path), "error": str(exc)})
            return None

        result: AggregationResult | None
        match entry_stat.kind:
            case EntryKind.FILE:
                result = FileResult(path=path, size_bytes=entry_stat.size_bytes)
            case EntryKind.DIRECTORY:
                result = await self._describe_directory(path, token)
            case EntryKind.OTHER:
                return None

        if result is not None and self._cache is not None and not token.is_cancelled:
            _ = self._cache.store(path, result, generation)
        return result

    async def _describe_directory(self, path: Path, token: CancelSignal) -> AggregationResult | None:
        try:
            counts = await self._count_children(path, token)
        except FileNotFoundError:
            self._report_missing(path)
            return None
        except OSError as exc:
            logger.warning(
                "Failed to list directory for counts",
                extra={"path": str(path), "error": str(exc)},
            )
            counts = DirectCounts()
        if token.is_cancelled:
            return None

        if self.policy.skip_self_sizing(path.name):
            if counts.is_empty:
                return None
            return SkippedDirectoryResult(
                path=path,
                direct_file_count=counts.files,
                direct_folder_count=counts.folders,
            )

        size = await self.recursive_size(path, token)
        if token.is_cancelled:
            return None
        if counts.is_empty and size == 0:
            return None
        return DirectoryResult(
            path=path,
            direct_file_count=counts.files,
            direct_folder_count=counts.folders,
            total_size_bytes=size,
        )
