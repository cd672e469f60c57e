"""Polling filesystem change source.

Detects created, modified and deleted entries under a root by comparing
periodic snapshots. Used as the change notification stream feeding the
invalidation controller when no host-provided source is available.
"""

import asyncio
import logging
import os
from collections.abc import AsyncGenerator
from pathlib import Path

from folder_count.types.models import EntryKind, StalenessEvent

logger = logging.getLogger(__name__)

# Per-path signature: kind, size, mtime in nanoseconds
type Signature = tuple[EntryKind, int, int]
type Snapshot = dict[Path, Signature]


def _signature(entry: os.DirEntry[str]) -> Signature:
    info = entry.stat(follow_symlinks=False)
    if entry.is_dir(follow_symlinks=False):
        return (EntryKind.DIRECTORY, 0, info.st_mtime_ns)
    if entry.is_file(follow_symlinks=False):
        return (EntryKind.FILE, info.st_size, info.st_mtime_ns)
    return (EntryKind.OTHER, 0, info.st_mtime_ns)


def take_snapshot(root: Path) -> Snapshot:
    """Record the signature of every entry under root.

    Excluded directories are walked too: the engine still describes paths
    below them, so their contents must produce change events. Symlinks are
    recorded but not followed. Unreadable directories and entries vanishing
    mid-walk are skipped.

    Args:
        root: Directory to walk

    Returns:
        Mapping of path to signature (root itself not included)
    """
    snapshot: Snapshot = {}
    stack: list[Path] = [root]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as iterator:
                for entry in iterator:
                    try:
                        signature = _signature(entry)
                    except OSError:
                        continue
                    path = Path(entry.path)
                    snapshot[path] = signature
                    if signature[0] is EntryKind.DIRECTORY:
                        stack.append(path)
        except OSError as exc:
            logger.debug(
                "Skipping unreadable directory in snapshot",
                extra={"path": str(directory), "error": str(exc)},
            )
    return snapshot


def diff_snapshots(previous: Snapshot, current: Snapshot) -> list[StalenessEvent]:
    """Compare two snapshots and build change events in sorted path order.

    Args:
        previous: Earlier snapshot
        current: Later snapshot

    Returns:
        Events for created, deleted and modified paths
    """
    events: list[StalenessEvent] = []
    for path in sorted(previous.keys() | current.keys()):
        before = previous.get(path)
        after = current.get(path)
        if before is None:
            events.append(StalenessEvent(path=path, reason="created"))
        elif after is None:
            events.append(StalenessEvent(path=path, reason="deleted"))
        elif before != after:
            events.append(StalenessEvent(path=path, reason="modified"))
    return events


async def watch_tree(
    root: Path,
    *,
    poll_interval: float = 2.0,
) -> AsyncGenerator[StalenessEvent, None]:
    """Watch a directory tree and yield events on changes.

    The first poll only records the initial state. Every following poll
    yields one event per changed path. The generator runs until cancelled
    or closed; snapshot failures are logged and polling continues.

    Args:
        root: Directory to watch
        poll_interval: Seconds between polls

    Yields:
        StalenessEvent for each detected change

    Examples:
        >>> async for event in watch_tree(Path("/srv/project")):
        ...     print(f"{event.reason}: {event.path}")
    """
    logger.info(
        "Starting tree watcher",
        extra={"root": str(root), "poll_interval": poll_interval},
    )

    previous: Snapshot | None = None
    try:
        while True:
            try:
                current = await asyncio.to_thread(take_snapshot, root)
            except Exception as exc:
                logger.warning(
                    "Snapshot failed, retrying on next poll",
                    extra={"root": str(root), "error": str(exc)},
                )
                await asyncio.sleep(poll_interval)
                continue

            if previous is None:
                logger.debug("Initial tree snapshot", extra={"entries": len(current)})
            else:
                for event in diff_snapshots(previous, current):
                    yield event
            previous = current

            await asyncio.sleep(poll_interval)
    finally:
        logger.info("Tree watcher stopped", extra={"root": str(root)})
