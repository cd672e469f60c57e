"""Local filesystem reader with blocking calls offloaded to threads.

All stat and listing operations run through ``asyncio.to_thread`` so that
each one is a suspension point for the event loop. Symlinks are never
followed: a link is reported as ``EntryKind.OTHER`` regardless of its target.
"""

import asyncio
import logging
import os
import stat as stat_module
from collections.abc import Sequence
from pathlib import Path

from folder_count.types.models import DirectoryEntry, EntryKind, EntryStat

logger = logging.getLogger(__name__)


def _kind_from_mode(mode: int) -> EntryKind:
    if stat_module.S_ISREG(mode):
        return EntryKind.FILE
    if stat_module.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    return EntryKind.OTHER


def stat_sync(path: Path) -> EntryStat:
    """Stat a path without following symlinks.

    Args:
        path: Path to inspect

    Returns:
        EntryStat for the entry

    Raises:
        FileNotFoundError: If the path does not exist
        PermissionError: If the path cannot be accessed
    """
    result = os.lstat(path)
    kind = _kind_from_mode(result.st_mode)
    created: float = getattr(result, "st_birthtime", result.st_ctime)
    return EntryStat(
        kind=kind,
        size_bytes=result.st_size if kind is EntryKind.FILE else 0,
        created=created,
        modified=result.st_mtime,
        identity=(result.st_dev, result.st_ino),
    )


def list_directory_sync(path: Path) -> list[DirectoryEntry]:
    """List immediate children of a directory in one scandir pass.

    File sizes come from the scandir entry. A child that vanishes between
    listing and its size lookup is left out. A file whose size cannot be
    read is reported with size 0; an entry whose type cannot be read is
    reported as OTHER.

    Args:
        path: Directory to list

    Returns:
        Children in filesystem order

    Raises:
        FileNotFoundError: If the directory does not exist
        NotADirectoryError: If the path is not a directory
        PermissionError: If the directory cannot be read
    """
    entries: list[DirectoryEntry] = []
    with os.scandir(path) as iterator:
        for entry in iterator:
            is_file = False
            try:
                is_file = entry.is_file(follow_symlinks=False)
                if is_file:
                    size = entry.stat(follow_symlinks=False).st_size
                    entries.append(DirectoryEntry(entry.name, EntryKind.FILE, size))
                elif entry.is_dir(follow_symlinks=False):
                    entries.append(DirectoryEntry(entry.name, EntryKind.DIRECTORY))
                else:
                    entries.append(DirectoryEntry(entry.name, EntryKind.OTHER))
            except FileNotFoundError:
                logger.debug(
                    "Entry vanished during listing",
                    extra={"path": str(path), "entry": entry.name},
                )
            except PermissionError:
                kind = EntryKind.FILE if is_file else EntryKind.OTHER
                entries.append(DirectoryEntry(entry.name, kind, 0))
    return entries


class LocalFilesystem:
    """FilesystemReader backed by the local operating system."""

    async def stat(self, path: Path) -> EntryStat:
        return await asyncio.to_thread(stat_sync, path)

    async def list_directory(self, path: Path) -> Sequence[DirectoryEntry]:
        return await asyncio.to_thread(list_directory_sync, path)
