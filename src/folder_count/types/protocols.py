"""Protocol definitions for component interfaces.

This module defines structural subtyping protocols that establish
contracts for the filesystem collaborator and the cancellation signal
without requiring inheritance.
"""

from collections.abc import AsyncIterator, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from folder_count.types.models import DirectoryEntry, EntryStat, StalenessEvent


@runtime_checkable
class FilesystemReader(Protocol):
    """Protocol for the read-only filesystem collaborator.

    Implementations must raise ``FileNotFoundError`` when an entry vanished
    and ``PermissionError`` when access is denied, so callers can treat both
    as non-fatal per-entry failures.
    """

    async def stat(self, path: Path) -> EntryStat:
        """Stat a path without following symlinks.

        Args:
            path: Path to inspect

        Returns:
            Kind, size, timestamps and identity of the entry
        """
        ...

    async def list_directory(self, path: Path) -> Sequence[DirectoryEntry]:
        """List the immediate children of a directory.

        Args:
            path: Directory to list

        Returns:
            Children in filesystem order
        """
        ...


@runtime_checkable
class CancelSignal(Protocol):
    """Cooperative cancellation signal checked between suspension points."""

    @property
    def is_cancelled(self) -> bool: ...


class ChangeSourceFactory(Protocol):
    """Factory producing the change event stream for a root."""

    def __call__(
        self,
        root: Path,
        *,
        poll_interval: float,
    ) -> AsyncIterator[StalenessEvent]: ...
