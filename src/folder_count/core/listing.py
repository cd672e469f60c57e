"""Sortable, searchable, navigable directory listing.

The listing shows the immediate children of a current directory inside a
fixed root. Hidden entries are not shown, folders are sized through the
aggregation engine, and folders always sort before files whatever the
direction.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from folder_count.core.aggregation import AggregationEngine
from folder_count.core.cancellation import CancellationToken
from folder_count.core.classifier import HIDDEN_PREFIX
from folder_count.types.models import DirectoryEntry, EntryKind
from folder_count.types.protocols import CancelSignal
from folder_count.utils.formatting import format_bytes, format_timestamp

logger = logging.getLogger(__name__)


class SortKey(StrEnum):
    """Column the listing is sorted by."""

    NAME = "name"
    SIZE = "size"
    CREATED = "created"
    MODIFIED = "modified"


class ListingError(Exception):
    """Raised when the current directory cannot be listed."""


@dataclass(slots=True, frozen=True)
class ListingRow:
    """One displayed child of the current directory."""

    name: str
    path: Path
    is_dir: bool
    size_bytes: int
    created: float
    modified: float

    @property
    def display_size(self) -> str:
        if self.is_dir and self.size_bytes == 0:
            return "-"
        return format_bytes(self.size_bytes)

    @property
    def display_created(self) -> str:
        return format_timestamp(self.created)

    @property
    def display_modified(self) -> str:
        return format_timestamp(self.modified)


class DirectoryListing:
    """Listing state for one root: current folder, search, and sort order.

    Attributes:
        root: Directory the listing can never leave
        current: Directory currently shown
        search: Case-insensitive substring filter on names
        sort_key: Active sort column
        descending: Whether the active column sorts descending
    """

    def __init__(
        self,
        engine: AggregationEngine,
        root: Path,
        *,
        sort_key: SortKey = SortKey.NAME,
        descending: bool = False,
    ) -> None:
        self._engine: AggregationEngine = engine
        self.root: Path = root.resolve()
        self.current: Path = self.root
        self.search: str = ""
        self.sort_key: SortKey = sort_key
        self.descending: bool = descending

    def sort_by(self, key: SortKey | str) -> None:
        """Sort by a column; choosing the active column flips the direction."""
        key = SortKey(key)
        if key is self.sort_key:
            self.descending = not self.descending
        else:
            self.sort_key = key
            self.descending = False

    def set_search(self, query: str | None) -> None:
        self.search = query or ""

    @property
    def can_go_up(self) -> bool:
        return self.current != self.root

    def open_folder(self, path: Path | str) -> None:
        """Navigate into a folder inside the root.

        Args:
            path: Absolute path, or a name relative to the current folder

        Raises:
            ValueError: If the target is outside the root or not a directory
        """
        target = Path(path)
        if not target.is_absolute():
            target = self.current / target
        target = target.resolve()
        if not target.is_relative_to(self.root):
            msg = f"Folder is outside the listing root: {target}"
            raise ValueError(msg)
        if not target.is_dir():
            msg = f"Not a directory: {target}"
            raise ValueError(msg)
        self.current = target

    def go_up(self) -> bool:
        """Move to the parent folder unless already at the root.

        Returns:
            True if the current folder changed
        """
        if not self.can_go_up:
            return False
        self.current = self.current.parent
        return True

    async def rows(self, token: CancelSignal | None = None) -> list[ListingRow]:
        """Build the filtered and sorted rows for the current folder.

        Args:
            token: Cancellation signal passed to folder sizing

        Returns:
            Rows with folders first

        Raises:
            ListingError: If the current folder cannot be listed
        """
        token = token if token is not None else CancellationToken.none()
        try:
            entries = await self._engine.reader.list_directory(self.current)
        except OSError as exc:
            msg = f"Unable to read directory: {self.current}: {exc}"
            raise ListingError(msg) from exc

        query = self.search.casefold()
        visible = [
            entry
            for entry in entries
            if not entry.name.startswith(HIDDEN_PREFIX) and query in entry.name.casefold()
        ]

        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(self._build_row(entry, token)) for entry in visible]
        return self._sorted([task.result() for task in tasks])

    async def _build_row(self, entry: DirectoryEntry, token: CancelSignal) -> ListingRow:
        path = self.current / entry.name
        created = 0.0
        modified = 0.0
        try:
            entry_stat = await self._engine.reader.stat(path)
            created = entry_stat.created
            modified = entry_stat.modified
        except OSError as exc:
            logger.debug("Cannot stat listing entry", extra={"path": str(path), "error": str(exc)})

        is_dir = entry.kind is EntryKind.DIRECTORY
        size = entry.size_bytes
        if is_dir:
            # Self-sizing-skipped folders show "-", matching their decoration
            skipped = self._engine.policy.skip_self_sizing(entry.name)
            size = 0 if skipped else await self._engine.recursive_size(path, token)
        return ListingRow(
            name=entry.name,
            path=path,
            is_dir=is_dir,
            size_bytes=size,
            created=created,
            modified=modified,
        )

    def _sorted(self, rows: list[ListingRow]) -> list[ListingRow]:
        def sort_value(row: ListingRow) -> tuple[float | str, str]:
            name = row.name.casefold()
            match self.sort_key:
                case SortKey.NAME:
                    return (name, row.name)
                case SortKey.SIZE:
                    return (row.size_bytes, name)
                case SortKey.CREATED:
                    return (row.created, name)
                case SortKey.MODIFIED:
                    return (row.modified, name)

        folders = sorted((r for r in rows if r.is_dir), key=sort_value, reverse=self.descending)
        files = sorted((r for r in rows if not r.is_dir), key=sort_value, reverse=self.descending)
        return folders + files
