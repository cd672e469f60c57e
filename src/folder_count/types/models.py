"""Data models for folder-count.

This module defines immutable dataclasses used throughout the application
for type-safe data transfer between the filesystem reader, the aggregation
engine, the invalidation controller and the presentation surfaces.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Literal


class EntryKind(Enum):
    """Kind of a filesystem entry as seen without following symlinks."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class DirectoryEntry:
    """One immediate child of a listed directory.

    Entries are observed fresh on every listing and carry no identity beyond
    their name within the parent. ``size_bytes`` is only meaningful for files
    and is the size reported at observation time.
    """

    name: str
    kind: EntryKind
    size_bytes: int = 0


@dataclass(slots=True, frozen=True)
class EntryStat:
    """Result of a single stat call."""

    kind: EntryKind
    size_bytes: int
    created: float
    modified: float
    identity: tuple[int, int]


@dataclass(slots=True, frozen=True)
class DirectCounts:
    """Immediate child counts of a directory after exclusion filtering."""

    files: int = 0
    folders: int = 0

    @property
    def total(self) -> int:
        return self.files + self.folders

    @property
    def is_empty(self) -> bool:
        return self.files == 0 and self.folders == 0


@dataclass(slots=True, frozen=True)
class FileResult:
    """Aggregation result for a plain file."""

    path: Path
    size_bytes: int


@dataclass(slots=True, frozen=True)
class DirectoryResult:
    """Aggregation result for a directory whose subtree was sized."""

    path: Path
    direct_file_count: int
    direct_folder_count: int
    total_size_bytes: int


@dataclass(slots=True, frozen=True)
class SkippedDirectoryResult:
    """Aggregation result for a directory excluded from self sizing.

    Direct counts are still reported; the total size is the literal
    ``"skipped"``.
    """

    path: Path
    direct_file_count: int
    direct_folder_count: int

    @property
    def total_size_bytes(self) -> Literal["skipped"]:
        return "skipped"


type ChangeReason = Literal["created", "modified", "deleted"]


@dataclass(slots=True, frozen=True)
class StalenessEvent:
    """Filesystem change event that invalidates previously computed results."""

    path: Path
    reason: ChangeReason
    timestamp: datetime = field(default_factory=datetime.now)
