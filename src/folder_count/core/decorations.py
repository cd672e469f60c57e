"""Badge, label and tooltip text for aggregation results."""

from dataclasses import dataclass
from typing import assert_never

from folder_count.types.aliases import AggregationResult
from folder_count.types.models import DirectoryResult, FileResult, SkippedDirectoryResult
from folder_count.utils.formatting import format_bytes, format_counts


@dataclass(slots=True, frozen=True)
class Decoration:
    """Display text attached to one path.

    Attributes:
        badge: Short item count for directories, None for files
        label: Inline text shown next to the name
        tooltip: Longer description shown on hover
    """

    badge: str | None
    label: str
    tooltip: str


def decorate(result: AggregationResult) -> Decoration:
    """Build the decoration for a result."""
    match result:
        case FileResult(size_bytes=size_bytes):
            size = format_bytes(size_bytes)
            return Decoration(badge=None, label=f" {size}", tooltip=f"Size: {size}")

        case SkippedDirectoryResult(direct_file_count=files, direct_folder_count=folders):
            total = files + folders
            counts = format_counts(files, folders)
            return Decoration(
                badge=str(total),
                label=f" ({total})" if total > 0 else "",
                tooltip=f"Contains: {counts} (Size calculation skipped)" if counts else "Size calculation skipped",
            )

        case DirectoryResult(
            direct_file_count=files,
            direct_folder_count=folders,
            total_size_bytes=total_size,
        ):
            size = format_bytes(total_size)
            counts = format_counts(files, folders)
            return Decoration(
                badge=str(files + folders),
                label=f" ({size})",
                tooltip=f"Contains: {counts}\nTotal Size: {size}" if counts else f"Total Size: {size}",
            )

        case _:
            assert_never(result)
