"""Type aliases using modern PEP 695 syntax."""

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

from folder_count.types.models import (
    DirectoryResult,
    FileResult,
    SkippedDirectoryResult,
    StalenessEvent,
)

# Tagged union of everything describe() can produce
# Consumers match exhaustively over the three variants
type AggregationResult = FileResult | DirectoryResult | SkippedDirectoryResult

# Subscriber invoked once per stale path announcement
type StaleCallback = Callable[[Path], None]

# Hook invoked by the engine when a described path turns out to be gone
type MissingPathHook = Callable[[Path], None]

# Any async stream of change events (polling watcher, test feeds, host bridges)
type ChangeSource = AsyncIterator[StalenessEvent]

# Inspector callback receiving a freshly described path
type UpdateCallback = Callable[[Path, AggregationResult | None], Awaitable[None] | None]
