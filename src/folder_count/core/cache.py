"""Memoized aggregation results keyed by path.

The cache is optional and disabled by default. Invalidation is driven by
staleness announcements. A change under a path affects the recursive size
of every ancestor, so dropping a path also drops its cached ancestors and
descendants.
"""

import logging
from pathlib import Path

from folder_count.types.aliases import AggregationResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Path-keyed store of the last computed result.

    A generation counter is bumped on every invalidation. Writers capture the
    generation before computing and the store is refused if an invalidation
    happened in the meantime, so a describe racing with a change never
    reinstates an outdated value.
    """

    def __init__(self) -> None:
        self._entries: dict[Path, AggregationResult] = {}
        self._generation: int = 0

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, path: Path) -> AggregationResult | None:
        return self._entries.get(path)

    def store(self, path: Path, result: AggregationResult, generation: int) -> bool:
        """Store a result computed under the given generation.

        Args:
            path: Described path
            result: Computed result
            generation: Value of ``generation`` captured before computing

        Returns:
            True if stored, False if an invalidation made the result outdated
        """
        if generation != self._generation:
            return False
        self._entries[path] = result
        return True

    def invalidate(self, path: Path) -> int:
        """Drop a path together with its cached ancestors and descendants.

        Args:
            path: Path announced as stale

        Returns:
            Number of entries removed
        """
        self._generation += 1
        ancestors = set(path.parents)
        stale = [
            cached
            for cached in self._entries
            if cached == path or cached in ancestors or cached.is_relative_to(path)
        ]
        for cached in stale:
            del self._entries[cached]
        if stale:
            logger.debug(
                "Invalidated cached results",
                extra={"path": str(path), "removed": len(stale)},
            )
        return len(stale)

    def clear(self) -> None:
        self._generation += 1
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries
