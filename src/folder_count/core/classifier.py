"""Path classification for traversal and self-sizing exclusion.

A single name-based rule decides which entries are invisible to aggregation.
It is used at two call sites: when a child is about to be traversed
(``is_excluded``) and when a directory is asked to size itself
(``skip_self_sizing``). Both call sites share one policy so the results stay
consistent.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final, override

from folder_count.types.models import EntryKind

DEFAULT_EXCLUDED_NAMES: Final[frozenset[str]] = frozenset({"node_modules"})

HIDDEN_PREFIX: Final[str] = "."


class ExclusionPolicy:
    """Name-based exclusion predicate.

    Only directories are ever excluded from traversal; files pass regardless
    of their name.
    """

    __slots__ = ("excluded_names", "exclude_hidden")

    def __init__(
        self,
        excluded_names: Iterable[str] = DEFAULT_EXCLUDED_NAMES,
        *,
        exclude_hidden: bool = True,
    ) -> None:
        """Initialize the policy.

        Args:
            excluded_names: Exact directory names to exclude
            exclude_hidden: Exclude directories whose name starts with a dot
        """
        self.excluded_names: frozenset[str] = frozenset(excluded_names)
        self.exclude_hidden: bool = exclude_hidden

    def matches_name(self, name: str) -> bool:
        """Check whether a directory name matches the exclusion rule."""
        if self.exclude_hidden and name.startswith(HIDDEN_PREFIX):
            return True
        return name in self.excluded_names

    def is_excluded(self, name: str, kind: EntryKind) -> bool:
        """Decide whether a child entry is skipped during traversal.

        Args:
            name: Entry name within its parent
            kind: Entry kind

        Returns:
            True if the entry is a directory matching the rule
        """
        return kind is EntryKind.DIRECTORY and self.matches_name(name)

    def skip_self_sizing(self, name: str) -> bool:
        """Decide whether a directory being described skips its recursive size.

        Args:
            name: Name of the directory itself

        Returns:
            True if the directory only reports direct counts
        """
        return self.matches_name(name)

    @override
    def __repr__(self) -> str:
        names = ", ".join(sorted(self.excluded_names))
        return f"ExclusionPolicy(excluded_names=[{names}], exclude_hidden={self.exclude_hidden})"


DEFAULT_POLICY: Final[ExclusionPolicy] = ExclusionPolicy()


def is_excluded(name: str, kind: EntryKind) -> bool:
    """Apply the default policy to a traversal child.

    Examples:
        >>> is_excluded(".git", EntryKind.DIRECTORY)
        True
        >>> is_excluded(".env", EntryKind.FILE)
        False
    """
    return DEFAULT_POLICY.is_excluded(name, kind)


def skip_self_sizing(name: str) -> bool:
    """Apply the default policy to a directory being described."""
    return DEFAULT_POLICY.skip_self_sizing(name)
