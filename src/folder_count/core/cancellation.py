"""Cooperative cancellation signal for aggregation requests."""

from __future__ import annotations

from typing import override


class CancellationToken:
    """One-shot cancellation flag checked between suspension points.

    Cancellation never raises inside the engine; it degrades results to a
    partial count, zero, or no result.
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled: bool = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    @classmethod
    def none(cls) -> CancellationToken:
        """Return a fresh token that nothing will cancel."""
        return cls()

    @override
    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
