"""Pure formatting utilities for human-readable output.

This module provides stateless formatting functions for converting byte
counts, timestamps and item counts into display strings. All functions are
pure with no side effects.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

# Binary units (1024-based), largest last
_UNITS: Final[tuple[str, ...]] = ("B", "KB", "MB", "GB", "TB")
_STEP: Final[int] = 1024
_ONE_DECIMAL: Final[Decimal] = Decimal("0.1")

TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


def format_bytes(num_bytes: int) -> str:
    """Convert a byte count to a human-readable magnitude.

    The unit is the largest one for which the scaled value is at least 1,
    capped at TB. The scaled value is rounded half-up to one decimal place
    and a trailing ``.0`` is dropped.

    Args:
        num_bytes: Number of bytes (must be a non-negative integer)

    Returns:
        String of the form ``"<value> <unit>"``

    Raises:
        TypeError: If num_bytes is not an integer
        ValueError: If num_bytes is negative

    Examples:
        >>> format_bytes(0)
        '0 B'
        >>> format_bytes(1536)
        '1.5 KB'
        >>> format_bytes(1048576)
        '1 MB'
    """
    if isinstance(num_bytes, bool) or not isinstance(num_bytes, int):
        msg = f"bytes must be an integer, got: {type(num_bytes).__name__}"
        raise TypeError(msg)
    if num_bytes < 0:
        msg = "bytes must be non-negative"
        raise ValueError(msg)
    if num_bytes == 0:
        return "0 B"

    # Integer comparison gives floor(log1024(n)) without float error
    unit_index = 0
    while unit_index < len(_UNITS) - 1 and num_bytes >= _STEP ** (unit_index + 1):
        unit_index += 1

    scaled = Decimal(num_bytes) / Decimal(_STEP**unit_index)
    rounded = scaled.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)
    if rounded == rounded.to_integral_value():
        value = str(int(rounded))
    else:
        value = str(rounded)
    return f"{value} {_UNITS[unit_index]}"


def format_timestamp(timestamp: float) -> str:
    """Format a POSIX timestamp as local date and time.

    Args:
        timestamp: Seconds since the epoch

    Returns:
        ``YYYY-MM-DD HH:MM:SS`` in local time, or an empty string for 0
    """
    if timestamp <= 0:
        return ""
    return datetime.fromtimestamp(timestamp).strftime(TIMESTAMP_FORMAT)


def pluralize(count: int, singular: str) -> str:
    """Render a count with its noun, e.g. ``"1 file"`` or ``"3 files"``."""
    return f"{count} {singular}" if count == 1 else f"{count} {singular}s"


def format_counts(files: int, folders: int) -> str:
    """Join non-zero file and folder counts into one phrase.

    Examples:
        >>> format_counts(3, 1)
        '3 files, 1 folder'
        >>> format_counts(0, 2)
        '2 folders'
    """
    parts: list[str] = []
    if files > 0:
        parts.append(pluralize(files, "file"))
    if folders > 0:
        parts.append(pluralize(folders, "folder"))
    return ", ".join(parts)
