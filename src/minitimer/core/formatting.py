"""Time formatting — millisecond durations as ``HH:MM:SS`` or ``MM:SS``."""

from __future__ import annotations

import math

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE


def format_time(total_ms: float) -> str:
    """Format *total_ms* milliseconds as ``HH:MM:SS``, or ``MM:SS`` below one hour.

    Every field is zero padded to two digits and never truncated, so 24 hours
    renders as ``24:00:00``.  Fractional milliseconds are floored and negative
    durations are clamped to zero.
    """
    if isinstance(total_ms, bool) or not isinstance(total_ms, (int, float)):
        raise TypeError(f"total_ms must be a number, got {type(total_ms).__name__}")
    if not math.isfinite(total_ms):
        raise ValueError(f"total_ms must be finite, got {total_ms}")

    total = max(math.floor(total_ms), 0)
    hours, remainder = divmod(total, _MS_PER_HOUR)
    minutes, remainder = divmod(remainder, _MS_PER_MINUTE)
    seconds = remainder // _MS_PER_SECOND

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"
