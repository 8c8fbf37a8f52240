"""
Time parsing utilities for leaderboard values.

Leaderboard values are stored either as integer milliseconds or as
human-entered strings such as "1:23.456" (minutes:seconds.millis) or
"12.5" (seconds.millis).
"""

import math
import re
from typing import Optional, Union

TimeValue = Union[int, float, str, None]

_DIGITS = re.compile(r"^\d+$")


def _to_int(part: str) -> Optional[int]:
    part = part.strip()
    if not _DIGITS.match(part):
        return None
    return int(part)


def _fraction_to_ms(part: str) -> Optional[int]:
    # "5" means 500ms, not 5ms
    part = part.strip()
    if not part:
        return 0
    return _to_int(part[:3].ljust(3, "0"))


def parse_time(value: TimeValue) -> Optional[Union[int, float]]:
    """
    Convert a leaderboard value into milliseconds.

    Supported formats:
    - numbers (already milliseconds, returned as-is)
    - MM:SS.fff (e.g., 1:23.456 -> 83456)
    - SS.fff (e.g., 12.5 -> 12500)
    - SS (e.g., 45 -> 45000)

    Args:
        value: Number, time string or None

    Returns:
        Milliseconds, 0 for missing input, or None when the value is
        malformed. Never raises.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return 0
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return 0

    minutes = 0
    if ":" in text:
        minutes_part, text = text.split(":", 1)
        minutes = _to_int(minutes_part)
        if minutes is None:
            return None

    seconds_part, _, fraction_part = text.partition(".")
    seconds = _to_int(seconds_part)
    millis = _fraction_to_ms(fraction_part)
    if seconds is None or millis is None:
        return None

    return minutes * 60000 + seconds * 1000 + millis


def time_sort_key(value: TimeValue) -> float:
    """Sort key for leaderboard values; malformed values sort last."""
    parsed = parse_time(value)
    if parsed is None or (isinstance(parsed, float) and math.isnan(parsed)):
        return math.inf
    return parsed


def format_time(ms: Union[int, float]) -> str:
    """Format milliseconds as seconds with three decimals (e.g., 12.500s)."""
    return f"{ms / 1000:.3f}s"
