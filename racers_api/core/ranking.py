"""Leaderboard ordering and length handling."""

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional, Union

from .time_parser import TimeValue, time_sort_key

ALL = "all"

Length = Union[int, Literal["all"]]

DEFAULT_LENGTH = 10


@dataclass
class LeaderboardEntry:
    """A player's time on one map/difficulty leaderboard."""

    platform_id: str
    platform: Optional[str]
    value: TimeValue
    display_name: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to the wire/document format."""
        composite = {"platformId": self.platform_id, "platform": self.platform}
        composite.update(self.extra)
        return {
            "compositeUserId": composite,
            "value": self.value,
            "displayName": self.display_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LeaderboardEntry":
        composite = dict(data.get("compositeUserId") or {})
        platform_id = composite.pop("platformId", None)
        platform = composite.pop("platform", None)
        return cls(
            platform_id=str(platform_id) if platform_id is not None else "",
            platform=platform,
            value=data.get("value"),
            display_name=data.get("displayName"),
            extra=composite,
        )


def parse_length(raw: Any, default: int = DEFAULT_LENGTH) -> Length:
    """
    Interpret a requested leaderboard length.

    Missing values fall back to the default, "all" (any case) selects every
    entry, and anything that is not a positive integer falls back to the
    default.
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, str):
        text = raw.strip()
        if not text or text == "undefined":
            return default
        if text.lower() == "all":
            return ALL
        try:
            raw = int(text)
        except ValueError:
            return default
    if isinstance(raw, float):
        raw = int(raw)
    if not isinstance(raw, int) or raw <= 0:
        return default
    return raw


def rank(entries: Iterable[LeaderboardEntry], length: Length = ALL) -> list[LeaderboardEntry]:
    """
    Order entries fastest first.

    The sort is stable, so entries with equal times keep their input order.
    Entries whose value cannot be parsed are kept and placed last.

    Args:
        entries: Entries for a single map/difficulty
        length: Maximum number of entries, or ALL (0 also means all)

    Returns:
        New list of ranked entries
    """
    ranked = sorted(entries, key=lambda entry: time_sort_key(entry.value))
    if length == ALL or length == 0:
        return ranked
    return ranked[:length]
