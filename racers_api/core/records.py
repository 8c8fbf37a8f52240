"""Player personal-best records and the new-record policy."""

import copy
from dataclasses import dataclass, field
from typing import Optional, Union

from .best_times import BestTimes, order_best_times
from .time_parser import TimeValue, parse_time, time_sort_key


@dataclass
class PlayerRecord:
    """A player's personal-best document (pbs/<platformUserId>.json)."""

    platform_id: str
    platform: Optional[str]
    display_name: Optional[str]
    best_times: BestTimes = field(default_factory=dict)

    @classmethod
    def new(cls, platform_id: str, platform: Optional[str]) -> "PlayerRecord":
        """Record for a player with no document yet; the id doubles as name."""
        return cls(platform_id=platform_id, platform=platform, display_name=platform_id)

    @classmethod
    def from_document(cls, data: dict) -> "PlayerRecord":
        best_times = data.get("bestTimes") or {}
        if not isinstance(best_times, dict):
            raise ValueError("bestTimes must be an object")
        user_id = data.get("userId")
        return cls(
            platform_id=str(user_id) if user_id is not None else "",
            platform=data.get("platform"),
            display_name=data.get("displayName"),
            best_times=best_times,
        )

    def to_document(self) -> dict:
        return {
            "userId": self.platform_id,
            "platform": self.platform,
            "displayName": self.display_name,
            "bestTimes": self.best_times,
        }

    def get_time(self, map_name: str, difficulty: str) -> Optional[int]:
        """Look up a time, matching map and difficulty case-insensitively."""
        maps = _find_key(self.best_times, map_name)
        if maps is None:
            return None
        difficulties = self.best_times[maps] or {}
        key = _find_key(difficulties, difficulty)
        if key is None:
            return None
        return difficulties[key]


def _find_key(mapping: dict, name: str) -> Optional[str]:
    lowered = name.lower()
    for key in mapping:
        if key.lower() == lowered:
            return key
    return None


def _variants(mapping: dict, name: str) -> list[str]:
    lowered = name.lower()
    return [key for key in mapping if key.lower() == lowered]


def current_best(best_times: BestTimes, map_name: str, difficulty: str) -> TimeValue:
    """
    Stored best for a map/difficulty, matching keys case-insensitively.

    Older documents may hold "impact"/"hard" next to "Impact"/"Hard"; the
    fastest of those values counts.
    """
    candidates = []
    for map_key in _variants(best_times, map_name):
        times = best_times[map_key]
        if not isinstance(times, dict):
            continue
        for key in _variants(times, difficulty):
            if times[key] is not None:
                candidates.append(times[key])
    if not candidates:
        return None
    return min(candidates, key=time_sort_key)


@dataclass
class RecordEvaluation:
    """Outcome of evaluating a submitted time."""

    is_new_record: bool
    previous_time: Optional[Union[int, float]]
    best_times: BestTimes


def evaluate(current_best: TimeValue, submitted: int) -> bool:
    """Return True if the submission beats the current best.

    Only strictly faster times count; an equal time keeps the existing record.
    With no current best every submission is a new record. Stored strings
    such as "1:02.5" are compared as milliseconds, and a value that cannot
    be parsed loses to any submission.
    """
    if current_best is None:
        return True
    return submitted < time_sort_key(current_best)


def _as_millis(value: TimeValue) -> Optional[Union[int, float]]:
    parsed = parse_time(value)
    if isinstance(parsed, float) and parsed.is_integer():
        return int(parsed)
    return parsed


def apply_submission(
    best_times: BestTimes,
    map_name: str,
    difficulty: str,
    submitted: int,
) -> RecordEvaluation:
    """
    Evaluate a submission against a best-time table.

    Args:
        best_times: The player's current table (not modified)
        map_name: Canonical map name
        difficulty: Canonical difficulty name
        submitted: Submitted time in milliseconds

    Returns:
        RecordEvaluation with the table to persist. On a new record the table
        contains the new time under the canonical keys, with any case variants
        of them folded in, and is in canonical order; otherwise it is the
        unchanged input.
    """
    current = current_best(best_times, map_name, difficulty)
    previous_time = _as_millis(current) if current is not None else None
    if not evaluate(current, submitted):
        return RecordEvaluation(
            is_new_record=False,
            previous_time=previous_time,
            best_times=best_times,
        )

    updated = copy.deepcopy(best_times)
    difficulties: dict = {}
    for map_key in _variants(updated, map_name):
        times = updated.pop(map_key)
        if isinstance(times, dict):
            difficulties.update(times)
    for key in _variants(difficulties, difficulty):
        del difficulties[key]
    difficulties[difficulty] = submitted
    updated[map_name] = difficulties

    return RecordEvaluation(
        is_new_record=True,
        previous_time=previous_time,
        best_times=order_best_times(updated),
    )
