"""Canonical ordering of a player's best-time table."""

from typing import Optional

from .normalize import DIFFICULTY_ORDER, MAP_ORDER

BestTimes = dict[str, dict[str, Optional[int]]]


def _ordered(keys, priority: list[str]) -> list[str]:
    known = sorted((k for k in keys if k in priority), key=priority.index)
    unknown = sorted(k for k in keys if k not in priority)
    return known + unknown


def order_best_times(best_times: BestTimes) -> BestTimes:
    """
    Re-emit a best-time table in canonical key order.

    Maps follow the known map order with any other map appended
    alphabetically; within each map difficulties go Easy, Medium, Hard and
    then any other difficulty alphabetically. Keys and values are unchanged,
    so documents diff cleanly between commits.
    """
    ordered: BestTimes = {}
    for map_name in _ordered(best_times.keys(), MAP_ORDER):
        difficulties = best_times[map_name] or {}
        ordered[map_name] = {
            difficulty: difficulties[difficulty]
            for difficulty in _ordered(difficulties.keys(), DIFFICULTY_ORDER)
        }
    return ordered
