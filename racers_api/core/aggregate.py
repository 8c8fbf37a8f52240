"""
Leaderboard generation from player records.

Leaderboards are never the source of truth: they are recomputed from the
player documents on every read.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Union

from .errors import LeaderboardError, NotFoundError, ValidationError
from .normalize import MAP_ORDER, DIFFICULTY_ORDER, normalize_difficulty, normalize_map
from .ranking import ALL, DEFAULT_LENGTH, LeaderboardEntry, Length, parse_length, rank
from .records import PlayerRecord

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardRequest:
    """One requested (map, difficulty, length) leaderboard."""

    map: str
    difficulty: str
    length: Length = DEFAULT_LENGTH

    @classmethod
    def from_dict(cls, data: Any, default_length: int = DEFAULT_LENGTH) -> "LeaderboardRequest":
        """Build a request from raw JSON, normalizing names.

        Raises:
            ValidationError: If the item is not an object or lacks map/difficulty
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid leaderboard request: {data!r}")
        map_name = normalize_map(data.get("map"))
        difficulty = normalize_difficulty(data.get("difficulty"))
        if not map_name or not difficulty:
            raise ValidationError(f"Invalid leaderboard request: {data!r}")
        raw_length = data.get("length")
        if raw_length == 0:
            length: Length = ALL
        else:
            length = parse_length(raw_length, default=default_length)
        return cls(map=map_name, difficulty=difficulty, length=length)


LeaderboardResult = Union[list[LeaderboardEntry], dict[str, str]]


def _known_names(records: Sequence[PlayerRecord]) -> tuple[set[str], set[str]]:
    maps = {m.lower() for m in MAP_ORDER}
    difficulties = {d.lower() for d in DIFFICULTY_ORDER}
    for record in records:
        for map_name, times in record.best_times.items():
            maps.add(map_name.lower())
            difficulties.update(d.lower() for d in (times or {}))
    return maps, difficulties


def collect_entries(
    records: Iterable[PlayerRecord],
    map_name: str,
    difficulty: str,
) -> list[LeaderboardEntry]:
    """Entries for every record with a time on the given map/difficulty."""
    entries = []
    for record in records:
        value = record.get_time(map_name, difficulty)
        if not value:
            continue
        entries.append(
            LeaderboardEntry(
                platform_id=record.platform_id,
                platform=record.platform,
                value=value,
                display_name=record.display_name,
            )
        )
    return entries


def build_leaderboard(
    records: Sequence[PlayerRecord],
    map_name: Optional[str],
    difficulty: Optional[str],
    length: Length = DEFAULT_LENGTH,
) -> list[LeaderboardEntry]:
    """
    Build one ranked leaderboard.

    Args:
        records: Player records, in enumeration order
        map_name: Map name in any spelling
        difficulty: Difficulty name in any spelling
        length: Number of entries to keep, or ALL

    Returns:
        Ranked entries; empty if the map is known but nobody has a time.

    Raises:
        ValidationError: If map or difficulty is missing
        NotFoundError: If map or difficulty is unknown
    """
    map_name = normalize_map(map_name)
    difficulty = normalize_difficulty(difficulty)
    if not map_name or not difficulty:
        raise ValidationError("Map and difficulty parameters are required")

    known_maps, known_difficulties = _known_names(records)
    if map_name.lower() not in known_maps:
        raise NotFoundError(f"Unknown map: {map_name}")
    if difficulty.lower() not in known_difficulties:
        raise NotFoundError(f"Unknown difficulty: {difficulty}")

    return rank(collect_entries(records, map_name, difficulty), length)


def aggregate(
    records: Sequence[PlayerRecord],
    requests: Sequence[Any],
    default_length: int = DEFAULT_LENGTH,
) -> dict[str, dict[str, LeaderboardResult]]:
    """
    Build several leaderboards at once, nested as map -> difficulty.

    A request that cannot be resolved does not abort the batch: its slot
    holds {"error": message} and the remaining requests are still built.
    Items without a map or difficulty have no slot and are skipped.

    Raises:
        ValidationError: If requests is empty
    """
    if not requests:
        raise ValidationError("leaderboards parameter must be a non-empty array")

    results: dict[str, dict[str, LeaderboardResult]] = {}
    for item in requests:
        if isinstance(item, LeaderboardRequest):
            request = item
        else:
            try:
                request = LeaderboardRequest.from_dict(item, default_length)
            except ValidationError:
                logger.warning(f"Skipping invalid combination: {item!r}")
                continue

        slot = results.setdefault(request.map, {})
        try:
            slot[request.difficulty] = build_leaderboard(
                records, request.map, request.difficulty, request.length
            )
        except LeaderboardError as e:
            logger.warning(
                f"Error generating leaderboard for {request.map}-{request.difficulty}: {e.message}"
            )
            slot[request.difficulty] = {"error": e.message}

    return results


def player_summary(
    records: Sequence[PlayerRecord],
    requests: Sequence[Any],
    platform_id: Optional[str] = None,
    display_name: Optional[str] = None,
) -> dict[str, Any]:
    """
    Locate one player on several leaderboards.

    The player is matched by display name (case-insensitive) when given,
    otherwise by platform id. Every requested board is built in full.

    Returns:
        {"platformId", "displayName", <map>: {<difficulty>: {"position",
        "totalPlayers", "time"}}}; boards that failed keep their
        {"error": ...} entry.

    Raises:
        ValidationError: If neither identity is given or requests is empty
    """
    if not platform_id and not display_name:
        raise ValidationError("Either displayName or platformId is required.")

    full_requests = []
    for item in requests or []:
        if isinstance(item, LeaderboardRequest):
            full_requests.append(LeaderboardRequest(item.map, item.difficulty, ALL))
        elif isinstance(item, dict):
            full_requests.append({**item, "length": ALL})
        else:
            full_requests.append(item)

    boards = aggregate(records, full_requests)

    resolved_name = display_name or None
    resolved_id = platform_id or None
    summary: dict[str, Any] = {}

    for map_name, difficulties in boards.items():
        for difficulty, board in difficulties.items():
            slot = summary.setdefault(map_name, {})
            if not isinstance(board, list):
                slot[difficulty] = board
                continue

            position = None
            for index, entry in enumerate(board):
                if display_name:
                    matched = (entry.display_name or "").lower() == display_name.lower()
                else:
                    matched = entry.platform_id == platform_id
                if matched:
                    position = index
                    break

            if position is None:
                slot[difficulty] = {"position": None, "totalPlayers": len(board), "time": None}
                continue

            entry = board[position]
            if not resolved_name:
                resolved_name = entry.display_name or None
            if not resolved_id:
                resolved_id = entry.platform_id or None
            slot[difficulty] = {
                "position": position + 1,
                "totalPlayers": len(board),
                "time": entry.value,
            }

    return {"platformId": resolved_id, "displayName": resolved_name, **summary}
