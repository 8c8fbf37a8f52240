"""Leaderboard routes for generated boards, player summaries and snapshots."""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Query

from racers_api.api.deps import Leaderboards, SettingsDep
from racers_api.core.errors import ValidationError
from racers_api.core.ranking import parse_length
from racers_api.schemas.leaderboard import (
    FriendLeaderboardRequest,
    LeaderboardEntryResponse,
    LeaderboardQuery,
    PlayerSummaryRequest,
)
from racers_api.services.leaderboard_service import parse_category

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


def _decode_leaderboards(raw: Any, strict: bool = False) -> Optional[list]:
    """Accept a batch as a list or as a JSON-encoded string."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            logger.error(f"Error parsing leaderboards: {e}")
            if strict:
                raise ValidationError("leaderboards must be a JSON array") from e
            return None
    if raw is not None and not isinstance(raw, list):
        raise ValidationError("leaderboards must be a JSON array")
    return raw


async def _generate(service: Leaderboards, settings: SettingsDep, query: LeaderboardQuery) -> Any:
    default_length = settings.default_leaderboard_length
    length = parse_length(query.length, default=default_length)

    leaderboards = _decode_leaderboards(query.leaderboards)
    if leaderboards:
        return await service.get_leaderboards(leaderboards)

    map_name, difficulty = query.map, query.difficulty
    if query.category:
        length = default_length
        map_name, difficulty = parse_category(query.category, difficulty)

    if not map_name or not difficulty:
        raise ValidationError(
            "Missing required parameters. Need either map + difficulty, "
            "category, or leaderboards array"
        )

    entries = await service.get_leaderboard(map_name, difficulty, length)
    return [entry.to_dict() for entry in entries]


@router.get("")
async def get_leaderboard(
    service: Leaderboards,
    settings: SettingsDep,
    map: Optional[str] = Query(None, description="Map name"),
    difficulty: Optional[str] = Query(None, description="Difficulty name"),
    length: Optional[str] = Query(None, description="Number of entries or 'all'"),
    category: Optional[str] = Query(None, description="Map-Difficulty shorthand"),
    leaderboards: Optional[str] = Query(None, description="JSON array of boards"),
) -> Any:
    """Get one leaderboard, or several with a leaderboards batch.

    Returns entries sorted by time (fastest first). A batch returns
    {map: {difficulty: entries}} with {"error": ...} for boards that failed.
    """
    query = LeaderboardQuery(
        map=map,
        difficulty=difficulty,
        length=length,
        category=category,
        leaderboards=leaderboards,
    )
    return await _generate(service, settings, query)


@router.post("")
async def post_leaderboard(
    query: LeaderboardQuery,
    service: Leaderboards,
    settings: SettingsDep,
) -> Any:
    """Same as GET /leaderboard with the parameters in a JSON body."""
    return await _generate(service, settings, query)


async def _summary(service: Leaderboards, request: PlayerSummaryRequest) -> dict:
    if not request.display_name and not request.platform_id:
        raise ValidationError("Either displayName or platformId is required.")

    leaderboards = _decode_leaderboards(request.leaderboards, strict=True)
    if not leaderboards:
        raise ValidationError(
            "Missing leaderboards parameter. Provide as JSON body or query array: "
            '[{"map":"Impact","difficulty":"Hard"}]'
        )

    return await service.get_player_summary(
        leaderboards,
        platform_id=request.platform_id,
        display_name=request.display_name,
    )


@router.get("/player")
async def get_player_summary(
    service: Leaderboards,
    display_name: Optional[str] = Query(None, alias="displayName"),
    platform_id: Optional[str] = Query(None, alias="platformId"),
    leaderboards: Optional[str] = Query(None, description="JSON array of boards"),
) -> dict:
    """Get a player's position, total players and time on several boards."""
    request = PlayerSummaryRequest(
        display_name=display_name,
        platform_id=platform_id,
        leaderboards=leaderboards,
    )
    return await _summary(service, request)


@router.post("/player")
async def post_player_summary(
    request: PlayerSummaryRequest,
    service: Leaderboards,
) -> dict:
    """Same as GET /leaderboard/player with the parameters in a JSON body."""
    return await _summary(service, request)


@router.get("/snapshot")
async def get_snapshot(
    service: Leaderboards,
    type: Optional[str] = Query(None, description="Leaderboard type, must be RACE"),
    category: Optional[str] = Query(None, description="Map-Difficulty category"),
) -> Any:
    """Get the top entries of a stored leaderboard snapshot."""
    if type != "RACE" or not category:
        raise ValidationError("Invalid parameters")
    return await service.get_snapshot(category)


@router.post(
    "/friends",
    response_model=list[LeaderboardEntryResponse],
    response_model_by_alias=True,
)
async def get_friend_leaderboard(
    request: FriendLeaderboardRequest,
    service: Leaderboards,
) -> list[dict]:
    """Get a full leaderboard shaped for the in-game friends view."""
    if not request.category or not request.difficulty:
        raise ValidationError("Missing category or difficulty")
    return await service.get_friend_leaderboard(request.category, request.difficulty)
