"""Leaderboard schemas for request/response validation."""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema using camelCase names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompositeUserId(CamelModel):
    """Schema for a player's platform identity."""

    platform_id: str
    platform: Optional[str] = None
    friend_id: Optional[str] = None


class LeaderboardEntryResponse(CamelModel):
    """Schema for a leaderboard entry."""

    composite_user_id: CompositeUserId
    value: Union[int, float, str, None]
    display_name: Optional[str] = None


class LeaderboardQuery(CamelModel):
    """Schema for a leaderboard request body.

    Either map + difficulty, a "Map-Difficulty" category, or a batch of
    leaderboards.
    """

    map: Optional[str] = None
    difficulty: Optional[str] = None
    length: Union[int, str, None] = None
    category: Optional[str] = None
    leaderboards: Union[list[Any], str, None] = None


class PlayerSummaryRequest(CamelModel):
    """Schema for locating a player on several leaderboards."""

    display_name: Optional[str] = None
    platform_id: Optional[str] = None
    leaderboards: Union[list[Any], str, None] = None


class FriendLeaderboardRequest(CamelModel):
    """Schema for the friend leaderboard request."""

    category: Optional[str] = None
    difficulty: Optional[str] = None
