"""Personal-best and display-name schemas for request/response validation."""

from typing import Any, Optional, Union

from pydantic import Field, model_validator

from racers_api.core.normalize import normalize_request_keys
from racers_api.schemas.leaderboard import CamelModel


class SubmitTimeRequest(CamelModel):
    """Schema for submitting a run time.

    Field names are matched case-insensitively (e.g. "timems", "PlatformUserId").
    """

    platform: Optional[str] = None
    platform_user_id: Optional[str] = None
    map: Optional[str] = None
    difficulty: Optional[str] = None
    time_ms: Union[int, float, str, None] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = normalize_request_keys(data)
            if data.get("platformUserId") is not None:
                data["platformUserId"] = str(data["platformUserId"])
        return data


class SubmitTimeAcceptedResponse(CamelModel):
    """Schema for a submission that set a new personal best."""

    success: bool = True
    message: str
    old_time: Union[int, float, None] = None
    new_time: int
    display_name: Optional[str] = None
    display_name_updated: bool = False
    commit_url: Optional[str] = None


class SubmitTimeRejectedResponse(CamelModel):
    """Schema for a submission slower than the existing personal best."""

    success: bool = False
    message: str
    current_pb: Union[int, float, None] = None
    submitted_time: int
    display_name: Optional[str] = None
    display_name_updated: bool = False


class RenameRequest(CamelModel):
    """Schema for changing a player's display name."""

    platform_user_id: Optional[str] = None
    new_display_name: Optional[str] = Field(None, max_length=64)

    @model_validator(mode="before")
    @classmethod
    def stringify_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("platformUserId") is not None:
            data = {**data, "platformUserId": str(data["platformUserId"])}
        return data


class RenameResponse(CamelModel):
    """Schema for rename response."""

    success: bool = True
    message: str
    updated_files_count: int
    commit_url: Optional[str] = None


class UserMappingResponse(CamelModel):
    """Schema for a platform user id mapping."""

    platform_user_id: str
    user_id: str


class MappingReloadResponse(CamelModel):
    """Schema for a mapping cache reload."""

    loaded: int
