"""Record routes for personal-best submissions and display names."""

from typing import Annotated, Optional, Union

from fastapi import APIRouter, Header, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from racers_api.api.deps import Records
from racers_api.config import get_settings
from racers_api.schemas.records import (
    RenameRequest,
    RenameResponse,
    SubmitTimeAcceptedResponse,
    SubmitTimeRejectedResponse,
    SubmitTimeRequest,
)

settings = get_settings()
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(tags=["Records"])


@router.post(
    "/pb",
    response_model=Union[SubmitTimeAcceptedResponse, SubmitTimeRejectedResponse],
)
@limiter.limit(f"{settings.rate_limit_submissions}/minute")
async def submit_time(
    request: Request,
    payload: SubmitTimeRequest,
    service: Records,
    authorization: Annotated[Optional[str], Header()] = None,
) -> Union[SubmitTimeAcceptedResponse, SubmitTimeRejectedResponse]:
    """Submit a run time.

    Steam submissions need a session ticket in the Authorization header.
    The time is stored only if it beats the player's personal best.
    """
    outcome = await service.submit_time(
        platform=payload.platform,
        platform_user_id=payload.platform_user_id,
        map_name=payload.map,
        difficulty=payload.difficulty,
        time_ms=payload.time_ms,
        auth_header=authorization,
    )

    if not outcome.is_new_record:
        return SubmitTimeRejectedResponse(
            message=outcome.message,
            current_pb=outcome.previous_time,
            submitted_time=outcome.submitted_time,
            display_name=outcome.display_name,
            display_name_updated=outcome.display_name_updated,
        )

    return SubmitTimeAcceptedResponse(
        message=outcome.message,
        old_time=outcome.previous_time,
        new_time=outcome.submitted_time,
        display_name=outcome.display_name,
        display_name_updated=outcome.display_name_updated,
        commit_url=outcome.commit_url,
    )


@router.post("/username", response_model=RenameResponse)
async def update_username(
    payload: RenameRequest,
    service: Records,
) -> RenameResponse:
    """Change a player's display name in every stored leaderboard."""
    outcome = await service.rename(payload.platform_user_id, payload.new_display_name)
    return RenameResponse(
        message=f"Display name updated in {outcome.updated_files_count} leaderboard(s)",
        updated_files_count=outcome.updated_files_count,
        commit_url=outcome.commit_url,
    )
