"""User routes for platform id mappings."""

from fastapi import APIRouter

from racers_api.api.deps import UserMappings
from racers_api.core.errors import NotFoundError, UpstreamError
from racers_api.core.result import Failed, NotFound
from racers_api.schemas.records import MappingReloadResponse, UserMappingResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/{platform_user_id}/mapping", response_model=UserMappingResponse)
async def get_user_mapping(
    platform_user_id: str,
    mappings: UserMappings,
) -> UserMappingResponse:
    """Resolve a platform user id to the game's user id."""
    result = await mappings.lookup(platform_user_id)
    if isinstance(result, NotFound):
        raise NotFoundError(result.reason)
    if isinstance(result, Failed):
        raise UpstreamError(result.reason)
    return UserMappingResponse(platform_user_id=platform_user_id, user_id=result.value)


@router.post("/mappings/reload", response_model=MappingReloadResponse)
async def reload_user_mappings(mappings: UserMappings) -> MappingReloadResponse:
    """Drop the cached mappings and fetch them again."""
    mappings.invalidate()
    loaded = await mappings.load()
    return MappingReloadResponse(loaded=loaded)
