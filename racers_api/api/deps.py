"""API dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from racers_api.config import Settings, get_settings
from racers_api.services.document_store import DocumentStore
from racers_api.services.leaderboard_service import LeaderboardService
from racers_api.services.record_service import RecordService
from racers_api.services.steam import SteamClient
from racers_api.services.user_mappings import UserMappingCache


def get_document_store(request: Request) -> DocumentStore:
    """Document store created in the application lifespan."""
    return request.app.state.document_store


def get_steam_client(request: Request) -> SteamClient:
    return request.app.state.steam_client


def get_user_mappings(request: Request) -> UserMappingCache:
    return request.app.state.user_mappings


SettingsDep = Annotated[Settings, Depends(get_settings)]
Store = Annotated[DocumentStore, Depends(get_document_store)]
Steam = Annotated[SteamClient, Depends(get_steam_client)]
UserMappings = Annotated[UserMappingCache, Depends(get_user_mappings)]


def get_leaderboard_service(store: Store, settings: SettingsDep) -> LeaderboardService:
    return LeaderboardService(store, settings)


def get_record_service(store: Store, steam: Steam, settings: SettingsDep) -> RecordService:
    return RecordService(store, steam, settings)


# Type aliases for cleaner route signatures
Leaderboards = Annotated[LeaderboardService, Depends(get_leaderboard_service)]
Records = Annotated[RecordService, Depends(get_record_service)]
