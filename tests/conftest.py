"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from racers_api.api.deps import get_document_store, get_steam_client, get_user_mappings
from racers_api.api.routes import records as records_routes
from racers_api.config import Settings
from racers_api.main import app
from racers_api.services.document_store import LocalDocumentStore
from racers_api.services.steam import SteamClient
from racers_api.services.user_mappings import UserMappingCache


def write_record(
    root: Path,
    platform_id: str,
    best_times: dict,
    display_name: Optional[str] = None,
    platform: str = "Steam",
) -> None:
    """Write a player document into a local store directory."""
    path = root / "pbs" / f"{platform_id}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(
            {
                "userId": platform_id,
                "platform": platform,
                "displayName": display_name or platform_id,
                "bestTimes": best_times,
            }
        ),
        encoding="utf-8",
    )


def read_json(root: Path, key: str):
    return json.loads((root / key).read_text(encoding="utf-8"))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary local store."""
    return Settings(store_backend="local", data_dir=tmp_path, _env_file=None)


@pytest.fixture
def store(tmp_path: Path) -> LocalDocumentStore:
    return LocalDocumentStore(tmp_path)


@pytest.fixture
def steam() -> MagicMock:
    """Steam client that accepts every ticket and knows no persona names."""
    client = MagicMock(spec=SteamClient)
    client.verify_ticket = AsyncMock(return_value=True)
    client.get_persona_name = AsyncMock(return_value=None)
    return client


@pytest.fixture
def user_mappings() -> MagicMock:
    return MagicMock(spec=UserMappingCache)


@pytest_asyncio.fixture
async def client(store, steam, user_mappings) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by the temporary store."""
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_steam_client] = lambda: steam
    app.dependency_overrides[get_user_mappings] = lambda: user_mappings
    records_routes.limiter.enabled = False

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    records_routes.limiter.enabled = True


@pytest.fixture
def sample_records(tmp_path: Path) -> Path:
    """Three players with times on Impact/Hard and a few other boards."""
    write_record(
        tmp_path,
        "1001",
        {"Impact": {"Hard": 12500, "Easy": 9000}, "Crag": {"Medium": 40000}},
        display_name="Alice",
    )
    write_record(
        tmp_path,
        "1002",
        {"Impact": {"Hard": 11000}},
        display_name="Bob",
    )
    write_record(
        tmp_path,
        "1003",
        {"Impact": {"Hard": 12500, "Medium": None}},
        display_name="Carol",
        platform="Epic",
    )
    return tmp_path
