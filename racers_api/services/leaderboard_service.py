"""Leaderboard service reading player records from the document store."""

import asyncio
import logging
from typing import Any, Optional

from racers_api.config import Settings
from racers_api.core.aggregate import aggregate, build_leaderboard, player_summary
from racers_api.core.errors import NotFoundError, UpstreamError, ValidationError
from racers_api.core.normalize import Difficulty
from racers_api.core.ranking import ALL, LeaderboardEntry, Length
from racers_api.core.records import PlayerRecord
from racers_api.core.result import Failed, NotFound
from racers_api.services.document_store import DocumentStore

logger = logging.getLogger(__name__)


def _key_segment(value: str, field: str) -> str:
    """Ids and categories become one file name, never a path."""
    value = str(value).strip()
    if not value or "/" in value or "\\" in value or ".." in value:
        raise ValidationError(f"Invalid {field}")
    return value


def record_key(settings: Settings, platform_user_id: str) -> str:
    """
    Store key of a player's record.

    Raises:
        ValidationError: If the id is empty or contains a path separator
    """
    return f"{settings.pbs_dir}/{_key_segment(platform_user_id, 'platformUserId')}.json"


def snapshot_key(settings: Settings, category: str) -> str:
    """Stored leaderboard for a category such as "Impact-Hard" or "Impact_Hard".

    Raises:
        ValidationError: If the category is empty or contains a path separator
    """
    category = _key_segment(category, "category")
    return f"{settings.leaderboards_dir}/{category.replace('-', '_')}.json"


def parse_category(category: str, difficulty: Optional[str] = None) -> tuple[str, str]:
    """Split "Map-Difficulty".

    A bare map name keeps the given difficulty, or means its Medium board.
    """
    if "-" in category:
        map_name, difficulty = category.split("-", 1)
        return map_name, difficulty
    return category, difficulty or Difficulty.MEDIUM.value


def serialize_results(results: dict) -> dict:
    """Turn aggregated leaderboards into JSON-ready data."""
    return {
        map_name: {
            difficulty: (
                [entry.to_dict() for entry in board] if isinstance(board, list) else board
            )
            for difficulty, board in difficulties.items()
        }
        for map_name, difficulties in results.items()
    }


class LeaderboardService:
    """Service for building leaderboards from player records."""

    def __init__(self, store: DocumentStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def load_records(self, ref: Optional[str] = None) -> list[PlayerRecord]:
        """
        Load every player record.

        Records come back in key order. Documents that cannot be read or are
        not player records are logged and skipped so one corrupt file does not
        take down every leaderboard.
        """
        keys = await self.store.list_keys(self.settings.pbs_dir, ref=ref)
        results = await asyncio.gather(*(self.store.get(key, ref=ref) for key in keys))

        records = []
        for key, result in zip(keys, results):
            if isinstance(result, NotFound):
                continue
            if isinstance(result, Failed):
                logger.error(f"Error processing file {key}: {result.reason}")
                continue
            content = result.value.content
            if not isinstance(content, dict) or "bestTimes" not in content:
                continue
            try:
                records.append(PlayerRecord.from_document(content))
            except (ValueError, TypeError, AttributeError) as e:
                logger.error(f"Error processing file {key}: {e}")
        return records

    async def get_leaderboard(
        self,
        map_name: str,
        difficulty: str,
        length: Length,
    ) -> list[LeaderboardEntry]:
        records = await self.load_records()
        return build_leaderboard(records, map_name, difficulty, length)

    async def get_leaderboards(self, requests: list[Any]) -> dict:
        records = await self.load_records()
        return serialize_results(
            aggregate(records, requests, self.settings.default_leaderboard_length)
        )

    async def get_player_summary(
        self,
        requests: list[Any],
        platform_id: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> dict:
        records = await self.load_records()
        return player_summary(
            records, requests, platform_id=platform_id, display_name=display_name
        )

    async def get_snapshot(self, category: str, limit: Optional[int] = None) -> Any:
        """
        Read a stored leaderboard snapshot.

        Raises:
            NotFoundError: If no snapshot exists for the category
            UpstreamError: If the snapshot cannot be read or parsed
        """
        key = snapshot_key(self.settings, category)
        result = await self.store.get(key)
        if isinstance(result, NotFound):
            raise NotFoundError("Leaderboard not found", details=f"No document at {key}")
        if isinstance(result, Failed):
            raise UpstreamError("Invalid leaderboard data", details=result.reason)

        data = result.value.content
        limit = limit or self.settings.snapshot_length
        if isinstance(data, list):
            return data[:limit]
        return data

    async def get_friend_leaderboard(self, category: str, difficulty: str) -> list[dict]:
        """Full leaderboard with the configured friend id on every entry."""
        entries = await self.get_leaderboard(category, difficulty, ALL)
        formatted = []
        for entry in entries:
            formatted.append(
                {
                    "compositeUserId": {
                        "friendId": self.settings.friend_id,
                        "platform": entry.platform,
                        "platformId": entry.platform_id,
                    },
                    "value": entry.value,
                    "displayName": entry.display_name,
                }
            )
        return formatted
