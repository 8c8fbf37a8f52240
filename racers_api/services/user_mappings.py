"""Platform user id -> user id mapping, loaded once from a published JSON file."""

import logging
from typing import Any, Optional

import httpx

from racers_api.core.errors import UpstreamError
from racers_api.core.result import Failed, NotFound, Ok, Result

logger = logging.getLogger(__name__)


def parse_mappings(data: Any) -> dict[str, str]:
    """Build the mapping from an array or object of user rows.

    Rows without both platformUserId and userId are ignored.
    """
    rows = data if isinstance(data, list) else list((data or {}).values())
    mappings: dict[str, str] = {}
    for row in rows:
        if not isinstance(row, dict):
            continue
        platform_user_id = row.get("platformUserId")
        user_id = row.get("userId")
        if platform_user_id and user_id:
            mappings[str(platform_user_id).strip()] = str(user_id).strip()
    return mappings


class UserMappingCache:
    """In-memory mapping cache with an explicit load/invalidate lifecycle."""

    def __init__(self, url: str, client: httpx.AsyncClient):
        self.url = url
        self._client = client
        self._mappings: Optional[dict[str, str]] = None

    @property
    def loaded(self) -> bool:
        return self._mappings is not None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def load(self) -> int:
        """Fetch the mapping document and replace the cache.

        Returns:
            Number of valid mappings loaded

        Raises:
            UpstreamError: If the document cannot be fetched or parsed
        """
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to load user mappings: {e}")
            raise UpstreamError("Failed to load user mappings", details=str(e)) from e
        except ValueError as e:
            logger.error(f"User mappings are not valid JSON: {e}")
            raise UpstreamError("Failed to load user mappings", details=str(e)) from e

        self._mappings = parse_mappings(data)
        logger.info(f"Loaded {len(self._mappings)} valid mappings")
        return len(self._mappings)

    def invalidate(self) -> None:
        self._mappings = None

    async def lookup(self, platform_user_id: str) -> Result[str]:
        """Resolve a platform user id, loading the cache on first use."""
        if self._mappings is None:
            try:
                await self.load()
            except UpstreamError as e:
                return Failed(e.message)

        user_id = self._mappings.get(str(platform_user_id).strip())
        if user_id is None:
            return NotFound(f"No mapping for {platform_user_id}")
        return Ok(user_id)
