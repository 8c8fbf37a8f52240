"""Steam Web API client for ticket validation and persona names."""

import logging
from typing import Optional

import httpx

from racers_api.config import Settings
from racers_api.core.errors import UpstreamError

logger = logging.getLogger(__name__)


def extract_auth_ticket(auth_header: Optional[str]) -> Optional[str]:
    """Pull the auth ticket out of an Authorization header.

    Accepts "Bearer <ticket>", "Token <ticket>" or the bare ticket.
    """
    if not auth_header:
        return None
    for prefix in ("Bearer ", "Token "):
        if auth_header.startswith(prefix):
            return auth_header[len(prefix):].strip() or None
    return auth_header.strip() or None


class SteamClient:
    """Thin async wrapper around the Steam Web API."""

    def __init__(self, client: httpx.AsyncClient, api_key: Optional[str], app_id: int):
        self._client = client
        self.api_key = api_key
        self.app_id = app_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "SteamClient":
        client = httpx.AsyncClient(
            base_url=settings.steam_api_url,
            timeout=settings.http_timeout_seconds,
        )
        return cls(client, api_key=settings.steam_api_key, app_id=settings.steam_app_id)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def verify_ticket(self, steam_id: str, ticket: Optional[str]) -> bool:
        """
        Check that an auth ticket was issued to the given Steam id.

        Args:
            steam_id: The Steam id the client claims
            ticket: Hex-encoded session ticket

        Returns:
            True only when Steam confirms the ticket belongs to steam_id

        Raises:
            UpstreamError: If Steam cannot be reached or responds with an error status
        """
        if not ticket:
            logger.info("No auth ticket provided")
            return False

        try:
            response = await self._client.get(
                "/ISteamUserAuth/AuthenticateUserTicket/v1/",
                params={"key": self.api_key, "appid": self.app_id, "ticket": ticket},
            )
        except httpx.HTTPError as e:
            logger.error(f"Steam Auth API error: {e}")
            raise UpstreamError("Steam authentication unavailable", details=str(e)) from e

        if response.is_error:
            logger.error(f"Steam Auth API responded with status {response.status_code}")
            raise UpstreamError(
                f"Steam authentication responded with status {response.status_code}"
            )

        try:
            data = response.json().get("response") or {}
        except (ValueError, AttributeError):
            logger.warning("Invalid response format from Steam auth API")
            return False

        params = data.get("params")
        if params:
            result_steam_id = params.get("steamid")
            if result_steam_id == steam_id:
                logger.info(f"Validated auth ticket for Steam ID {steam_id}")
                return True
            logger.error(
                f"Auth ticket validation failed: expected {steam_id}, got {result_steam_id}"
            )
            return False

        if data.get("error"):
            logger.error(f"Steam auth validation error: {data['error']}")
        else:
            logger.warning("Invalid response format from Steam auth API")
        return False

    async def get_persona_name(self, steam_id: str) -> Optional[str]:
        """Current Steam display name, or None if it cannot be fetched."""
        try:
            response = await self._client.get(
                "/ISteamUser/GetPlayerSummaries/v2/",
                params={"key": self.api_key, "steamids": steam_id},
            )
            response.raise_for_status()
            players = (response.json().get("response") or {}).get("players") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"Could not fetch Steam persona for {steam_id}: {e}")
            return None

        if players:
            return players[0].get("personaname") or None
        return None
