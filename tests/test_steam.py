"""Tests for the Steam Web API client."""

import httpx
import pytest

from racers_api.core.errors import UpstreamError
from racers_api.services.steam import SteamClient, extract_auth_ticket

STEAM_ID = "76561198000000001"


def steam_client(handler) -> SteamClient:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="https://steam.test",
    )
    return SteamClient(client, api_key="key", app_id=677620)


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc123", "abc123"),
        ("Token abc123", "abc123"),
        ("abc123", "abc123"),
        ("Bearer ", None),
        (None, None),
        ("", None),
    ],
)
def test_extract_auth_ticket(header, expected):
    assert extract_auth_ticket(header) == expected


class TestVerifyTicket:
    """Tests for ticket verification."""

    @pytest.mark.asyncio
    async def test_matching_steam_id(self):
        def handler(request):
            assert request.url.params["appid"] == "677620"
            assert request.url.params["ticket"] == "t"
            return httpx.Response(
                200, json={"response": {"params": {"result": "OK", "steamid": STEAM_ID}}}
            )

        assert await steam_client(handler).verify_ticket(STEAM_ID, "t") is True

    @pytest.mark.asyncio
    async def test_ticket_for_another_player(self):
        def handler(request):
            return httpx.Response(
                200, json={"response": {"params": {"steamid": "76561198999999999"}}}
            )

        assert await steam_client(handler).verify_ticket(STEAM_ID, "t") is False

    @pytest.mark.asyncio
    async def test_error_payload(self):
        def handler(request):
            return httpx.Response(
                200, json={"response": {"error": {"errorcode": 101, "errordesc": "Invalid ticket"}}}
            )

        assert await steam_client(handler).verify_ticket(STEAM_ID, "t") is False

    @pytest.mark.asyncio
    async def test_missing_ticket_skips_request(self):
        def handler(request):
            raise AssertionError("Steam must not be called")

        assert await steam_client(handler).verify_ticket(STEAM_ID, None) is False

    @pytest.mark.asyncio
    async def test_unreachable_steam(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(UpstreamError):
            await steam_client(handler).verify_ticket(STEAM_ID, "t")

    @pytest.mark.asyncio
    async def test_error_status(self):
        with pytest.raises(UpstreamError):
            await steam_client(lambda r: httpx.Response(503)).verify_ticket(STEAM_ID, "t")


class TestPersonaName:
    """Tests for persona name lookup."""

    @pytest.mark.asyncio
    async def test_found(self):
        def handler(request):
            return httpx.Response(
                200, json={"response": {"players": [{"personaname": "Speedy"}]}}
            )

        assert await steam_client(handler).get_persona_name(STEAM_ID) == "Speedy"

    @pytest.mark.asyncio
    async def test_failure_is_none(self):
        assert await steam_client(lambda r: httpx.Response(500)).get_persona_name(STEAM_ID) is None
