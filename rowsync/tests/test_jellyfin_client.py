"""Tests for the Jellyfin client."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from rowsync.core.contracts import ImageType, ItemKind
from rowsync.providers.jellyfin_client import (
    MAX_RETRIES,
    GatewayAuthError,
    GatewayError,
    JellyfinClient,
    item_from_api,
    parse_datetime,
)


def mock_response(status_code, payload=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload
    return response


def attach(client, request):
    """Route the client's HTTP calls through ``request``."""
    http_client = AsyncMock()
    http_client.request = request
    return patch.object(client, "_get_client", AsyncMock(return_value=http_client))


# Payload parsing

def test_parse_datetime_seven_fraction_digits():
    parsed = parse_datetime("2021-05-01T12:34:56.1234567Z")
    assert parsed == datetime(2021, 5, 1, 12, 34, 56, 123456, tzinfo=timezone.utc)


def test_parse_datetime_without_fraction_or_zone():
    assert parse_datetime("2021-05-01T12:34:56") == datetime(2021, 5, 1, 12, 34, 56, tzinfo=timezone.utc)


def test_parse_datetime_invalid():
    assert parse_datetime(None) is None
    assert parse_datetime("") is None
    assert parse_datetime("yesterday") is None


def test_item_from_api_episode():
    item = item_from_api(
        {
            "Id": "abc",
            "Name": "Pilot",
            "Type": "Episode",
            "SeriesName": "Show",
            "SeriesId": "series-1",
            "ParentThumbItemId": "series-1",
            "IndexNumber": 1,
            "IndexNumberEnd": 2,
            "ParentIndexNumber": 3,
            "RunTimeTicks": 36_000_000_000,
            "DateCreated": "2024-01-01T00:00:00.0000000Z",
            "ImageTags": {"Primary": "tag"},
            "UserData": {
                "PlaybackPositionTicks": 12_345_000,
                "LastPlayedDate": "2024-06-01T12:30:00Z",
            },
        }
    )

    assert item.kind == ItemKind.EPISODE
    assert item.item_type == "Episode"
    assert item.series_name == "Show"
    assert item.has_primary_image is True
    assert (item.index_number, item.index_number_end, item.parent_index_number) == (1, 2, 3)
    assert item.playback_position_ticks == 12_345_000
    assert item.last_played_at == datetime(2024, 6, 1, 12, 30, tzinfo=timezone.utc)
    assert item.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_item_from_api_kinds():
    assert item_from_api({"Id": "1", "Type": "CollectionFolder"}).kind == ItemKind.LIBRARY
    assert item_from_api({"Id": "1", "Type": "MusicAlbum"}).kind == ItemKind.ALBUM
    assert item_from_api({"Id": "1", "Type": "TvChannel"}).kind == ItemKind.UNKNOWN
    assert item_from_api({"Id": "1"}).kind == ItemKind.UNKNOWN


def test_item_from_api_defaults():
    item = item_from_api({"Id": "1", "Type": "Movie", "Taglines": ["Tag"]})

    assert item.name == ""
    assert item.taglines == ("Tag",)
    assert item.has_primary_image is False
    assert item.playback_position_ticks is None


# Image URLs

def test_image_url_primary():
    client = JellyfinClient(server_url="http://jf:8096/", access_token="t")
    assert client.image_url("abc") == "http://jf:8096/Items/abc/Images/Primary?format=Png"


def test_image_url_with_size():
    client = JellyfinClient(server_url="http://jf", access_token="t")

    url = client.image_url("abc", ImageType.THUMB, "Png", 512, 288)

    assert url == "http://jf/Items/abc/Images/Thumb?format=Png&maxWidth=512&maxHeight=288"


def test_authorization_header():
    client = JellyfinClient(server_url="http://jf", access_token="secret", device_id="dev-1")

    assert client.authorization.startswith("MediaBrowser ")
    assert 'Token="secret"' in client.authorization
    assert 'DeviceId="dev-1"' in client.authorization


# Request handling

@pytest.mark.anyio
async def test_request_returns_json():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    request = AsyncMock(return_value=mock_response(200, {"Items": []}))

    with attach(client, request):
        assert await client._request("GET", "/Shows/NextUp") == {"Items": []}

    await client.close()


@pytest.mark.anyio
async def test_request_retries_on_server_error():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    request = AsyncMock(side_effect=[mock_response(503), mock_response(200, [])])

    with attach(client, request), patch("asyncio.sleep", AsyncMock()) as sleep:
        assert await client._request("GET", "/Users/u/Views") == []

    assert request.await_count == 2
    sleep.assert_awaited_once()


@pytest.mark.anyio
async def test_request_raises_after_max_retries():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    request = AsyncMock(return_value=mock_response(429, headers={"Retry-After": "0"}))

    with attach(client, request), patch("asyncio.sleep", AsyncMock()):
        with pytest.raises(GatewayError) as exc_info:
            await client._request("GET", "/test")

    assert exc_info.value.status_code == 429
    assert request.await_count == MAX_RETRIES


@pytest.mark.anyio
async def test_request_auth_error_not_retried():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    request = AsyncMock(return_value=mock_response(401))

    with attach(client, request):
        with pytest.raises(GatewayAuthError) as exc_info:
            await client._request("GET", "/test")

    assert exc_info.value.status_code == 401
    assert request.await_count == 1


@pytest.mark.anyio
async def test_request_client_error_not_retried():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    request = AsyncMock(return_value=mock_response(404))

    with attach(client, request):
        with pytest.raises(GatewayError) as exc_info:
            await client._request("GET", "/missing")

    assert exc_info.value.status_code == 404
    assert request.await_count == 1


@pytest.mark.anyio
async def test_request_retries_on_timeout():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    request = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

    with attach(client, request), patch("asyncio.sleep", AsyncMock()):
        with pytest.raises(GatewayError, match="Max retries exceeded"):
            await client._request("GET", "/slow")

    assert request.await_count == MAX_RETRIES


# Endpoints

@pytest.mark.anyio
async def test_latest_items_excludes():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    payload = {"Id": "u", "Configuration": {"LatestItemsExcludes": ["lib-1"]}}

    with patch.object(client, "_request", AsyncMock(return_value=payload)):
        assert await client.latest_items_excludes("u") == ["lib-1"]


@pytest.mark.anyio
async def test_resumable_query():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    payload = {"Items": [{"Id": "m-1", "Name": "Film", "Type": "Movie"}]}

    with patch.object(client, "_request", AsyncMock(return_value=payload)) as request:
        items = await client.resumable("u", limit=5, fields=("DateCreated",))

    assert [item.id for item in items] == ["m-1"]
    method, path = request.await_args.args
    params = request.await_args.kwargs["params"]
    assert (method, path) == ("GET", "/Users/u/Items")
    assert params["filters"] == "IsResumable"
    assert params["mediaTypes"] == "Video"
    assert params["sortBy"] == "DatePlayed"
    assert params["fields"] == "DateCreated"
    assert params["limit"] == 5


@pytest.mark.anyio
async def test_latest_items_accepts_bare_list():
    client = JellyfinClient(server_url="http://jf", access_token="t")
    payload = [{"Id": "e-1", "Name": "Pilot", "Type": "Episode"}]

    with patch.object(client, "_request", AsyncMock(return_value=payload)) as request:
        items = await client.latest_items("u", "lib-1", limit=25, group_items=True)

    assert items[0].kind == ItemKind.EPISODE
    params = request.await_args.kwargs["params"]
    assert params["parentId"] == "lib-1"
    assert params["groupItems"] == "true"
    assert "fields" not in params
