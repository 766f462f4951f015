"""Jellyfin API client with retry logic."""

import asyncio
import re
from datetime import datetime, timezone
from typing import Any, Sequence
from urllib.parse import urlencode

import httpx

from rowsync import __version__
from rowsync.core.contracts import CatalogItem, ImageType, ItemKind
from rowsync.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 3
BASE_BACKOFF = 1.0

_FRACTION_RE = re.compile(r"\.(\d+)")


class GatewayError(Exception):
    """Base exception for catalog API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayAuthError(GatewayError):
    """The server rejected the session token."""

    def __init__(self, status_code: int):
        super().__init__("Session rejected by server", status_code=status_code)


def parse_datetime(value: str | None) -> datetime | None:
    """Parse a Jellyfin timestamp ("2021-05-01T12:34:56.1234567Z").

    Jellyfin sends seven fractional digits; they are cut to microseconds.
    """
    if not value:
        return None
    text = value.replace("Z", "+00:00")
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unparseable catalog timestamp: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def item_from_api(data: dict[str, Any]) -> CatalogItem:
    """Convert a BaseItemDto payload into a CatalogItem.

    Args:
        data: Item JSON object from the Jellyfin API

    Returns:
        CatalogItem
    """
    user_data = data.get("UserData") or {}
    image_tags = data.get("ImageTags") or {}
    item_type = data.get("Type")

    return CatalogItem(
        id=str(data.get("Id", "")),
        name=data.get("Name") or "",
        kind=ItemKind.from_api_type(item_type),
        item_type=item_type,
        series_name=data.get("SeriesName"),
        series_id=data.get("SeriesId"),
        parent_thumb_item_id=data.get("ParentThumbItemId"),
        has_primary_image="Primary" in image_tags,
        collection_type=data.get("CollectionType"),
        taglines=tuple(data.get("Taglines") or ()),
        album_artist=data.get("AlbumArtist"),
        index_number=data.get("IndexNumber"),
        index_number_end=data.get("IndexNumberEnd"),
        parent_index_number=data.get("ParentIndexNumber"),
        playback_position_ticks=user_data.get("PlaybackPositionTicks"),
        last_played_at=parse_datetime(user_data.get("LastPlayedDate")),
        created_at=parse_datetime(data.get("DateCreated")),
        run_time_ticks=data.get("RunTimeTicks"),
    )


def _items(payload: Any) -> list[CatalogItem]:
    """Extract items from either a bare list or a ``{"Items": [...]}`` result."""
    if isinstance(payload, dict):
        payload = payload.get("Items") or []
    return [item_from_api(entry) for entry in payload if isinstance(entry, dict)]


def _csv(values: Sequence[str]) -> str:
    return ",".join(values)


class JellyfinClient:
    """Async Jellyfin API client bound to one server and access token."""

    def __init__(
        self,
        server_url: str,
        access_token: str,
        client_name: str = "rowsync",
        device_name: str = "rowsync",
        device_id: str = "rowsync-worker",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            server_url: Base URL of the Jellyfin server
            access_token: Access token of the authenticated user
            client_name: Client name reported to the server
            device_name: Device name reported to the server
            device_id: Stable device identifier
            timeout: Request timeout in seconds
        """
        self.server_url = server_url.rstrip("/")
        self.access_token = access_token
        self.client_name = client_name
        self.device_name = device_name
        self.device_id = device_id
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def authorization(self) -> str:
        return (
            f'MediaBrowser Client="{self.client_name}", Device="{self.device_name}", '
            f'DeviceId="{self.device_id}", Version="{__version__}", '
            f'Token="{self.access_token}"'
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.server_url,
                headers={
                    "Authorization": self.authorization,
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            path: API path (e.g., "/Shows/NextUp")
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            GatewayAuthError: On 401/403
            GatewayError: On API error after retries exhausted
        """
        client = await self._get_client()
        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await client.request(method, path, params=params)

                if response.status_code == 200:
                    return response.json()

                if response.status_code in (401, 403):
                    raise GatewayAuthError(response.status_code)

                if response.status_code == 429 or response.status_code >= 500:
                    retry_after = response.headers.get("Retry-After")
                    wait_time = (
                        int(retry_after)
                        if retry_after and retry_after.isdigit()
                        else BASE_BACKOFF * (2 ** attempt)
                    )
                    logger.warning(
                        f"Jellyfin returned {response.status_code} for {path}, "
                        f"retry in {wait_time}s (attempt {attempt + 1}/{MAX_RETRIES})"
                    )
                    if attempt < MAX_RETRIES - 1:
                        await asyncio.sleep(wait_time)
                        continue
                    raise GatewayError(
                        f"Server error: {response.status_code}",
                        status_code=response.status_code,
                    )

                raise GatewayError(
                    f"HTTP {response.status_code} for {path}",
                    status_code=response.status_code,
                )

            except httpx.TimeoutException as e:
                wait_time = BASE_BACKOFF * (2 ** attempt)
                logger.warning(
                    f"Jellyfin timeout on {path}, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(wait_time)
                    continue

            except httpx.RequestError as e:
                wait_time = BASE_BACKOFF * (2 ** attempt)
                logger.warning(
                    f"Jellyfin request error on {path}: {e}, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(wait_time)
                    continue

        raise GatewayError(f"Max retries exceeded: {last_error}")

    async def list_libraries(self, user_id: str, include_hidden: bool = False) -> list[CatalogItem]:
        """Fetch the user's library views.

        Args:
            user_id: Jellyfin user ID
            include_hidden: Include views hidden from the home screen

        Returns:
            Library views as CatalogItems
        """
        response = await self._request(
            "GET",
            f"/Users/{user_id}/Views",
            params={"includeHidden": str(include_hidden).lower()},
        )
        return _items(response)

    async def latest_items_excludes(self, user_id: str) -> list[str]:
        """Fetch the library ids the user excluded from "latest" rows."""
        response = await self._request("GET", f"/Users/{user_id}")
        configuration = response.get("Configuration") or {}
        return list(configuration.get("LatestItemsExcludes") or [])

    async def latest_items(
        self,
        user_id: str,
        library_id: str,
        image_limit: int = 1,
        limit: int = 25,
        fields: Sequence[str] = (),
        group_items: bool = True,
    ) -> list[CatalogItem]:
        """Fetch the most recently added items of a library.

        Args:
            user_id: Jellyfin user ID
            library_id: Parent library view ID
            image_limit: Max images of each type per item
            limit: Max items
            fields: Extra item fields to include (e.g., "DateCreated")
            group_items: Group episodes into their series

        Returns:
            Latest items, newest first
        """
        params: dict[str, Any] = {
            "parentId": library_id,
            "imageTypeLimit": image_limit,
            "limit": limit,
            "groupItems": str(group_items).lower(),
        }
        if fields:
            params["fields"] = _csv(fields)
        response = await self._request("GET", f"/Users/{user_id}/Items/Latest", params=params)
        return _items(response)

    async def next_up(
        self,
        user_id: str,
        image_limit: int = 1,
        limit: int = 10,
        fields: Sequence[str] = (),
    ) -> list[CatalogItem]:
        """Fetch next-up episodes for the user.

        Returns:
            Next-up episodes
        """
        params: dict[str, Any] = {
            "userId": user_id,
            "imageTypeLimit": image_limit,
            "limit": limit,
        }
        if fields:
            params["fields"] = _csv(fields)
        response = await self._request("GET", "/Shows/NextUp", params=params)
        return _items(response)

    async def resumable(
        self,
        user_id: str,
        media_types: Sequence[str] = ("Video",),
        image_limit: int = 1,
        limit: int = 5,
        fields: Sequence[str] = (),
        sort: Sequence[str] = ("DatePlayed",),
    ) -> list[CatalogItem]:
        """Fetch partially played items, most recently played first.

        Returns:
            Resumable items
        """
        params: dict[str, Any] = {
            "recursive": "true",
            "filters": "IsResumable",
            "mediaTypes": _csv(media_types),
            "excludeLocationTypes": "Virtual",
            "collapseBoxSetItems": "false",
            "enableTotalRecordCount": "false",
            "sortBy": _csv(sort),
            "sortOrder": "Descending",
            "imageTypeLimit": image_limit,
            "limit": limit,
        }
        if fields:
            params["fields"] = _csv(fields)
        response = await self._request("GET", f"/Users/{user_id}/Items", params=params)
        return _items(response)

    def image_url(
        self,
        item_id: str,
        image_type: ImageType = ImageType.PRIMARY,
        format: str = "Png",
        max_width: int | None = None,
        max_height: int | None = None,
    ) -> str:
        """Build the URL of an item image. No request is made.

        Args:
            item_id: Item owning the image
            image_type: Primary, Thumb, ...
            format: Image format requested from the server
            max_width: Optional max width in pixels
            max_height: Optional max height in pixels

        Returns:
            Absolute image URL
        """
        params: dict[str, Any] = {"format": format}
        if max_width is not None:
            params["maxWidth"] = max_width
        if max_height is not None:
            params["maxHeight"] = max_height
        image_type_name = image_type.value if isinstance(image_type, ImageType) else image_type
        return f"{self.server_url}/Items/{item_id}/Images/{image_type_name}?{urlencode(params)}"
