"""Remote catalog providers."""

from rowsync.providers.jellyfin_client import (
    GatewayAuthError,
    GatewayError,
    JellyfinClient,
    item_from_api,
    parse_datetime,
)

__all__ = [
    "GatewayAuthError",
    "GatewayError",
    "JellyfinClient",
    "item_from_api",
    "parse_datetime",
]
