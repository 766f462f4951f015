"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_EXCLUDED_COLLECTION_TYPES = "playlists,livetv,boxsets,channels,books"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    # Service settings
    host: str
    port: int
    database_url: str
    admin_token: str | None
    log_level: str

    # Jellyfin server and session
    jellyfin_server_url: str | None
    jellyfin_user_id: str | None
    jellyfin_access_token: str | None
    jellyfin_client_name: str
    jellyfin_device_name: str
    jellyfin_device_id: str
    jellyfin_request_timeout: int

    # Channel sync
    channels_supported: bool
    channel_sync_enabled: bool
    channel_sync_interval_minutes: int
    channel_sync_retry_seconds: int
    series_thumbnails_enabled: bool
    latest_items_limit: int
    next_up_limit: int
    resume_limit: int
    excluded_collection_types: list[str]
    default_row: str

    # Row presentation
    label_my_media: str
    label_latest: str
    label_next_up: str
    app_link: str
    placeholder_image_uri: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        host = os.getenv("HOST", "0.0.0.0")
        port_str = os.getenv("PORT", "8000")
        try:
            port = int(port_str)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got: {port_str}")

        database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./rowsync.db")
        admin_token = os.getenv("ADMIN_TOKEN") or None
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        jellyfin_server_url = os.getenv("JELLYFIN_SERVER_URL") or None
        if jellyfin_server_url is not None:
            if not jellyfin_server_url.startswith(("http://", "https://")):
                raise ConfigurationError(
                    f"JELLYFIN_SERVER_URL must start with http:// or https://, "
                    f"got: {jellyfin_server_url}"
                )
            jellyfin_server_url = jellyfin_server_url.rstrip("/")

        sync_interval = _env_int("CHANNEL_SYNC_INTERVAL_MINUTES", 60)
        if sync_interval <= 0:
            raise ConfigurationError("CHANNEL_SYNC_INTERVAL_MINUTES must be positive")

        retry_seconds = _env_int("CHANNEL_SYNC_RETRY_SECONDS", 300)
        if retry_seconds < 0:
            raise ConfigurationError("CHANNEL_SYNC_RETRY_SECONDS must not be negative")

        return cls(
            host=host,
            port=port,
            database_url=database_url,
            admin_token=admin_token,
            log_level=log_level,
            jellyfin_server_url=jellyfin_server_url,
            jellyfin_user_id=os.getenv("JELLYFIN_USER_ID") or None,
            jellyfin_access_token=os.getenv("JELLYFIN_ACCESS_TOKEN") or None,
            jellyfin_client_name=os.getenv("JELLYFIN_CLIENT_NAME", "rowsync"),
            jellyfin_device_name=os.getenv("JELLYFIN_DEVICE_NAME", "rowsync"),
            jellyfin_device_id=os.getenv("JELLYFIN_DEVICE_ID", "rowsync-worker"),
            jellyfin_request_timeout=_env_int("JELLYFIN_REQUEST_TIMEOUT", 30),
            channels_supported=_env_bool("CHANNELS_SUPPORTED", "true"),
            channel_sync_enabled=_env_bool("CHANNEL_SYNC_ENABLED", "true"),
            channel_sync_interval_minutes=sync_interval,
            channel_sync_retry_seconds=retry_seconds,
            series_thumbnails_enabled=_env_bool("SERIES_THUMBNAILS_ENABLED", "false"),
            latest_items_limit=_env_int("LATEST_ITEMS_LIMIT", 25),
            next_up_limit=_env_int("NEXT_UP_LIMIT", 10),
            resume_limit=_env_int("RESUME_LIMIT", 5),
            excluded_collection_types=_env_list(
                "EXCLUDED_COLLECTION_TYPES", DEFAULT_EXCLUDED_COLLECTION_TYPES
            ),
            default_row=os.getenv("DEFAULT_ROW", "my_media"),
            label_my_media=os.getenv("LABEL_MY_MEDIA", "My Media"),
            label_latest=os.getenv("LABEL_LATEST", "Latest"),
            label_next_up=os.getenv("LABEL_NEXT_UP", "Next Up"),
            app_link=os.getenv("APP_LINK", "rowsync://startup"),
            placeholder_image_uri=os.getenv(
                "PLACEHOLDER_IMAGE_URI", "rowsync://drawable/tile_land_tv"
            ),
        )


config = Config.from_env()
