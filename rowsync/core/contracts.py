"""Domain contracts and type definitions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol, Sequence

# Catalog time unit: 10,000 ticks per millisecond
TICKS_IN_MILLISECOND = 10000


class ItemKind(str, Enum):
    """Closed set of catalog item kinds a row can render."""

    LIBRARY = "library"
    MOVIE = "movie"
    EPISODE = "episode"
    SERIES = "series"
    ALBUM = "album"
    ARTIST = "artist"
    PHOTO = "photo"
    UNKNOWN = "unknown"

    @classmethod
    def from_api_type(cls, item_type: str | None) -> "ItemKind":
        """Map a catalog ``Type`` string to a kind, UNKNOWN when unrecognized."""
        return _API_TYPES.get(item_type or "", cls.UNKNOWN)


_API_TYPES: dict[str, ItemKind] = {
    "CollectionFolder": ItemKind.LIBRARY,
    "UserView": ItemKind.LIBRARY,
    "Movie": ItemKind.MOVIE,
    "Episode": ItemKind.EPISODE,
    "Series": ItemKind.SERIES,
    "MusicAlbum": ItemKind.ALBUM,
    "MusicArtist": ItemKind.ARTIST,
    "PhotoAlbum": ItemKind.PHOTO,
    "Photo": ItemKind.PHOTO,
}


class AspectRatio(str, Enum):
    """Poster aspect ratios understood by the host row store."""

    WIDE = "16:9"
    FOUR_THREE = "4:3"
    SQUARE = "1:1"
    MOVIE_POSTER = "movie_poster"


class WatchState(str, Enum):
    """Continue-watching state of a queue entry."""

    CONTINUE = "continue"
    NEW = "new"
    NEXT = "next"


class SyncOutcome(str, Enum):
    """Terminal outcome reported to the scheduler."""

    SUCCESS = "success"
    FAILURE = "failure"
    RETRY = "retry"


class ImageType(str, Enum):
    """Catalog image types used for posters."""

    PRIMARY = "Primary"
    THUMB = "Thumb"


@dataclass(frozen=True)
class CatalogItem:
    """Read-only view of a catalog item (movie, episode, library view, ...)."""

    id: str
    name: str
    kind: ItemKind
    item_type: str | None = None
    series_name: str | None = None
    series_id: str | None = None
    parent_thumb_item_id: str | None = None
    has_primary_image: bool = False
    collection_type: str | None = None
    taglines: tuple[str, ...] = ()
    album_artist: str | None = None
    index_number: int | None = None
    index_number_end: int | None = None
    parent_index_number: int | None = None
    playback_position_ticks: int | None = None
    last_played_at: datetime | None = None
    created_at: datetime | None = None
    run_time_ticks: int | None = None


@dataclass(frozen=True)
class RowSettings:
    """Display settings of a logical row."""

    display_name: str
    app_link: str
    default_visible: bool = False
    row_type: str = "preview"


@dataclass(frozen=True)
class LaunchTarget:
    """What the host opens when an entry is selected."""

    item_id: str
    is_library_view: bool = False


@dataclass(frozen=True)
class RowEntry:
    """One recommendation inside a row."""

    channel_id: int
    kind: ItemKind
    title: str
    poster_uri: str
    poster_aspect: AspectRatio
    launch: LaunchTarget
    episode_title: str | None = None
    description: str | None = None
    season_label: str | None = None
    season_number: int | None = None
    episode_label: str | None = None
    episode_number: int | None = None


@dataclass(frozen=True)
class WatchNextEntry:
    """One entry of the continue-watching queue."""

    kind: ItemKind
    title: str
    poster_uri: str
    poster_aspect: AspectRatio
    launch: LaunchTarget
    internal_provider_id: str
    watch_state: WatchState
    last_engagement_ms: int
    last_playback_position_ms: int | None = None
    duration_ms: int | None = None


@dataclass(frozen=True)
class SessionContext:
    """Authenticated catalog session handed to a sync run."""

    server_url: str
    user_id: str
    access_token: str

    @property
    def is_authenticated(self) -> bool:
        return bool(self.server_url and self.user_id and self.access_token)


@dataclass
class PublishedRow:
    """Result of publishing one row."""

    name: str
    channel_id: int
    entries: list[RowEntry] = field(default_factory=list)
    dropped: int = 0


class ImageUrlBuilder(Protocol):
    """Builds poster URLs; pure string formatting, no I/O."""

    def __call__(
        self,
        item_id: str,
        image_type: ImageType = ImageType.PRIMARY,
        format: str = "Png",
        max_width: int | None = None,
        max_height: int | None = None,
    ) -> str: ...


class KeyValueStore(Protocol):
    """Local string key-value persistence."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class RowStore(Protocol):
    """Host storage for rows, row entries and the continue-watching queue."""

    async def create_channel(self, settings: RowSettings) -> int: ...

    async def update_channel(self, channel_id: int, settings: RowSettings) -> bool: ...

    async def request_browsable(self, channel_id: int) -> None: ...

    async def clear_preview_programs(self) -> int: ...

    async def replace_programs(self, channel_id: int, entries: Sequence[RowEntry]) -> int: ...

    async def replace_watch_next(self, entries: Sequence[WatchNextEntry]) -> int: ...


class CatalogGateway(Protocol):
    """Read-only catalog queries used by a sync run."""

    async def list_libraries(
        self, user_id: str, include_hidden: bool = False
    ) -> list[CatalogItem]: ...

    async def latest_items_excludes(self, user_id: str) -> list[str]: ...

    async def latest_items(
        self,
        user_id: str,
        library_id: str,
        image_limit: int = 1,
        limit: int = 25,
        fields: Sequence[str] = (),
        group_items: bool = True,
    ) -> list[CatalogItem]: ...

    async def next_up(
        self,
        user_id: str,
        image_limit: int = 1,
        limit: int = 10,
        fields: Sequence[str] = (),
    ) -> list[CatalogItem]: ...

    async def resumable(
        self,
        user_id: str,
        media_types: Sequence[str] = ("Video",),
        image_limit: int = 1,
        limit: int = 5,
        fields: Sequence[str] = (),
        sort: Sequence[str] = ("DatePlayed",),
    ) -> list[CatalogItem]: ...

    def image_url(
        self,
        item_id: str,
        image_type: ImageType = ImageType.PRIMARY,
        format: str = "Png",
        max_width: int | None = None,
        max_height: int | None = None,
    ) -> str: ...
