"""Mapping of catalog items to typed row entries.

Everything here is pure: the only "I/O" is building poster URLs, which is
string formatting done by the catalog client's ``image_url``.
"""

from dataclasses import dataclass
from typing import Callable

from rowsync.core.contracts import (
    AspectRatio,
    CatalogItem,
    ImageType,
    ImageUrlBuilder,
    ItemKind,
    LaunchTarget,
    RowEntry,
)

# Size of the series thumbnail used in place of an episode image
PARENT_THUMB_WIDTH = 512
PARENT_THUMB_HEIGHT = 288

POSTER_ASPECTS: dict[ItemKind, AspectRatio] = {
    ItemKind.LIBRARY: AspectRatio.WIDE,
    ItemKind.MOVIE: AspectRatio.MOVIE_POSTER,
    ItemKind.EPISODE: AspectRatio.WIDE,
    ItemKind.SERIES: AspectRatio.MOVIE_POSTER,
    ItemKind.ALBUM: AspectRatio.SQUARE,
    ItemKind.ARTIST: AspectRatio.SQUARE,
    ItemKind.PHOTO: AspectRatio.FOUR_THREE,
}


@dataclass(frozen=True)
class ClassifyContext:
    """Per-row options for classification."""

    image_url: ImageUrlBuilder
    placeholder_uri: str
    prefer_parent_thumb: bool = False


def poster_url(item: CatalogItem, context: ClassifyContext) -> str:
    """Pick the poster for an item.

    Own primary image first, then the parent thumbnail when the row prefers
    it, then the placeholder.
    """
    if item.has_primary_image:
        return context.image_url(item.id, ImageType.PRIMARY, "Png")

    if context.prefer_parent_thumb and item.parent_thumb_item_id:
        return context.image_url(
            item.parent_thumb_item_id,
            ImageType.THUMB,
            "Png",
            PARENT_THUMB_WIDTH,
            PARENT_THUMB_HEIGHT,
        )

    return context.placeholder_uri


def format_index(index: int | None, index_end: int | None) -> str:
    """Render an episode number as displayed by the host ("5", "5-7" or "")."""
    if index is not None and index_end is not None:
        return f"{index}-{index_end}"
    if index is not None:
        return str(index)
    return ""


def _base(item: CatalogItem, channel_id: int, context: ClassifyContext, **fields) -> RowEntry:
    fields.setdefault("title", item.name)
    return RowEntry(
        channel_id=channel_id,
        kind=item.kind,
        poster_uri=poster_url(item, context),
        poster_aspect=POSTER_ASPECTS[item.kind],
        launch=LaunchTarget(item_id=item.id),
        **fields,
    )


def _library(item: CatalogItem, channel_id: int, context: ClassifyContext) -> RowEntry:
    return RowEntry(
        channel_id=channel_id,
        kind=ItemKind.LIBRARY,
        title=item.name,
        poster_uri=poster_url(item, context),
        poster_aspect=POSTER_ASPECTS[ItemKind.LIBRARY],
        launch=LaunchTarget(item_id=item.id, is_library_view=True),
    )


def _movie(item: CatalogItem, channel_id: int, context: ClassifyContext) -> RowEntry:
    description = item.taglines[0] if item.taglines else ""
    return _base(item, channel_id, context, description=description)


def _episode(item: CatalogItem, channel_id: int, context: ClassifyContext) -> RowEntry:
    season = item.parent_index_number
    return _base(
        item,
        channel_id,
        context,
        title=item.series_name or "",
        episode_title=item.name,
        season_label=str(season) if season is not None else "",
        season_number=season or 0,
        episode_label=format_index(item.index_number, item.index_number_end),
        episode_number=item.index_number or 0,
    )


def _album(item: CatalogItem, channel_id: int, context: ClassifyContext) -> RowEntry:
    return _base(item, channel_id, context, description=item.album_artist or "")


def _plain(item: CatalogItem, channel_id: int, context: ClassifyContext) -> RowEntry:
    return _base(item, channel_id, context)


_BUILDERS: dict[ItemKind, Callable[[CatalogItem, int, ClassifyContext], RowEntry] | None] = {
    ItemKind.LIBRARY: _library,
    ItemKind.MOVIE: _movie,
    ItemKind.EPISODE: _episode,
    ItemKind.SERIES: _plain,
    ItemKind.ALBUM: _album,
    ItemKind.ARTIST: _plain,
    ItemKind.PHOTO: _plain,
    ItemKind.UNKNOWN: None,
}


def classify(item: CatalogItem, channel_id: int, context: ClassifyContext) -> RowEntry | None:
    """Build the row entry for an item, or None when its kind is not rendered.

    Args:
        item: Catalog item
        channel_id: Host id of the row the entry belongs to
        context: Poster options for the row

    Returns:
        RowEntry, or None for UNKNOWN items
    """
    builder = _BUILDERS[item.kind]
    if builder is None:
        return None
    return builder(item, channel_id, context)
