"""Continue-watching queue evaluation."""

import time
from dataclasses import replace
from datetime import datetime

from rowsync.core.classifier import ClassifyContext, poster_url
from rowsync.core.contracts import (
    TICKS_IN_MILLISECOND,
    AspectRatio,
    CatalogItem,
    ItemKind,
    LaunchTarget,
    WatchNextEntry,
    WatchState,
)


def ticks_to_ms(ticks: int) -> int:
    """Convert catalog ticks to whole milliseconds."""
    return ticks // TICKS_IN_MILLISECOND


def _to_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def watch_state(item: CatalogItem) -> WatchState:
    """Derive the watch state from playback progress and episode index."""
    if item.playback_position_ticks and item.playback_position_ticks > 0:
        return WatchState.CONTINUE
    if item.index_number == 1:
        return WatchState.NEW
    return WatchState.NEXT


def evaluate(
    item: CatalogItem,
    prefer_parent_thumb: bool,
    context: ClassifyContext,
    now_ms: int | None = None,
) -> WatchNextEntry:
    """Build the continue-watching entry for an item.

    The result depends only on the item, the options and ``now_ms``; the wall
    clock is read only when ``now_ms`` is not given and the item has no
    creation date.

    Args:
        item: Resumable or next-up catalog item
        prefer_parent_thumb: Use the series thumbnail when the item lacks an image
        context: Poster options (image URL builder, placeholder)
        now_ms: Evaluation time in milliseconds since epoch

    Returns:
        WatchNextEntry
    """
    if item.kind == ItemKind.MOVIE:
        kind = ItemKind.MOVIE
        title = item.name
        poster = poster_url(item, replace(context, prefer_parent_thumb=False))
        aspect = AspectRatio.MOVIE_POSTER
    else:
        kind = ItemKind.EPISODE
        title = f"{item.series_name} - {item.name}" if item.series_name else item.name
        poster = poster_url(item, replace(context, prefer_parent_thumb=prefer_parent_thumb))
        aspect = AspectRatio.WIDE

    if item.created_at is not None:
        engagement_ms = _to_ms(item.created_at)
    elif now_ms is not None:
        engagement_ms = now_ms
    else:
        engagement_ms = int(time.time() * 1000)

    state = watch_state(item)
    position_ms = None
    if state == WatchState.CONTINUE:
        position_ms = ticks_to_ms(item.playback_position_ticks)
        if item.last_played_at is not None:
            engagement_ms = _to_ms(item.last_played_at)

    duration_ms = None
    if item.run_time_ticks is not None:
        duration_ms = ticks_to_ms(item.run_time_ticks)

    return WatchNextEntry(
        kind=kind,
        title=title,
        poster_uri=poster,
        poster_aspect=aspect,
        launch=LaunchTarget(item_id=item.id),
        internal_provider_id=item.id,
        watch_state=state,
        last_engagement_ms=engagement_ms,
        last_playback_position_ms=position_ms,
        duration_ms=duration_ms,
    )
