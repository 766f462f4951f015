"""Tests for continue-watching evaluation."""

from datetime import datetime, timezone

from rowsync.core.contracts import AspectRatio, CatalogItem, ItemKind, WatchState
from rowsync.core.watch_next import evaluate, ticks_to_ms, watch_state

NOW_MS = 1_700_000_000_000
CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)
PLAYED = datetime(2024, 6, 1, 12, 30, tzinfo=timezone.utc)


def make_episode(**kwargs) -> CatalogItem:
    kwargs.setdefault("id", "ep-1")
    kwargs.setdefault("name", "Pilot")
    kwargs.setdefault("kind", ItemKind.EPISODE)
    return CatalogItem(**kwargs)


def test_ticks_to_ms_truncates():
    assert ticks_to_ms(12_345_000) == 1234
    assert ticks_to_ms(9_999) == 0


def test_watch_state_progress_dominates_index():
    assert watch_state(make_episode(playback_position_ticks=10, index_number=1)) == WatchState.CONTINUE


def test_watch_state_first_episode_is_new():
    assert watch_state(make_episode(index_number=1)) == WatchState.NEW
    assert watch_state(make_episode(index_number=1, playback_position_ticks=0)) == WatchState.NEW


def test_watch_state_other_episodes_are_next():
    assert watch_state(make_episode(index_number=4)) == WatchState.NEXT
    assert watch_state(make_episode()) == WatchState.NEXT


def test_continue_entry_uses_position_and_last_played(context):
    item = make_episode(
        series_name="Show",
        playback_position_ticks=12_345_000,
        run_time_ticks=36_000_000_000,
        last_played_at=PLAYED,
        created_at=CREATED,
    )

    entry = evaluate(item, False, context, NOW_MS)

    assert entry.watch_state == WatchState.CONTINUE
    assert entry.last_playback_position_ms == 1234
    assert entry.duration_ms == 3_600_000
    assert entry.last_engagement_ms == int(PLAYED.timestamp() * 1000)
    assert entry.title == "Show - Pilot"
    assert entry.kind == ItemKind.EPISODE
    assert entry.poster_aspect == AspectRatio.WIDE
    assert entry.internal_provider_id == "ep-1"
    assert entry.launch.item_id == "ep-1"


def test_continue_without_last_played_keeps_creation_time(context):
    item = make_episode(playback_position_ticks=50_000, created_at=CREATED)

    entry = evaluate(item, False, context, NOW_MS)

    assert entry.last_engagement_ms == int(CREATED.timestamp() * 1000)


def test_new_entry_engagement_is_creation_time(context):
    entry = evaluate(make_episode(index_number=1, created_at=CREATED), False, context, NOW_MS)

    assert entry.watch_state == WatchState.NEW
    assert entry.last_playback_position_ms is None
    assert entry.last_engagement_ms == int(CREATED.timestamp() * 1000)


def test_engagement_defaults_to_now(context):
    entry = evaluate(make_episode(index_number=3), False, context, NOW_MS)

    assert entry.watch_state == WatchState.NEXT
    assert entry.last_engagement_ms == NOW_MS
    assert entry.duration_ms is None


def test_title_without_series(context):
    assert evaluate(make_episode(), False, context, NOW_MS).title == "Pilot"


def test_movie_entry(context):
    item = CatalogItem(
        id="m-1",
        name="Film",
        kind=ItemKind.MOVIE,
        parent_thumb_item_id="other",
        playback_position_ticks=20_000,
    )

    entry = evaluate(item, True, context, NOW_MS)

    assert entry.kind == ItemKind.MOVIE
    assert entry.title == "Film"
    assert entry.poster_aspect == AspectRatio.MOVIE_POSTER
    assert entry.poster_uri == "placeholder://tile"
    assert entry.last_playback_position_ms == 2


def test_episode_uses_series_thumb_when_preferred(context):
    item = make_episode(parent_thumb_item_id="series-1")

    preferred = evaluate(item, True, context, NOW_MS)
    plain = evaluate(item, False, context, NOW_MS)

    assert "/Items/series-1/Images/Thumb" in preferred.poster_uri
    assert plain.poster_uri == "placeholder://tile"


def test_evaluate_is_deterministic(context):
    item = make_episode(series_name="Show", index_number=2)
    assert evaluate(item, False, context, NOW_MS) == evaluate(item, False, context, NOW_MS)
