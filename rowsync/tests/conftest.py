"""Pytest configuration and shared fixtures."""

import os

# Set test environment variables before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_rowsync.db"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["CHANNELS_SUPPORTED"] = "true"
os.environ["CHANNEL_SYNC_ENABLED"] = "false"
os.environ.pop("JELLYFIN_SERVER_URL", None)

import pytest

from rowsync.core.contracts import CatalogItem, ImageType, ItemKind, RowSettings


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


def fake_image_url(
    item_id,
    image_type=ImageType.PRIMARY,
    format="Png",
    max_width=None,
    max_height=None,
):
    """Deterministic stand-in for JellyfinClient.image_url."""
    url = f"http://jf/Items/{item_id}/Images/{image_type.value}?format={format}"
    if max_width is not None:
        url += f"&maxWidth={max_width}"
    if max_height is not None:
        url += f"&maxHeight={max_height}"
    return url


class MemoryPreferences:
    """In-memory KeyValueStore."""

    def __init__(self, values=None):
        self.values = dict(values or {})

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value):
        self.values[key] = value


class RecordingRowStore:
    """In-memory RowStore that records every call."""

    def __init__(self):
        self.calls = []
        self.channels: dict[int, RowSettings] = {}
        self.browsable: set[int] = set()
        self.programs: dict[int, list] = {}
        self.watch_next = []
        self.fail_on: str | None = None
        self._next_id = 1

    def _call(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise RuntimeError(f"{name} rejected")

    async def create_channel(self, settings):
        self._call("create_channel", settings)
        channel_id = self._next_id
        self._next_id += 1
        self.channels[channel_id] = settings
        return channel_id

    async def update_channel(self, channel_id, settings):
        self._call("update_channel", channel_id, settings)
        if channel_id not in self.channels:
            return False
        self.channels[channel_id] = settings
        return True

    async def request_browsable(self, channel_id):
        self._call("request_browsable", channel_id)
        self.browsable.add(channel_id)

    async def clear_preview_programs(self):
        self._call("clear_preview_programs")
        cleared = sum(len(entries) for entries in self.programs.values())
        self.programs = {}
        return cleared

    async def replace_programs(self, channel_id, entries):
        self._call("replace_programs", channel_id)
        self.programs[channel_id] = list(entries)
        return len(entries)

    async def replace_watch_next(self, entries):
        self._call("replace_watch_next")
        self.watch_next = list(entries)
        return len(entries)

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def preferences():
    return MemoryPreferences()


@pytest.fixture
def row_store():
    return RecordingRowStore()


@pytest.fixture
def image_url():
    return fake_image_url


@pytest.fixture
def context():
    from rowsync.core.classifier import ClassifyContext

    return ClassifyContext(image_url=fake_image_url, placeholder_uri="placeholder://tile")


class FakeGateway:
    """CatalogGateway returning canned items and counting calls."""

    def __init__(self, image_url):
        self.image_url = image_url
        self.calls: list[str] = []
        self.libraries = [
            CatalogItem(id="lib-movies", name="Movies", kind=ItemKind.LIBRARY, collection_type="movies"),
            CatalogItem(id="lib-shows", name="Shows", kind=ItemKind.LIBRARY, collection_type="tvshows"),
        ]
        self.excludes: list[str] = []
        self.latest: dict[str, list[CatalogItem]] = {
            "lib-movies": [CatalogItem(id="m-1", name="Film", kind=ItemKind.MOVIE)],
            "lib-shows": [
                CatalogItem(id="e-9", name="Finale", kind=ItemKind.EPISODE, series_name="Show"),
            ],
        }
        self.next_up_items = [
            CatalogItem(id="e-1", name="Pilot", kind=ItemKind.EPISODE, series_name="Show", index_number=1),
        ]
        self.resume_items = [
            CatalogItem(
                id="m-2",
                name="Half Watched",
                kind=ItemKind.MOVIE,
                playback_position_ticks=600_000_000,
            ),
        ]
        self.error: Exception | None = None

    def _call(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    async def list_libraries(self, user_id, include_hidden=False):
        self._call("list_libraries")
        return list(self.libraries)

    async def latest_items_excludes(self, user_id):
        self._call("latest_items_excludes")
        return list(self.excludes)

    async def latest_items(self, user_id, library_id, image_limit=1, limit=25, fields=(), group_items=True):
        self._call("latest_items")
        return list(self.latest.get(library_id, []))

    async def next_up(self, user_id, image_limit=1, limit=10, fields=()):
        self._call("next_up")
        return list(self.next_up_items)

    async def resumable(self, user_id, media_types=("Video",), image_limit=1, limit=5, fields=(), sort=("DatePlayed",)):
        self._call("resumable")
        return list(self.resume_items)

    async def close(self):
        self.calls.append("close")


@pytest.fixture
def gateway():
    return FakeGateway(fake_image_url)
