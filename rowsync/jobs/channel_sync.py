"""Leanback channel sync job.

Rebuilds the "my media", "latest <library>" and "next up" rows plus the
continue-watching queue from the Jellyfin catalog. Every run is a full
rebuild; the outcome tells the scheduler whether to retry.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from rowsync.config import Config, config
from rowsync.core.classifier import ClassifyContext
from rowsync.core.contracts import (
    CatalogGateway,
    CatalogItem,
    PublishedRow,
    RowSettings,
    RowStore,
    SessionContext,
    SyncOutcome,
)
from rowsync.core.publisher import RowPublisher
from rowsync.core.row_keys import RowKeyStore
from rowsync.core.watch_next import evaluate
from rowsync.logging import get_logger
from rowsync.providers.jellyfin_client import GatewayAuthError, JellyfinClient
from rowsync.storage import EventsRepo, PreferencesRepo, SqlRowStore, get_session_factory

logger = get_logger(__name__)

MY_MEDIA_ROW = "my_media"
NEXT_UP_ROW = "next_up"
LATEST_ROW_PREFIX = "latest_"

# Error of a trigger skipped because another sync is running
SYNC_IN_PROGRESS = "sync_in_progress"

ITEM_FIELDS = ("DateCreated",)
LATEST_ITEM_FIELDS = ("DateCreated", "Taglines")


class CapabilityError(Exception):
    """The host cannot display recommendation rows."""


class SessionError(Exception):
    """No authenticated catalog session is available."""


@dataclass
class SyncResult:
    """Outcome and statistics of a sync run."""

    outcome: SyncOutcome
    started_at: datetime
    finished_at: datetime | None = None
    rows: list[str] = field(default_factory=list)
    entries_published: int = 0
    watch_next_published: int = 0
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


@dataclass
class FetchedCatalog:
    """Catalog data read before any row is written."""

    resume: list[CatalogItem]
    next_up: list[CatalogItem]
    latest: dict[str, list[CatalogItem]]
    libraries: list[CatalogItem]


@dataclass(frozen=True)
class SyncOptions:
    """Row names, limits and labels of a sync run."""

    app_link: str = "rowsync://startup"
    placeholder_image_uri: str = "rowsync://drawable/tile_land_tv"
    prefer_parent_thumb: bool = False
    latest_items_limit: int = 25
    next_up_limit: int = 10
    resume_limit: int = 5
    excluded_collection_types: Sequence[str] = ("playlists", "livetv", "boxsets", "channels", "books")
    default_row: str = MY_MEDIA_ROW
    label_my_media: str = "My Media"
    label_latest: str = "Latest"
    label_next_up: str = "Next Up"

    @classmethod
    def from_config(cls, cfg: Config) -> "SyncOptions":
        return cls(
            app_link=cfg.app_link,
            placeholder_image_uri=cfg.placeholder_image_uri,
            prefer_parent_thumb=cfg.series_thumbnails_enabled,
            latest_items_limit=cfg.latest_items_limit,
            next_up_limit=cfg.next_up_limit,
            resume_limit=cfg.resume_limit,
            excluded_collection_types=tuple(cfg.excluded_collection_types),
            default_row=cfg.default_row,
            label_my_media=cfg.label_my_media,
            label_latest=cfg.label_latest,
            label_next_up=cfg.label_next_up,
        )


def _record(result: SyncResult, published: PublishedRow) -> None:
    result.rows.append(published.name)
    result.entries_published += len(published.entries)


class ChannelSyncWorker:
    """Runs one synchronization of all rows for a session.

    Only catalog reads run concurrently; row writes happen one at a time in a
    fixed order. Overlapping runs are not guarded here.
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        rows: RowStore,
        keys: RowKeyStore,
        options: SyncOptions,
        is_supported: Callable[[], bool],
    ) -> None:
        self.gateway = gateway
        self.rows = rows
        self.options = options
        self.is_supported = is_supported
        self.context = ClassifyContext(
            image_url=gateway.image_url,
            placeholder_uri=options.placeholder_image_uri,
        )
        self.publisher = RowPublisher(keys, rows, self.context)

    def _row_settings(self, row_name: str, display_name: str) -> RowSettings:
        return RowSettings(
            display_name=display_name,
            app_link=self.options.app_link,
            default_visible=row_name == self.options.default_row,
        )

    def check_preconditions(self, session: SessionContext | None) -> SessionContext:
        """Verify host capability and session before any network call.

        Raises:
            CapabilityError: Host does not support rows
            SessionError: No authenticated session
        """
        if not self.is_supported():
            raise CapabilityError("Host does not support recommendation rows")
        if session is None or not session.is_authenticated:
            raise SessionError("No authenticated user")
        return session

    async def run(self, session: SessionContext | None, now_ms: int | None = None) -> SyncResult:
        """Synchronize every row.

        Args:
            session: Catalog session, None when nobody is signed in
            now_ms: Evaluation time for continue-watching entries

        Returns:
            SyncResult with SUCCESS, FAILURE (permanent or step error) or RETRY
        """
        result = SyncResult(outcome=SyncOutcome.SUCCESS, started_at=datetime.now(timezone.utc))

        try:
            session = self.check_preconditions(session)
        except CapabilityError as e:
            logger.warning(f"Channel sync not possible: {e}")
            return self._finish(result, SyncOutcome.FAILURE, str(e))
        except SessionError as e:
            logger.info(f"Channel sync postponed: {e}")
            return self._finish(result, SyncOutcome.RETRY, str(e))

        try:
            catalog = await self.fetch_catalog(session)
        except GatewayAuthError as e:
            # Nothing has been written yet, so the rows still hold their old content
            logger.warning(f"Channel sync postponed, session rejected: {e}")
            return self._finish(result, SyncOutcome.RETRY, str(e))
        except Exception as e:
            logger.exception(f"Channel sync failed while fetching catalog: {e}")
            return self._finish(result, SyncOutcome.FAILURE, str(e)[:500])

        if now_ms is None:
            now_ms = int(time.time() * 1000)

        try:
            cleared = await self.rows.clear_preview_programs()
            logger.debug(f"Cleared {cleared} preview entries")

            _record(result, await self.update_my_media(catalog.libraries))
            for published in await self.update_latest_items(catalog.latest):
                _record(result, published)
            _record(result, await self.update_next_up(catalog.next_up))

            result.watch_next_published = await self.update_watch_next(
                catalog.resume, catalog.next_up, now_ms
            )
        except Exception as e:
            logger.exception(f"Channel sync failed while writing rows: {e}")
            return self._finish(result, SyncOutcome.FAILURE, str(e)[:500])

        return self._finish(result, SyncOutcome.SUCCESS)

    @staticmethod
    def _finish(result: SyncResult, outcome: SyncOutcome, error: str | None = None) -> SyncResult:
        result.outcome = outcome
        result.error = error
        result.finished_at = datetime.now(timezone.utc)
        return result

    async def fetch_catalog(self, session: SessionContext) -> FetchedCatalog:
        """Read everything the rows need, concurrently."""
        user_id = session.user_id
        resume, next_up, latest, libraries = await asyncio.gather(
            self.gateway.resumable(
                user_id,
                media_types=("Video",),
                image_limit=1,
                limit=self.options.resume_limit,
                fields=ITEM_FIELDS,
                sort=("DatePlayed",),
            ),
            self.gateway.next_up(
                user_id,
                image_limit=1,
                limit=self.options.next_up_limit,
                fields=ITEM_FIELDS,
            ),
            self.fetch_latest_items(user_id),
            self.gateway.list_libraries(user_id, include_hidden=False),
        )
        logger.info(
            f"Fetched catalog: resume={len(resume)}, next_up={len(next_up)}, "
            f"latest_libraries={len(latest)}, libraries={len(libraries)}"
        )
        return FetchedCatalog(resume=resume, next_up=next_up, latest=latest, libraries=libraries)

    async def fetch_latest_items(self, user_id: str) -> dict[str, list[CatalogItem]]:
        """Fetch the latest items of every library shown in "latest" rows.

        Libraries of excluded collection types, and the ones the user excluded
        from "latest", are skipped.

        Returns:
            Library name -> latest items, in library order
        """
        views, user_excludes = await asyncio.gather(
            self.gateway.list_libraries(user_id, include_hidden=False),
            self.gateway.latest_items_excludes(user_id),
        )
        excluded_types = {t.lower() for t in self.options.excluded_collection_types}
        excluded_ids = set(user_excludes)

        libraries = [
            view
            for view in views
            if (view.collection_type or "").lower() not in excluded_types
            and view.id not in excluded_ids
        ]

        results = await asyncio.gather(
            *(
                self.gateway.latest_items(
                    user_id,
                    library.id,
                    image_limit=1,
                    limit=self.options.latest_items_limit,
                    fields=LATEST_ITEM_FIELDS,
                    group_items=True,
                )
                for library in libraries
            )
        )
        latest: dict[str, list[CatalogItem]] = {}
        for library, items in zip(libraries, results):
            if library.name in latest:
                logger.warning(
                    f"Libraries share the name {library.name!r}, row keeps only library {library.id}",
                    extra={"row": LATEST_ROW_PREFIX + library.name},
                )
            latest[library.name] = items
        return latest

    async def update_my_media(self, libraries: Sequence[CatalogItem]) -> PublishedRow:
        """Rebuild the row listing the user's libraries."""
        return await self.publisher.publish(
            MY_MEDIA_ROW,
            self._row_settings(MY_MEDIA_ROW, self.options.label_my_media),
            libraries,
        )

    async def update_latest_items(self, latest: dict[str, Sequence[CatalogItem]]) -> list[PublishedRow]:
        """Rebuild one "latest" row per library."""
        published = []
        for library_name, items in latest.items():
            row_name = LATEST_ROW_PREFIX + library_name
            published.append(
                await self.publisher.publish(
                    row_name,
                    self._row_settings(row_name, f"{self.options.label_latest} {library_name}"),
                    items,
                )
            )
        return published

    async def update_next_up(self, next_up: Sequence[CatalogItem]) -> PublishedRow:
        """Rebuild the next-up row."""
        return await self.publisher.publish(
            NEXT_UP_ROW,
            self._row_settings(NEXT_UP_ROW, self.options.label_next_up),
            next_up,
            prefer_parent_thumb=self.options.prefer_parent_thumb,
        )

    async def update_watch_next(
        self,
        resume: Sequence[CatalogItem],
        next_up: Sequence[CatalogItem],
        now_ms: int,
    ) -> int:
        """Replace the continue-watching queue with resumable and next-up items.

        An item present in both lists is kept once, as its resumable entry.

        Returns:
            Number of queue entries written
        """
        seen: set[str] = set()
        entries = []
        for item in [*resume, *next_up]:
            if item.id in seen:
                continue
            seen.add(item.id)
            entries.append(
                evaluate(item, self.options.prefer_parent_thumb, self.context, now_ms)
            )

        return await self.rows.replace_watch_next(entries)


def load_session_context(cfg: Config = config) -> SessionContext | None:
    """Build the session from configuration, None when it is incomplete."""
    if not (cfg.jellyfin_server_url and cfg.jellyfin_user_id and cfg.jellyfin_access_token):
        return None
    return SessionContext(
        server_url=cfg.jellyfin_server_url,
        user_id=cfg.jellyfin_user_id,
        access_token=cfg.jellyfin_access_token,
    )


def is_channels_supported() -> bool:
    return config.channels_supported


_run_lock = asyncio.Lock()


async def run_channel_sync() -> SyncResult:
    """Run a channel sync unless one is already in progress.

    Periodic and on-demand triggers share this entry point; a call made while
    another run is active returns RETRY without touching anything.

    Returns:
        SyncResult of the run
    """
    if _run_lock.locked():
        logger.warning("Channel sync already running, skipping this trigger")
        now = datetime.now(timezone.utc)
        return SyncResult(
            outcome=SyncOutcome.RETRY,
            started_at=now,
            finished_at=now,
            error=SYNC_IN_PROGRESS,
        )

    async with _run_lock:
        return await _run_channel_sync()


async def _run_channel_sync() -> SyncResult:
    run_id = uuid.uuid4().hex[:12]
    session_context = load_session_context()
    session_factory = get_session_factory()

    logger.info("Starting channel sync", extra={"run_id": run_id})

    client = JellyfinClient(
        server_url=config.jellyfin_server_url or "",
        access_token=config.jellyfin_access_token or "",
        client_name=config.jellyfin_client_name,
        device_name=config.jellyfin_device_name,
        device_id=config.jellyfin_device_id,
        timeout=config.jellyfin_request_timeout,
    )

    async with session_factory() as db:
        events_repo = EventsRepo(db)
        await events_repo.log_event(
            event_name="channel_sync_started",
            run_id=run_id,
            payload={"authenticated": session_context is not None},
        )

        rows = SqlRowStore(db)
        worker = ChannelSyncWorker(
            gateway=client,
            rows=rows,
            keys=RowKeyStore(PreferencesRepo(db), rows),
            options=SyncOptions.from_config(config),
            is_supported=is_channels_supported,
        )

        try:
            result = await worker.run(session_context)
        finally:
            await client.close()

        # A failed write may leave the session mid-transaction
        await db.rollback()

        if result.outcome == SyncOutcome.FAILURE:
            await events_repo.log_event(
                event_name="channel_sync_error",
                run_id=run_id,
                payload={"error": result.error, "rows": result.rows},
            )

        await events_repo.log_event(
            event_name="channel_sync_finished",
            run_id=run_id,
            payload={
                "outcome": result.outcome,
                "rows": result.rows,
                "entries_published": result.entries_published,
                "watch_next_published": result.watch_next_published,
                "duration_seconds": result.duration_seconds,
            },
        )

    logger.info(
        f"Channel sync finished: outcome={result.outcome.value}, rows={len(result.rows)}, "
        f"entries={result.entries_published}, watch_next={result.watch_next_published}, "
        f"duration={result.duration_seconds:.1f}s",
        extra={"run_id": run_id},
    )
    return result
