"""Repository for row entries and the continue-watching queue."""

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rowsync.core.contracts import RowEntry, WatchNextEntry
from rowsync.storage.models import PreviewProgram, WatchNextProgram


def _preview_program(entry: RowEntry, position: int, now: datetime) -> PreviewProgram:
    return PreviewProgram(
        channel_id=entry.channel_id,
        position=position,
        type=entry.kind.value,
        title=entry.title,
        episode_title=entry.episode_title,
        description=entry.description,
        season_display_number=entry.season_label,
        season_number=entry.season_number,
        episode_display_number=entry.episode_label,
        episode_number=entry.episode_number,
        poster_art_uri=entry.poster_uri,
        poster_art_aspect_ratio=entry.poster_aspect.value,
        item_id=entry.launch.item_id,
        is_library_view=entry.launch.is_library_view,
        created_at=now,
    )


def _watch_next_program(entry: WatchNextEntry, now: datetime) -> WatchNextProgram:
    return WatchNextProgram(
        internal_provider_id=entry.internal_provider_id,
        type=entry.kind.value,
        watch_next_type=entry.watch_state.value,
        title=entry.title,
        poster_art_uri=entry.poster_uri,
        poster_art_aspect_ratio=entry.poster_aspect.value,
        last_engagement_time_utc_millis=entry.last_engagement_ms,
        last_playback_position_millis=entry.last_playback_position_ms,
        duration_millis=entry.duration_ms,
        item_id=entry.launch.item_id,
        created_at=now,
    )


class ProgramsRepo:
    """Repository for preview and watch-next programs."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def delete_all_preview_programs(self) -> int:
        """Delete the entries of every row.

        Returns:
            Number of deleted entries
        """
        result = await self.session.execute(delete(PreviewProgram))
        await self.session.commit()
        return result.rowcount or 0

    async def replace_channel_programs(
        self, channel_id: int, entries: Sequence[RowEntry]
    ) -> int:
        """Replace the entries of one row in a single commit.

        Args:
            channel_id: Row to rebuild
            entries: New entries in display order

        Returns:
            Number of inserted entries
        """
        now = datetime.now(timezone.utc)
        await self.session.execute(
            delete(PreviewProgram).where(PreviewProgram.channel_id == channel_id)
        )
        self.session.add_all(
            [_preview_program(entry, position, now) for position, entry in enumerate(entries)]
        )
        await self.session.commit()
        return len(entries)

    async def list_channel_programs(self, channel_id: int) -> list[PreviewProgram]:
        """List a row's entries in display order."""
        stmt = (
            select(PreviewProgram)
            .where(PreviewProgram.channel_id == channel_id)
            .order_by(PreviewProgram.position)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_watch_next(self, entries: Sequence[WatchNextEntry]) -> int:
        """Clear and refill the continue-watching queue in a single commit.

        Returns:
            Number of inserted entries
        """
        now = datetime.now(timezone.utc)
        await self.session.execute(delete(WatchNextProgram))
        self.session.add_all([_watch_next_program(entry, now) for entry in entries])
        await self.session.commit()
        return len(entries)

    async def list_watch_next(self, limit: int = 50) -> list[WatchNextProgram]:
        """List the continue-watching queue, most recently engaged first."""
        stmt = (
            select(WatchNextProgram)
            .order_by(WatchNextProgram.last_engagement_time_utc_millis.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
