"""SQL-backed host row store."""

from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rowsync.core.contracts import RowEntry, RowSettings, WatchNextEntry
from rowsync.storage.errors import StoreError
from rowsync.storage.repo_channels import ChannelsRepo
from rowsync.storage.repo_programs import ProgramsRepo


class SqlRowStore:
    """RowStore implementation over the channels/programs tables.

    Database errors roll the session back and surface as StoreError.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.channels = ChannelsRepo(session)
        self.programs = ProgramsRepo(session)

    async def _fail(self, action: str, error: SQLAlchemyError) -> StoreError:
        await self.session.rollback()
        return StoreError(f"{action} failed: {error}")

    async def create_channel(self, settings: RowSettings) -> int:
        try:
            channel = await self.channels.create_channel(
                settings.display_name, settings.app_link, settings.row_type
            )
        except SQLAlchemyError as e:
            raise await self._fail("Channel creation", e) from e
        return channel.id

    async def update_channel(self, channel_id: int, settings: RowSettings) -> bool:
        try:
            return await self.channels.update_channel(
                channel_id, settings.display_name, settings.app_link, settings.row_type
            )
        except SQLAlchemyError as e:
            raise await self._fail(f"Channel {channel_id} update", e) from e

    async def request_browsable(self, channel_id: int) -> None:
        try:
            await self.channels.set_browsable(channel_id)
        except SQLAlchemyError as e:
            raise await self._fail(f"Channel {channel_id} browsable request", e) from e

    async def clear_preview_programs(self) -> int:
        try:
            return await self.programs.delete_all_preview_programs()
        except SQLAlchemyError as e:
            raise await self._fail("Preview program cleanup", e) from e

    async def replace_programs(self, channel_id: int, entries: Sequence[RowEntry]) -> int:
        try:
            return await self.programs.replace_channel_programs(channel_id, entries)
        except SQLAlchemyError as e:
            raise await self._fail(f"Channel {channel_id} entry replacement", e) from e

    async def replace_watch_next(self, entries: Sequence[WatchNextEntry]) -> int:
        try:
            return await self.programs.replace_watch_next(entries)
        except SQLAlchemyError as e:
            raise await self._fail("Watch next replacement", e) from e
