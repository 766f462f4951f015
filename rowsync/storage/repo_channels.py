"""Repository for channel (row) operations."""

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rowsync.storage.models import Channel, PreviewProgram


class ChannelsRepo:
    """Repository for channel CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_channel(
        self,
        display_name: str,
        app_link: str,
        channel_type: str = "preview",
    ) -> Channel:
        """Insert a new channel.

        Args:
            display_name: Row title shown by the host
            app_link: Link opened when the row itself is selected
            channel_type: Host channel type

        Returns:
            Created Channel with its id assigned
        """
        now = datetime.now(timezone.utc)
        channel = Channel(
            type=channel_type,
            display_name=display_name,
            app_link=app_link,
            browsable=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(channel)
        await self.session.commit()
        await self.session.refresh(channel)
        return channel

    async def get_channel(self, channel_id: int) -> Channel | None:
        """Get a channel by id."""
        return await self.session.get(Channel, channel_id)

    async def update_channel(
        self,
        channel_id: int,
        display_name: str,
        app_link: str,
        channel_type: str = "preview",
    ) -> bool:
        """Update display fields of a channel.

        Returns:
            True if the channel exists
        """
        channel = await self.get_channel(channel_id)
        if channel is None:
            return False

        channel.type = channel_type
        channel.display_name = display_name
        channel.app_link = app_link
        channel.updated_at = datetime.now(timezone.utc)
        await self.session.commit()
        return True

    async def set_browsable(self, channel_id: int, browsable: bool = True) -> bool:
        """Mark a channel as shown on the home screen.

        Returns:
            True if the channel exists
        """
        channel = await self.get_channel(channel_id)
        if channel is None:
            return False

        channel.browsable = browsable
        await self.session.commit()
        return True

    async def list_channels_with_counts(self) -> list[tuple[Channel, int]]:
        """List channels with the number of entries in each.

        Returns:
            (Channel, entry count) pairs ordered by channel id
        """
        stmt = (
            select(Channel, func.count(PreviewProgram.id))
            .outerjoin(PreviewProgram, PreviewProgram.channel_id == Channel.id)
            .group_by(Channel.id)
            .order_by(Channel.id)
        )
        result = await self.session.execute(stmt)
        return [(channel, count) for channel, count in result.all()]
