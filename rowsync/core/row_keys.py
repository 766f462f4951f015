"""Stable row identity across sync runs."""

from rowsync.core.contracts import KeyValueStore, RowSettings, RowStore
from rowsync.logging import get_logger

logger = get_logger(__name__)


class RowKeyStore:
    """Maps a logical row name to the host's opaque channel id.

    The key-value store is the only record of which rows exist; the host store
    offers no lookup by name.
    """

    def __init__(self, preferences: KeyValueStore, rows: RowStore) -> None:
        self.preferences = preferences
        self.rows = rows

    async def get(self, name: str) -> int | None:
        """Return the stored channel id for a row name, if any."""
        value = await self.preferences.get(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring malformed channel id {value!r} stored for row {name}")
            return None

    async def resolve(self, name: str, settings: RowSettings) -> int:
        """Return the channel id for a row, creating the row when needed.

        Existing rows get their display settings refreshed. A stored id whose
        row is gone from the host is replaced by a newly created row.

        Args:
            name: Stable logical row name (e.g. "my_media")
            settings: Display settings for the row

        Returns:
            Host channel id

        Raises:
            StoreError: If the host store rejects the update or creation
        """
        channel_id = await self.get(name)
        if channel_id is not None:
            if await self.rows.update_channel(channel_id, settings):
                return channel_id
            logger.warning(
                f"Row {name} points at missing channel {channel_id}, recreating",
                extra={"row": name, "channel_id": channel_id},
            )

        channel_id = await self.rows.create_channel(settings)
        await self.preferences.set(name, str(channel_id))
        logger.info(f"Created row {name}", extra={"row": name, "channel_id": channel_id})

        if settings.default_visible:
            await self.rows.request_browsable(channel_id)

        return channel_id

    async def update(self, name: str, settings: RowSettings) -> bool:
        """Refresh display settings of an existing row without changing its id.

        Returns:
            True if the row exists and was updated
        """
        channel_id = await self.get(name)
        if channel_id is None:
            return False
        return await self.rows.update_channel(channel_id, settings)
