"""Full-replace publishing of a single row."""

from dataclasses import replace
from typing import Iterable

from rowsync.core.classifier import ClassifyContext, classify
from rowsync.core.contracts import CatalogItem, PublishedRow, RowSettings, RowStore
from rowsync.core.row_keys import RowKeyStore
from rowsync.logging import get_logger

logger = get_logger(__name__)


class RowPublisher:
    """Resolves a row and replaces its entries on the host store."""

    def __init__(self, keys: RowKeyStore, rows: RowStore, context: ClassifyContext) -> None:
        self.keys = keys
        self.rows = rows
        self.context = context

    async def publish(
        self,
        row_name: str,
        settings: RowSettings,
        items: Iterable[CatalogItem],
        prefer_parent_thumb: bool = False,
    ) -> PublishedRow:
        """Rebuild one row from catalog items.

        The row is resolved before any entry is built, so every entry carries
        a channel id known to the key store. Items of unknown kind are dropped.

        Args:
            row_name: Stable logical row name
            settings: Row display settings
            items: Catalog items in display order
            prefer_parent_thumb: Use series thumbnails for items lacking an image

        Returns:
            PublishedRow with the resolved id and inserted entries
        """
        channel_id = await self.keys.resolve(row_name, settings)
        context = replace(self.context, prefer_parent_thumb=prefer_parent_thumb)

        published = PublishedRow(name=row_name, channel_id=channel_id)
        for item in items:
            entry = classify(item, channel_id, context)
            if entry is None:
                logger.debug(f"Dropping {item.item_type} item {item.id} from row {row_name}")
                published.dropped += 1
                continue
            published.entries.append(entry)

        await self.rows.replace_programs(channel_id, published.entries)

        logger.info(
            f"Published {len(published.entries)} entries to row {row_name}",
            extra={"row": row_name, "channel_id": channel_id},
        )
        return published
