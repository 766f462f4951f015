"""Core row classification, evaluation and publishing logic."""

from rowsync.core.classifier import ClassifyContext, classify, format_index, poster_url
from rowsync.core.contracts import (
    TICKS_IN_MILLISECOND,
    AspectRatio,
    CatalogGateway,
    CatalogItem,
    ImageType,
    ItemKind,
    KeyValueStore,
    LaunchTarget,
    PublishedRow,
    RowEntry,
    RowSettings,
    RowStore,
    SessionContext,
    SyncOutcome,
    WatchNextEntry,
    WatchState,
)
from rowsync.core.publisher import RowPublisher
from rowsync.core.row_keys import RowKeyStore
from rowsync.core.watch_next import evaluate, watch_state

__all__ = [
    # Contracts
    "TICKS_IN_MILLISECOND",
    "AspectRatio",
    "CatalogGateway",
    "CatalogItem",
    "ImageType",
    "ItemKind",
    "KeyValueStore",
    "LaunchTarget",
    "PublishedRow",
    "RowEntry",
    "RowSettings",
    "RowStore",
    "SessionContext",
    "SyncOutcome",
    "WatchNextEntry",
    "WatchState",
    # Classification
    "ClassifyContext",
    "classify",
    "format_index",
    "poster_url",
    # Continue watching
    "evaluate",
    "watch_state",
    # Publishing
    "RowKeyStore",
    "RowPublisher",
]
