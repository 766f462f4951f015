"""Storage module for database operations."""

from rowsync.storage.db import Base, close_engine, create_all, get_engine, get_session_factory
from rowsync.storage.json_utils import safe_json_dumps, safe_json_loads
from rowsync.storage.models import (
    Channel,
    Event,
    Preference,
    PreviewProgram,
    WatchNextProgram,
)
from rowsync.storage.repo_channels import ChannelsRepo
from rowsync.storage.repo_events import EventsRepo
from rowsync.storage.repo_preferences import CHANNELS_NAMESPACE, PreferencesRepo
from rowsync.storage.repo_programs import ProgramsRepo
from rowsync.storage.row_store import SqlRowStore, StoreError

__all__ = [
    # Database
    "Base",
    "get_engine",
    "get_session_factory",
    "create_all",
    "close_engine",
    # JSON utilities
    "safe_json_dumps",
    "safe_json_loads",
    # Models
    "Channel",
    "PreviewProgram",
    "WatchNextProgram",
    "Preference",
    "Event",
    # Repositories
    "ChannelsRepo",
    "ProgramsRepo",
    "PreferencesRepo",
    "EventsRepo",
    "CHANNELS_NAMESPACE",
    # Host row store
    "SqlRowStore",
    "StoreError",
]
