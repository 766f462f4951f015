"""Jobs module for scheduled tasks and background processing."""

from rowsync.jobs.channel_sync import (
    CapabilityError,
    ChannelSyncWorker,
    SessionError,
    SyncOptions,
    SyncResult,
    load_session_context,
    run_channel_sync,
)
from rowsync.jobs.scheduler import (
    get_scheduler,
    request_channel_sync,
    run_periodic_channel_sync,
    setup_all_jobs,
    setup_channel_sync_job,
    shutdown_scheduler,
    start_scheduler,
)

__all__ = [
    "CapabilityError",
    "ChannelSyncWorker",
    "SessionError",
    "SyncOptions",
    "SyncResult",
    "get_scheduler",
    "load_session_context",
    "request_channel_sync",
    "run_channel_sync",
    "run_periodic_channel_sync",
    "setup_all_jobs",
    "setup_channel_sync_job",
    "shutdown_scheduler",
    "start_scheduler",
]
