"""APScheduler configuration and job management."""

from datetime import datetime, timedelta, timezone

from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from rowsync.core.contracts import SyncOutcome
from rowsync.logging import get_logger

logger = get_logger(__name__)

_scheduler: AsyncIOScheduler | None = None

PERIODIC_UPDATE_JOB_ID = "leanback_channel_periodic_update"
SINGLE_UPDATE_JOB_ID = "leanback_channel_single_update"


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global _scheduler

    if _scheduler is None:
        logger.info("Creating scheduler")
        _scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 60,
            },
        )

    return _scheduler


def start_scheduler() -> None:
    """Start the scheduler if not already running."""
    scheduler = get_scheduler()
    if not scheduler.running:
        logger.info("Starting scheduler")
        scheduler.start()


def shutdown_scheduler() -> None:
    """Shutdown the scheduler gracefully."""
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        logger.info("Shutting down scheduler")
        _scheduler.shutdown(wait=True)
    _scheduler = None


def setup_channel_sync_job() -> str | None:
    """Schedule the periodic channel sync, starting immediately."""
    from rowsync.config import config

    if not config.channel_sync_enabled:
        logger.info("Channel sync job not scheduled: CHANNEL_SYNC_ENABLED=false")
        return None

    scheduler = get_scheduler()
    job = scheduler.add_job(
        run_periodic_channel_sync,
        "interval",
        minutes=config.channel_sync_interval_minutes,
        id=PERIODIC_UPDATE_JOB_ID,
        name="Leanback Channel Periodic Update",
        replace_existing=True,
        next_run_time=datetime.now(timezone.utc),
    )
    logger.info(
        f"Scheduled channel sync job: interval={config.channel_sync_interval_minutes}m, "
        f"job_id={job.id}"
    )
    return job.id


async def run_periodic_channel_sync() -> SyncOutcome:
    """Periodic job body: run a sync and queue an early retry when asked to.

    A RETRY outcome schedules a one-off sync CHANNEL_SYNC_RETRY_SECONDS later
    instead of waiting for the next interval. A trigger skipped because a sync
    is already running is not retried.
    """
    from rowsync.config import config
    from rowsync.jobs.channel_sync import SYNC_IN_PROGRESS, run_channel_sync

    result = await run_channel_sync()
    if result.outcome == SyncOutcome.RETRY and result.error != SYNC_IN_PROGRESS:
        request_channel_sync(delay_seconds=config.channel_sync_retry_seconds)
    return result.outcome


def request_channel_sync(delay_seconds: float = 0) -> str:
    """Queue a one-off channel sync, by default as soon as possible.

    A request made while another one is still pending replaces it, so bursts
    of requests collapse into a single run.
    """
    from rowsync.jobs.channel_sync import run_channel_sync

    scheduler = get_scheduler()
    job = scheduler.add_job(
        run_channel_sync,
        "date",
        run_date=datetime.now(timezone.utc) + timedelta(seconds=delay_seconds),
        id=SINGLE_UPDATE_JOB_ID,
        name="Leanback Channel Single Update",
        replace_existing=True,
    )
    logger.info(f"Requested channel sync in {delay_seconds:g}s, job_id={job.id}")
    return job.id


def setup_all_jobs() -> None:
    """Setup all scheduled jobs."""
    setup_channel_sync_job()
    logger.info("All jobs configured")
