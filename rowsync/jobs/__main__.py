"""Run the channel sync scheduler as a standalone process.

Usage::

    python -m rowsync.jobs          # periodic sync until interrupted
    python -m rowsync.jobs --once   # single sync, exit code from the outcome
"""

import asyncio
import signal
import sys

from rowsync.config import config
from rowsync.core.contracts import SyncOutcome
from rowsync.jobs.channel_sync import run_channel_sync
from rowsync.jobs.scheduler import (
    get_scheduler,
    setup_all_jobs,
    shutdown_scheduler,
    start_scheduler,
)
from rowsync.logging import get_logger, setup_logging
from rowsync.storage import close_engine, create_all

setup_logging(config.log_level)
logger = get_logger(__name__)

# Exit codes for --once, following sysexits: 75 = EX_TEMPFAIL
EXIT_CODES = {
    SyncOutcome.SUCCESS: 0,
    SyncOutcome.FAILURE: 1,
    SyncOutcome.RETRY: 75,
}


def _handle_signal(signum, frame):
    logger.info(f"Received signal {signum}, shutting down scheduler")
    shutdown_scheduler()
    sys.exit(0)


async def _run() -> None:
    await create_all()
    start_scheduler()
    setup_all_jobs()
    logger.info("Scheduler running standalone – press Ctrl+C to stop")

    # Keep the event loop alive
    try:
        while get_scheduler().running:
            await asyncio.sleep(1)
    except asyncio.CancelledError:
        pass
    finally:
        shutdown_scheduler()
        await close_engine()


async def _run_once() -> int:
    await create_all()
    try:
        result = await run_channel_sync()
    finally:
        await close_engine()
    return EXIT_CODES[result.outcome]


def main() -> None:
    if "--once" in sys.argv[1:]:
        sys.exit(asyncio.run(_run_once()))

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    asyncio.run(_run())


if __name__ == "__main__":
    main()
