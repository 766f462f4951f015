"""Application entrypoint: FastAPI admin surface plus the sync scheduler."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel

from rowsync import __version__
from rowsync.config import config
from rowsync.core.contracts import SyncOutcome
from rowsync.jobs import request_channel_sync, setup_all_jobs, shutdown_scheduler, start_scheduler
from rowsync.logging import get_logger, setup_logging

setup_logging(config.log_level)
logger = get_logger(__name__)


async def verify_admin_token(
    authorization: str | None = Header(None, alias="Authorization"),
) -> None:
    """Verify admin token for protected endpoints.

    Args:
        authorization: Authorization header value

    Raises:
        HTTPException: If token is invalid or missing
    """
    if not config.admin_token:
        raise HTTPException(
            status_code=503,
            detail="Admin endpoints not configured (ADMIN_TOKEN not set)",
        )

    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    # Support "Bearer <token>" or just "<token>"
    token = authorization
    if authorization.startswith("Bearer "):
        token = authorization[7:]

    if token != config.admin_token:
        raise HTTPException(status_code=403, detail="Invalid admin token")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application")

    from rowsync.storage import close_engine, create_all

    await create_all()
    logger.info("Database tables ensured")

    start_scheduler()
    setup_all_jobs()

    yield

    logger.info("Shutting down application")
    shutdown_scheduler()
    await close_engine()


app = FastAPI(
    title="rowsync",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"ok": True}


class SyncResponse(BaseModel):
    """Outcome of an admin-triggered sync."""

    ok: bool
    outcome: str
    rows: list[str]
    entries_published: int
    watch_next_published: int
    error: str | None = None
    duration_seconds: float


@app.post("/admin/channels/sync", response_model=SyncResponse)
async def trigger_channel_sync(
    _: None = Depends(verify_admin_token),
) -> SyncResponse:
    """Run a channel sync now and report its outcome.

    Requires admin token in Authorization header.
    """
    from rowsync.jobs import run_channel_sync

    logger.info("Admin triggered channel sync")

    try:
        result = await run_channel_sync()
    except Exception as e:
        logger.exception(f"Admin channel sync failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Sync failed: {str(e)[:200]}",
        )

    return SyncResponse(
        ok=result.outcome == SyncOutcome.SUCCESS,
        outcome=result.outcome.value,
        rows=result.rows,
        entries_published=result.entries_published,
        watch_next_published=result.watch_next_published,
        error=result.error,
        duration_seconds=result.duration_seconds,
    )


@app.post("/admin/channels/sync/request")
async def enqueue_channel_sync(
    _: None = Depends(verify_admin_token),
) -> dict:
    """Queue a channel sync on the scheduler and return immediately."""
    job_id = request_channel_sync()
    return {"ok": True, "job_id": job_id}


@app.get("/admin/channels")
async def list_channels(
    _: None = Depends(verify_admin_token),
) -> dict:
    """List rows with their logical names and entry counts."""
    from rowsync.storage import ChannelsRepo, PreferencesRepo, get_session_factory

    session_factory = get_session_factory()
    async with session_factory() as session:
        pairs = await ChannelsRepo(session).list_channels_with_counts()
        names = await PreferencesRepo(session).items()

    names_by_id = {value: key for key, value in names.items()}

    return {
        "ok": True,
        "channels": [
            {
                "id": channel.id,
                "name": names_by_id.get(str(channel.id)),
                "display_name": channel.display_name,
                "browsable": channel.browsable,
                "entries": count,
                "updated_at": channel.updated_at.isoformat(),
            }
            for channel, count in pairs
        ],
    }


@app.get("/admin/watch-next")
async def list_watch_next(
    limit: int = 50,
    _: None = Depends(verify_admin_token),
) -> dict:
    """Return the continue-watching queue, most recently engaged first."""
    from rowsync.storage import ProgramsRepo, get_session_factory

    session_factory = get_session_factory()
    async with session_factory() as session:
        programs = await ProgramsRepo(session).list_watch_next(limit=limit)

    return {
        "ok": True,
        "items": [
            {
                "item_id": p.item_id,
                "type": p.type,
                "title": p.title,
                "watch_next_type": p.watch_next_type,
                "last_engagement_time_utc_millis": p.last_engagement_time_utc_millis,
                "last_playback_position_millis": p.last_playback_position_millis,
                "duration_millis": p.duration_millis,
            }
            for p in programs
        ],
    }


@app.get("/admin/events")
async def list_sync_events(
    limit: int = 20,
    _: None = Depends(verify_admin_token),
) -> dict:
    """Return recent sync events with decoded payloads."""
    from rowsync.storage import EventsRepo, get_session_factory, safe_json_loads

    session_factory = get_session_factory()
    async with session_factory() as session:
        events = await EventsRepo(session).list_events(limit=limit)

    return {
        "ok": True,
        "events": [
            {
                "event_name": e.event_name,
                "run_id": e.run_id,
                "payload": safe_json_loads(e.payload_json),
                "created_at": e.created_at.isoformat(),
            }
            for e in events
        ],
    }


def main() -> None:
    """Serve the admin API; the scheduler runs inside the app lifespan."""
    logger.info(f"Starting FastAPI server on {config.host}:{config.port}")
    uvicorn.run(
        "rowsync.main:app",
        host=config.host,
        port=config.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
