"""Tests for the HTTP surface."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from rowsync.core.contracts import SyncOutcome

AUTH = {"Authorization": "Bearer test-admin-token"}


def make_client():
    from rowsync.main import app

    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.anyio
async def test_health_endpoint():
    """Test that health endpoint returns ok status."""
    async with make_client() as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.anyio
async def test_admin_requires_token():
    async with make_client() as client:
        missing = await client.post("/admin/channels/sync")
        wrong = await client.post("/admin/channels/sync", headers={"Authorization": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 403


@pytest.mark.anyio
async def test_admin_sync_reports_outcome():
    from rowsync.jobs.channel_sync import SyncResult

    result = SyncResult(
        outcome=SyncOutcome.RETRY,
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        finished_at=datetime(2024, 1, 1, 0, 0, 2, tzinfo=timezone.utc),
        error="No authenticated user",
    )

    with patch("rowsync.jobs.run_channel_sync", AsyncMock(return_value=result)):
        async with make_client() as client:
            response = await client.post("/admin/channels/sync", headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is False
    assert body["outcome"] == "retry"
    assert body["error"] == "No authenticated user"
    assert body["duration_seconds"] == 2.0


@pytest.mark.anyio
async def test_admin_sync_request_enqueues_job():
    with patch("rowsync.main.request_channel_sync", return_value="leanback_channel_single_update"):
        async with make_client() as client:
            response = await client.post("/admin/channels/sync/request", headers=AUTH)

    assert response.json() == {"ok": True, "job_id": "leanback_channel_single_update"}
