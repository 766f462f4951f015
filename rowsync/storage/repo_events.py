"""Repository for event logging operations."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rowsync.storage.json_utils import safe_json_dumps
from rowsync.storage.models import Event


class EventsRepo:
    """Repository for event logging operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def log_event(
        self,
        event_name: str,
        run_id: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Event:
        """Log an event.

        Args:
            event_name: Event name/type
            run_id: Optional sync run ID
            payload: Optional payload dictionary

        Returns:
            Created Event instance
        """
        event = Event(
            event_name=event_name,
            run_id=run_id,
            payload_json=safe_json_dumps(payload or {}),
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(event)
        await self.session.commit()
        await self.session.refresh(event)
        return event

    async def list_events(
        self,
        event_name: str | None = None,
        run_id: str | None = None,
        limit: int = 200,
    ) -> list[Event]:
        """List events, newest first.

        Args:
            event_name: Filter by event name
            run_id: Filter by sync run
            limit: Maximum events to return

        Returns:
            List of Event instances
        """
        stmt = select(Event)

        if event_name:
            stmt = stmt.where(Event.event_name == event_name)

        if run_id:
            stmt = stmt.where(Event.run_id == run_id)

        stmt = stmt.order_by(Event.created_at.desc(), Event.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
