"""Repository for namespaced key-value preferences."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rowsync.storage.errors import StoreError
from rowsync.storage.models import Preference

# Namespace holding row name -> channel id
CHANNELS_NAMESPACE = "leanback_channels"


class PreferencesRepo:
    """String key-value store scoped to one namespace.

    Database errors roll the session back and surface as StoreError.
    """

    def __init__(self, session: AsyncSession, namespace: str = CHANNELS_NAMESPACE) -> None:
        self.session = session
        self.namespace = namespace

    async def _fail(self, action: str, error: SQLAlchemyError) -> StoreError:
        await self.session.rollback()
        return StoreError(f"{action} failed: {error}")

    async def _get_row(self, key: str) -> Preference | None:
        stmt = select(Preference).where(
            Preference.namespace == self.namespace,
            Preference.key == key,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, key: str) -> str | None:
        """Get a value, or None if the key is absent."""
        try:
            row = await self._get_row(key)
        except SQLAlchemyError as e:
            raise await self._fail(f"Preference {key} read", e) from e
        return row.value if row is not None else None

    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite a value."""
        now = datetime.now(timezone.utc)
        try:
            row = await self._get_row(key)
            if row is None:
                self.session.add(
                    Preference(namespace=self.namespace, key=key, value=value, updated_at=now)
                )
            else:
                row.value = value
                row.updated_at = now
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail(f"Preference {key} write", e) from e

    async def items(self) -> dict[str, str]:
        """All key-value pairs of the namespace."""
        stmt = select(Preference).where(Preference.namespace == self.namespace)
        result = await self.session.execute(stmt)
        return {row.key: row.value for row in result.scalars().all()}
