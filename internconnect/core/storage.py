"""Database connection and auth-session persistence."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from internconnect.core.config import settings

logger = logging.getLogger(__name__)

engine: AsyncEngine = create_async_engine(
    str(settings.database_url),
    echo=False,
    pool_pre_ping=True,
)

async_session = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


async def init_models() -> None:
    """Create tables that do not exist yet."""
    import internconnect.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SqlSessionStorage:
    """Keeps serialized auth sessions in the ``auth_sessions`` table.

    This is the server-side stand-in for the browser storage a hosted-backend
    client would normally write its session into, so a session survives a
    process restart and can be probed again at startup.
    """

    def __init__(self, session_factory=async_session):
        self._session_factory = session_factory

    async def get_item(self, key: str) -> str | None:
        from internconnect.models.auth_session import AuthSessionRecord

        async with self._session_factory() as session:
            result = await session.execute(
                select(AuthSessionRecord.value).where(AuthSessionRecord.storage_key == key)
            )
            return result.scalar_one_or_none()

    async def set_item(self, key: str, value: str) -> None:
        from internconnect.models.auth_session import AuthSessionRecord

        async with self._session_factory() as session:
            record = await session.get(AuthSessionRecord, key)
            if record is None:
                session.add(AuthSessionRecord(storage_key=key, value=value))
            else:
                record.value = value
                record.updated_at = datetime.now(UTC).replace(tzinfo=None)
            await session.commit()
        logger.debug(f"Persisted auth session under {key}")

    async def remove_item(self, key: str) -> None:
        from internconnect.models.auth_session import AuthSessionRecord

        async with self._session_factory() as session:
            await session.execute(
                delete(AuthSessionRecord).where(AuthSessionRecord.storage_key == key)
            )
            await session.commit()
        logger.debug(f"Removed auth session {key}")
