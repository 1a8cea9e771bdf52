"""Tests for auth-session persistence."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from internconnect.core.storage import Base, SqlSessionStorage


@pytest_asyncio.fixture
async def storage():
    import internconnect.models  # noqa: F401

    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield SqlSessionStorage(factory)
    await engine.dispose()


class TestSqlSessionStorage:
    """Tests for SqlSessionStorage."""

    @pytest.mark.asyncio
    async def test_missing_key(self, storage):
        assert await storage.get_item("auth:nobody") is None

    @pytest.mark.asyncio
    async def test_set_and_overwrite(self, storage):
        await storage.set_item("auth:browser-1", '{"v": 1}')
        await storage.set_item("auth:browser-1", '{"v": 2}')

        assert await storage.get_item("auth:browser-1") == '{"v": 2}'

    @pytest.mark.asyncio
    async def test_remove(self, storage):
        await storage.set_item("auth:browser-1", "{}")
        await storage.set_item("auth:browser-2", "{}")

        await storage.remove_item("auth:browser-1")

        assert await storage.get_item("auth:browser-1") is None
        assert await storage.get_item("auth:browser-2") == "{}"

    @pytest.mark.asyncio
    async def test_backs_a_restored_login(self, storage, backend, make_session):
        """Test a session persisted in the database is picked up again."""
        backend.add_user("ada@uni.test")
        first = make_session("browser-1", session_storage=storage)
        await first.start()
        await first.auth.login("ada@uni.test", "password1")

        restored = make_session("browser-1", session_storage=storage)
        await restored.start()

        assert restored.auth.user.email == "ada@uni.test"
