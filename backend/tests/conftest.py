"""
Pytest configuration and fixtures.

Each test gets a fresh in-memory SQLite database and a fresh in-process
cache.
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from meeting_scheduler.main import app
from meeting_scheduler.models import Base
from meeting_scheduler.db.session import get_db
from meeting_scheduler.core import cache as cache_module


TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def fresh_cache():
    """
    Give every test its own in-process cache.

    The cache is a module-level singleton, so entries would otherwise leak
    between tests that reuse the same ids.
    """
    cache = cache_module.InMemoryCache()
    cache_module.set_cache(cache)
    yield cache
    cache_module.set_cache(None)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create a test database engine with all tables.
    """
    engine = create_async_engine(TEST_ASYNC_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    Yields:
        AsyncSession: Database session for the test
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the app, sharing the test session.

    Yields:
        AsyncClient: HTTP client for making test requests
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_calendar(db_session: AsyncSession):
    """A calendar owned by user-1."""
    from tests.factories import CalendarFactory

    return await CalendarFactory.create(db_session, name="Work", user_id="user-1")
