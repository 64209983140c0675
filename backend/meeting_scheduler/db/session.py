"""
Database session management.

WHAT: The async engine, the session factory and the ``get_db`` dependency.

HOW: One session per request. ``get_db`` commits once after the route
returns and rolls back if anything raised, so every service write in a
request (meeting insert, slot claim, cache invalidation) lands together or
not at all. Cache keys evicted during the request are evicted once more
after the commit.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from meeting_scheduler.core.cache import evict_committed, discard_pending
from meeting_scheduler.core.config import settings


def _engine_options() -> dict:
    options = {"echo": settings.DEBUG}
    # SQLite uses a static/singleton pool and rejects pool sizing
    if not settings.is_sqlite:
        options.update(
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
    return options


engine = create_async_engine(settings.async_database_url, **_engine_options())

# expire_on_commit=False keeps loaded attributes usable after commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            discard_pending(session)
            raise
        else:
            await evict_committed(session)
        finally:
            await session.close()
