"""
Async database engine and session management.

SQLite (aiosqlite) is used for local runs and tests, PostgreSQL (asyncpg)
in deployment. The engine can be rebuilt at runtime so tests can point the
application at a throwaway database.
"""

from typing import Any, AsyncGenerator

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from db.base import Base

logger = structlog.get_logger(__name__)

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_engine(url: str | None = None, **engine_kwargs: Any) -> AsyncEngine:
    """
    (Re)create the global engine and session factory.

    Args:
        url: Database URL, defaults to settings.DATABASE_URL
        engine_kwargs: Extra keyword arguments for create_async_engine
    """
    global _engine, _session_maker

    url = url or settings.DATABASE_URL
    engine = create_async_engine(url, echo=settings.DATABASE_ECHO, **engine_kwargs)

    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    _engine = engine
    _session_maker = async_sessionmaker(engine, expire_on_commit=False)
    logger.info("database_engine_configured", dialect=engine.dialect.name)
    return engine


def get_engine() -> AsyncEngine:
    """Get the global engine, creating it on first use."""
    if _engine is None:
        return configure_engine()
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the global engine."""
    if _session_maker is None:
        configure_engine()
    assert _session_maker is not None
    return _session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    Services own their transaction boundaries and commit explicitly;
    anything left open when the request fails is rolled back here.
    """
    async with get_session_maker()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Import models so they register with the metadata
    import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine and its connection pool."""
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
        logger.info("database_engine_disposed")
    _engine = None
    _session_maker = None
