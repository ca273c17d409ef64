"""
Async database engine and session management.

The engine is created lazily from settings.DATABASE_URL. Tests (and scripts)
can point the module at another database with configure_engine().
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from database.models import Base
from shared.config import get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def configure_engine(database_url: str | None = None) -> AsyncEngine:
    """
    (Re)create the global engine and session factory.

    Args:
        database_url: Connection string; defaults to settings.DATABASE_URL
    """
    global _engine, _session_factory

    url = database_url or get_settings().DATABASE_URL
    _engine = create_async_engine(url, pool_pre_ping=True)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    logger.info(f"Database engine configured: {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        return configure_engine()
    return _engine


@asynccontextmanager
async def get_async_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a session and roll back if the caller raises.

    Usage:
        async with get_async_session() as session:
            await session.execute(...)
    """
    get_engine()
    assert _session_factory is not None

    async with _session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables that do not exist yet."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def dispose_engine() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
