"""Async SQLAlchemy 2.0 database setup.

The engine is created once per process and shared by every request; each
store operation checks out its own session (and pooled connection) so that
independent reads can run concurrently.
"""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


@lru_cache
def get_engine() -> AsyncEngine:
    """Create the process-wide async engine from settings."""
    settings = get_settings()
    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    if not settings.is_sqlite:
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_max_overflow

    engine: AsyncEngine = create_async_engine(settings.database_url, **engine_kwargs)
    logger.info(
        "database.engine_created",
        dialect=engine.dialect.name,
        pool_size=engine_kwargs.get("pool_size"),
    )
    return engine


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Create the process-wide async session maker."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def dispose_engine() -> None:
    """Dispose the shared engine and forget the cached handles."""
    if get_engine.cache_info().currsize == 0:
        return
    await get_engine().dispose()
    get_session_maker.cache_clear()
    get_engine.cache_clear()
    logger.info("database.engine_disposed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Yields:
        AsyncSession: Database session that auto-commits on success.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
