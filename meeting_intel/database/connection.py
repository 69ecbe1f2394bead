"""
Database connection management using async SQLAlchemy.

The engine is built from an explicit URL so the same code serves
PostgreSQL (asyncpg) in production and SQLite (aiosqlite) in tests.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)

from meeting_intel.core.config import Settings

logger = logging.getLogger(__name__)


def create_engine_from_url(
    url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
) -> AsyncEngine:
    """Create an async engine; pool sizing applies to server databases only."""
    kwargs: Dict[str, Any] = {"echo": echo}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_pre_ping=True,  # Verify connections before using
        )
    return create_async_engine(url, **kwargs)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    return create_engine_from_url(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional session: commit on success, roll back on error.

    Usage:
        async with session_scope(factory) as session:
            meeting = await session.get(Meeting, meeting_id)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables(engine: AsyncEngine) -> None:
    """
    Create all tables defined in models.
    For development/testing only - use Alembic migrations in production.
    """
    from meeting_intel.database.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_tables(engine: AsyncEngine) -> None:
    """
    Drop all tables. Use with caution!
    For development/testing only.
    """
    from meeting_intel.database.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.warning("All database tables dropped")


async def ping(engine: AsyncEngine) -> bool:
    """Return True when the database answers SELECT 1."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        return False
