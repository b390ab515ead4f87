"""Async engine and sessions for the agent skill and prompt log store.

The store holds two tables, ``agent_skills`` and ``prompt_logs``. It defaults
to a local aiosqlite file and can point anywhere SQLAlchemy's async drivers
reach through SITEAUDIT_DATABASE_URL. Tests swap ``_engine`` for an in-memory
database.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from siteaudit.config import get_settings
from siteaudit.logging import get_logger

logger = get_logger(__name__)

# Built from settings on first use, dropped by close_db()
_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Return the shared engine, building it from SITEAUDIT_DATABASE_URL if needed."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the current engine.

    Objects stay readable after commit so gateway methods can return them
    once the session is closed.
    """
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Create the skill and prompt log tables if they are missing."""
    from siteaudit.db import models as _models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.debug("database_tables_ready", tables=sorted(SQLModel.metadata.tables))


async def close_db() -> None:
    """Dispose of the engine so the next get_engine() reads settings again."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.debug("database_closed")


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession]:
    """One unit of work: commit when the block exits cleanly, roll back otherwise.

    Database errors are re-raised to the caller unchanged.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
