"""Async engine and session factory for the intake session store.

``build_engine()`` turns :class:`~legal_intake_db.config.DatabaseSettings`
into an asyncpg-backed engine.  The server and the cleanup CLI share one
lazily created engine through :func:`get_engine`; call
:func:`dispose_engine` on shutdown.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from legal_intake_db.config import DatabaseSettings, load_db_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create a new engine; callers own its lifetime."""
    return create_async_engine(
        settings.async_url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle_s,
        # Stale pooled connections would otherwise surface as a 500 on the next answer
        pool_pre_ping=True,
        connect_args={"command_timeout": settings.command_timeout_s},
    )


def get_engine(settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Return the process-wide engine, creating it on first use.

    ``settings`` only applies to that first call.
    """
    global _engine
    if _engine is None:
        settings = settings or load_db_settings()
        _engine = build_engine(settings)
        logger.info(
            "Session database engine created: url=%s pool_size=%d max_overflow=%d",
            settings.redacted_url, settings.pool_size, settings.max_overflow,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory bound to :func:`get_engine`."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            # Rows are converted to IntakeSession right after commit
            expire_on_commit=False,
        )
    return _session_factory


async def check_connection() -> None:
    """Round-trip ``SELECT 1``; raises if the database is unreachable."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def dispose_engine() -> None:
    """Close the pool and forget the engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
