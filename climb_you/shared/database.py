"""Database connection and session management (PostgreSQL or SQLite)."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from climb_you.shared.config import get_settings

logger = logging.getLogger(__name__)


# ===================
# SQLAlchemy Base
# ===================


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


# ===================
# Engine / Sessions
# ===================

# Store engine per event loop ID to avoid cross-loop connection issues
_engines: dict[int, AsyncEngine] = {}
_session_factories: dict[int, async_sessionmaker[AsyncSession]] = {}


def _get_loop_id() -> int:
    """Get current event loop ID for tracking connections."""
    try:
        loop = asyncio.get_running_loop()
        return id(loop)
    except RuntimeError:
        # No running loop - use 0 as fallback
        return 0


def get_engine() -> AsyncEngine:
    """Get SQLAlchemy async engine for current event loop."""
    loop_id = _get_loop_id()

    if loop_id not in _engines:
        settings = get_settings()
        engine_kwargs: dict = {"echo": False, "pool_pre_ping": True}
        if not settings.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_recycle=settings.db_pool_recycle,
            )
        _engines[loop_id] = create_async_engine(settings.database_url, **engine_kwargs)
    return _engines[loop_id]


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get SQLAlchemy session factory for current event loop."""
    loop_id = _get_loop_id()

    if loop_id not in _session_factories:
        _session_factories[loop_id] = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factories[loop_id]


@asynccontextmanager
async def get_db_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session context manager.

    Usage:
        async with get_db_session() as session:
            result = await session.execute(query)
    """
    factory = factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            try:
                await session.commit()
            except Exception:
                # Rollback if commit itself fails to prevent connection leak
                await session.rollback()
                raise
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create all tables.

    Call this on application startup. In production, use migrations instead.
    """
    # Register models on the metadata before create_all
    import climb_you.modules.history.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections.

    Call this on application shutdown.
    """
    for engine in list(_engines.values()):
        try:
            await engine.dispose()
        except SQLAlchemyError as e:
            logger.warning(f"Error disposing engine: {e}")
    _engines.clear()
    _session_factories.clear()

