"""
Database session management.

This module provides utilities for creating and managing database sessions
using async SQLAlchemy with PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from registrar.core.config import settings
from registrar.core.logging import logger


def engine_options() -> Dict[str, Any]:
    """Engine keyword arguments for the configured backend."""
    options: Dict[str, Any] = {"echo": settings.debug, "future": True}
    if not settings.database.is_sqlite:
        options.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_pre_ping=True,
            pool_recycle=settings.database.pool_recycle,
        )
    return options


def enable_sqlite_foreign_keys(sync_engine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""

    @event.listens_for(sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(settings.database.url, **engine_options())
if settings.database.is_sqlite:
    enable_sqlite_foreign_keys(engine.sync_engine)

AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    This function is used as a dependency in FastAPI endpoints to provide
    a database session. Any exception rolls the session back before it
    propagates.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise
