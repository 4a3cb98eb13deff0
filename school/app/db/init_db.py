"""Database initialization utilities."""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from school.app.core.logging import get_logger
from school.app.db.async_session import get_async_engine
from school.app.db.base import Base

# Imported for its side effect of registering tables on Base.metadata
from school.app.db import models  # noqa: F401

logger = get_logger(__name__)


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """Drop all database tables.

    WARNING: This will delete all data. Use only in development.
    """
    if engine is None:
        engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """Create all database tables that do not exist yet."""
    if engine is None:
        engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_database(drop_first: bool = False, engine: AsyncEngine | None = None) -> None:
    """Initialize database with all tables.

    Args:
        drop_first: If True, drop existing tables before creating.
        engine: Engine to use, defaults to the shared engine.
    """
    if drop_first:
        await drop_all_tables(engine)
    await create_all_tables(engine)


async def verify_connection(engine: AsyncEngine | None = None) -> bool:
    """Verify database connection is working.

    Returns:
        True if connection successful, False otherwise.
    """
    try:
        if engine is None:
            engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database connection failed: {e}")
        return False
