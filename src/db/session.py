"""
Async database engine and sessions.

Every command runs in one session and one database transaction: the
request dependency commits when the route returns and rolls back if it
raises.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    asyncpg connections run behind a transaction pooler in production, so
    pooling is left to the pooler and prepared statement caching is off.
    """
    connect_args = {}
    if "+asyncpg" in database_url:
        connect_args["statement_cache_size"] = 0
    return create_async_engine(
        database_url,
        poolclass=NullPool,
        echo=echo,
        connect_args=connect_args,
    )


engine = build_engine(settings.database_url, echo=not settings.is_production)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session outside a request (startup bootstrap, seed script).

    Usage:
        async with get_db_context() as db:
            await bootstrap(db)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.exception("Database session rolled back")
            await session.rollback()
            raise
