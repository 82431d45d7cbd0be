"""
Database session management for PyUsers.

Provides async database sessions using SQLAlchemy 2.0 async features.
Each application instance owns one ``Database``; nothing here is a
module-level global, so several apps can live in one process.
"""

import weakref
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from pyusers.core.config import Settings
from pyusers.core.logging import get_logger

logger = get_logger(__name__)


def create_engine(database_url: str, settings: Settings) -> AsyncEngine:
    """
    Create async database engine.

    Uses connection pooling for production and NullPool for tests and SQLite.
    """
    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug and settings.environment == "development",
    }

    if settings.environment == "test" or database_url.startswith("sqlite"):
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_max_overflow
        engine_kwargs["pool_timeout"] = settings.db_pool_timeout
        engine_kwargs["pool_pre_ping"] = True

    return create_async_engine(database_url, **engine_kwargs)


class Database:
    """Engine plus session factory for one application instance."""

    def __init__(self, url: str, settings: Settings) -> None:
        self.url = url
        self.engine = create_engine(url, settings)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        self._open_sessions: weakref.WeakSet[AsyncSession] = weakref.WeakSet()

    def open_session(self) -> AsyncSession:
        """Open a tracked session; the caller is responsible for closing it."""
        session = self.session_factory()
        self._open_sessions.add(session)
        return session

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions.

        Commits on success, rolls back on error.

        Usage:
            async with database.session() as db:
                ...
        """
        session = self.open_session()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
            self._open_sessions.discard(session)

    async def close_sessions(self) -> int:
        """Roll back and close every session still open. Returns how many were closed."""
        sessions = list(self._open_sessions)
        for session in sessions:
            await session.close()
        self._open_sessions.clear()
        return len(sessions)

    async def ping(self) -> None:
        """Verify connectivity with a trivial query."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close sessions and release every pooled connection."""
        await self.close_sessions()
        await self.engine.dispose()
        logger.debug("Database connections closed", extra={"url": self.url})


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields a database session.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.container.get(Database)
    async with database.session() as session:
        yield session
