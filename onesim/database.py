"""
OneSim Backend: Database Session Management
===========================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   A `Database` service owns the engine and its fixed-size connection
       pool. It is built once in the application lifespan, stored on
       `app.state.database`, and disposed on shutdown. The request
       dependency opens one session per request that commits on success
       and rolls back on error.
Who:   Route handlers receive sessions via FastAPI's dependency injection.
When:  Engine lives for the process; sessions live for one request.

Connection Pooling:
    pool_size=DB_POOL_SIZE (default 10), max_overflow=0:
        A fixed number of connections shared by all concurrent requests.
    pool_timeout=DB_POOL_TIMEOUT:
        When every connection is checked out, further requests queue for up
        to this many seconds, then fail with StorageError.
    pool_pre_ping / pool_recycle=3600:
        Stale connections (e.g. after a MySQL restart) are replaced before use.
"""

import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from onesim.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models share this metadata; `Database.create_tables` uses it for
    local development and tests.
    """
    pass


class Database:
    """Process-scoped owner of the async engine and session factory."""

    def __init__(self, app_settings: Settings):
        url = make_url(app_settings.database_url)
        engine_kwargs = {"echo": app_settings.log_level == "DEBUG"}

        # SQLite (tests) picks its own pool class; sizing arguments are
        # only valid for the MySQL queue pool.
        if url.get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=app_settings.db_pool_size,
                max_overflow=0,
                pool_timeout=app_settings.db_pool_timeout,
                pool_pre_ping=app_settings.db_pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info(
            "Database configured: %s",
            url.render_as_string(hide_password=True),
        )

    async def create_tables(self) -> None:
        """Create any missing tables from model metadata."""
        # Registers every model on Base.metadata
        from onesim import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Round-trip a trivial query; raises if the store is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's Database
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/api/students")
        async def list_students(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
