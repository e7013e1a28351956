"""
SnapPDF Backend - Database Session Management
===============================================

What:  Async SQLAlchemy engine/session-factory builders, declarative Base,
       and the per-request session dependency.
How:   `build_engine()` and `build_session_factory()` are called once from the
       app lifespan; the factory is stored on `app.state.session_factory`.
       `get_db_session()` opens one session per request, commits on success
       and rolls back on error.

Connection Pooling:
    pool_size=20 + max_overflow=10 → at most 30 connections per process
    pool_pre_ping                  → stale connections are replaced before use
    pool_recycle=3600              → connections older than an hour are recycled
"""

import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from snappdf.config import Settings
from snappdf.exceptions import DatabaseError, SnapPDFError, UpstreamUnavailableError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine with pool settings taken from configuration."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        # SQL echo only in DEBUG mode
        echo=settings.log_level == "DEBUG",
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory bound to `engine`.

    expire_on_commit=False: the intake pipeline commits recorded rows and then
    keeps reading their attributes while uploading and announcing.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Takes the session factory built in the lifespan from app.state
        2. Yields a session to the route handler
        3. On success: commits the transaction
        4. On error: rolls back, then re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/files")
        async def list_files(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def translate_db_error(exc: SQLAlchemyError, action: str) -> SnapPDFError:
    """
    Map a SQLAlchemy failure to an application exception.

    OperationalError / InterfaceError (connection refused, dropped, pool
    timeout) → UpstreamUnavailableError (503); anything else → DatabaseError.
    """
    ctx = {"action": action, "error_type": type(exc).__name__}
    if isinstance(exc, (OperationalError, InterfaceError)):
        return UpstreamUnavailableError(context=ctx)
    return DatabaseError(context=ctx)


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
    logger.info("PostgreSQL connection pool disposed")
