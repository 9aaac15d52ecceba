"""
Portcullis Backend - Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency, and the
       unique-violation check routes use to reclassify IntegrityErrors.
How:   One async engine per process; one session per request that commits
       on success and rolls back on error.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling:
    PostgreSQL (asyncpg): pool_size / max_overflow / pre_ping from settings,
    connections recycled hourly.
    SQLite (aiosqlite, tests and local tinkering): NullPool, a fresh
    connection per session, so no connection outlives its event loop.
"""

from typing import AsyncGenerator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.config import settings

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def _engine_options(url: str) -> dict:
    options = {"echo": settings.log_level == "DEBUG" and settings.is_development}
    if url.startswith("sqlite"):
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# expire_on_commit=False: ORM objects stay readable after the request commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object, which Alembic reads for autogenerate.
    """
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits
        4. On error: rolls back and re-raises for the error middleware
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/users")
        async def list_users(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def is_unique_violation(exc: IntegrityError) -> bool:
    """
    True when an IntegrityError came from a UNIQUE constraint.

    asyncpg exposes the SQLSTATE as `sqlstate` (psycopg as `pgcode`);
    SQLite only says so in the message text.
    """
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(orig)


async def dispose_engine() -> None:
    """Closes every pooled connection; called from the lifespan shutdown."""
    await engine.dispose()
