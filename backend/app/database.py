"""
Training Record Backend: Database Session Management
=====================================================

What:  Async SQLAlchemy engine construction, session factory, and FastAPI dependency.
How:   create_app() builds one engine from Settings and stores the session
       factory on `app.state`; the `get_db_session` dependency opens one
       session per request from it.
Who:   Used by the router via FastAPI's dependency injection system.
When:  Engine is created once per application; sessions are created per-request.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from Settings.
    pool_recycle=3600 recycles connections every hour.
    SQLite URLs (tests, local runs) skip the pool arguments, which the
    SQLite pool classes do not accept.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Reference, transactional and archival tables all register on this
    metadata; tests create the schema from it.
    """
    pass


# ── Engine Construction ───────────────────────────────────────────────────
def build_engine(config: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured store.

    The engine does not connect until the first statement is executed, so
    building it at app creation is safe even when the store is down.
    """
    url = config.store_url
    kwargs = {
        # Echo SQL statements only in DEBUG mode
        "echo": config.log_level == "DEBUG",
    }
    if url.get_backend_name() != "sqlite":
        kwargs.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps ORM attributes readable after commit without
    another round-trip (lazy loads are not available under asyncio).
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory on app.state
        2. Yields it to the handler (services run statements and commit
           their own write transactions)
        3. On error: rolls back whatever is still pending
        4. Always: closes the session (returns connection to pool)

    Read handlers never write, so nothing is left to commit here; write
    handlers commit inside the service so a failed commit is reported as
    part of the response.
    """
    factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(engine: Optional[AsyncEngine]) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    if engine is not None:
        await engine.dispose()
