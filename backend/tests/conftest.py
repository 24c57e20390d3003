"""
Training Record Backend: Test Configuration (conftest.py)
==========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   An in-memory SQLite database (aiosqlite, StaticPool) is created per
       test from the ORM metadata; the app is built on that engine with
       create_app() and driven through HTTPX's ASGITransport.

Fixture Hierarchy (all function-scoped):
    test_settings ── engine ── db_session ── seeded
                        └──── test_client (app on the same engine)
    mock_db_session: AsyncMock session for failure injection
"""

import os

# Must be set before the app package is imported (module-level app/settings)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("UNKNOWN_MENU_POLICY", None)
os.environ.pop("DATABASE_ACCESS_KEY", None)

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.database import Base, build_session_factory
from app.main import create_app
from app.models import (
    Menu,
    OldMenu,
    OldPart,
    OldRecord,
    OldSetDetail,
    Part,
)


@pytest.fixture
def test_settings():
    """Settings pointing at SQLite with the default (allow_null) policy."""
    return Settings(database_url="sqlite+aiosqlite://", log_level="WARNING")


@pytest_asyncio.fixture
async def engine():
    """
    Fresh in-memory database with every table created.

    StaticPool keeps one connection, so all sessions see the same database.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """An AsyncSession configured like the application's sessions."""
    async with build_session_factory(engine)() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db_session):
    """
    Reference data for live and archival tables.

    Parts are inserted out of id order so ordering assertions mean something.
    Live menus: 1 Bench Press (Chest), 2 Squat (Legs)
    Archive: one record with two sets
    """
    db_session.add_all([
        Part(part_id=3, part_name="Legs", part_color="#43a047"),
        Part(part_id=1, part_name="Chest", part_color="#e53935"),
        Part(part_id=2, part_name="Back", part_color="#1e88e5"),
    ])
    db_session.add_all([
        Menu(menu_id=2, part_id=3, menu_name="Squat"),
        Menu(menu_id=1, part_id=1, menu_name="Bench Press"),
    ])
    db_session.add_all([
        OldPart(part_id=1, part_name="Arms", part_color="#fdd835"),
        OldMenu(menu_id=10, part_id=1, menu_name="Curl"),
        OldRecord(
            record_id=7, part_id=1, menu_id=10, set_count=2,
            note="archived", create_date=date(2023, 5, 1),
        ),
        OldSetDetail(record_id=7, set_index=2, weight=12.5, reps=8),
        OldSetDetail(record_id=7, set_index=1, weight=10.0, reps=12),
    ])
    await db_session.commit()
    return db_session


@pytest_asyncio.fixture
async def test_client(test_settings, engine):
    """HTTPX AsyncClient talking to an app built on the test engine."""
    app = create_app(test_settings, engine=engine)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_db_session():
    """
    A mock async database session (no database involved).

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    return session


async def count_rows(engine, model, *criteria) -> int:
    """Row count of `model` matching `criteria`, read on its own connection."""
    query = select(func.count()).select_from(model)
    if criteria:
        query = query.where(*criteria)
    async with engine.connect() as conn:
        result = await conn.execute(query)
        return result.scalar_one()
