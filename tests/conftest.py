"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings defaults so tests never depend on a local .env
    - Settings Fixtures: cache isolation for LRU-cached settings loaders
    - Database Fixtures: in-memory SQLite engine and async session
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from mptree.core.database.base import Base
from mptree.core.settings import clear_all_caches

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Ensure tests run without external infrastructure
os.environ.setdefault("TREE_BACKEND", "auto")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("LOG_JSON_LOGS", "false")


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None]:
    """Reload settings for every test so monkeypatched env vars take effect."""
    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLite engine for testing.

    This fixture creates a fresh in-memory database for each test that needs
    it, with every table registered on Base.metadata.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create async database session for testing.

    Args:
        db_engine: Async SQLAlchemy engine fixture.

    Yields:
        Async database session, closed after the test.
    """
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        yield session
