"""
Shared test fixtures for MVRV Z-Score backend tests.

Provides reusable fixtures for:
- Synthetic raw MVRV series
- In-memory series stores (dict-backed and SQLite-backed)
- A rolling service wired to a mock fetcher
"""

from datetime import date, timedelta

import pytest
from unittest.mock import AsyncMock
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from mvrv_zscore.cache import SimpleCache, SqlSeriesStore
from mvrv_zscore.constants import WINDOW_SIZE
from mvrv_zscore.schemas import RawPoint
from mvrv_zscore.services.mvrv_service import MVRVRollingService


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


def build_raw_series(values, start=date(2016, 1, 1), price=30000.0):
    """Consecutive daily RawPoints carrying the given MVRV values."""
    return [
        RawPoint(
            date=(start + timedelta(days=i)).isoformat(),
            mvrv=v,
            price=price,
        )
        for i, v in enumerate(values)
    ]


def alternating_window(low=1.0, high=3.0):
    """WINDOW_SIZE values alternating low/high: mean 2.0, stddev 1.0 for the defaults."""
    return [low if i % 2 == 0 else high for i in range(WINDOW_SIZE)]


@pytest.fixture
def make_raw_series():
    return build_raw_series


@pytest.fixture
def wavy_series():
    """WINDOW_SIZE + 5 points of non-constant MVRV."""
    values = [1.0 + (i % 17) * 0.1 + (i % 5) * 0.03 for i in range(WINDOW_SIZE + 5)]
    return build_raw_series(values)


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store():
    return SimpleCache()


@pytest.fixture
async def async_engine():
    """Create an in-memory async SQLite engine for testing."""
    from mvrv_zscore.database import Base
    from mvrv_zscore import models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sql_store(session_maker):
    return SqlSeriesStore(session_maker)


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_fetcher(wavy_series):
    """Fetcher returning the wavy series without touching the network."""
    return AsyncMock(return_value=wavy_series)


@pytest.fixture
def rolling_service(memory_store, mock_fetcher):
    return MVRVRollingService(store=memory_store, fetcher=mock_fetcher)
