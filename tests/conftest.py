"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  Redis is replaced by ``AsyncMock`` clients.
"""

from datetime import datetime
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tapfare.domain.entities import Tap
from tapfare.domain.enums import TapType
from tapfare.domain.pricing import StopFareCalculator
from tapfare.infrastructure.database import Base, init_models


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

PAN = "5500005555555559"


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables, hand out a session factory, then drop everything."""
    # One shared connection, otherwise every session sees an empty database
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    await init_models(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def fare_calculator() -> StopFareCalculator:
    return StopFareCalculator()


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Redis stand-in whose lock is always free."""
    redis = AsyncMock()
    redis.set = AsyncMock(return_value=True)
    redis.eval = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=0)
    return redis


@pytest.fixture
def make_tap():
    """Build a ``Tap``; ``when`` is ``"YYYY-MM-DD HH:MM[:SS]"``."""
    counter = iter(range(1, 10_000))

    def _make(
        tap_type,
        stop_id,
        when,
        pan=PAN,
        company_id="Company1",
        bus_id="Bus37",
        tap_id=None,
    ) -> Tap:
        if isinstance(tap_type, str) and tap_type in TapType.__members__:
            tap_type = TapType(tap_type)
        return Tap(
            id=tap_id if tap_id is not None else next(counter),
            timestamp=datetime.fromisoformat(when),
            tap_type=tap_type,
            stop_id=stop_id,
            company_id=company_id,
            bus_id=bus_id,
            pan=pan,
        )

    return _make
