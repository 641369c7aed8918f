"""FastAPI dependency injection helpers."""

from sqlalchemy.ext.asyncio import AsyncSession

from tapfare.domain.pricing import FareCalculator, StopFareCalculator
from tapfare.infrastructure.database import async_session_factory


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


_fare_calculator = StopFareCalculator()


def get_fare_calculator() -> FareCalculator:
    """Stateless, so one instance is shared by every request."""
    return _fare_calculator
