"""
Taps Batch Processor
====================

One run turns the configured taps file into a trips file.

Concurrency safety
------------------
* **Redis distributed lock** ensures only one run is in progress at a time
  across multiple API processes; a second caller gets
  ``ProcessingAlreadyRunning`` instead of waiting.
* Every run builds a fresh ``TripMatcher``, so no pairing state survives
  from one run into the next.

Steps per run
-------------
1. Record a STARTED ``processing_runs`` row.
2. Read taps from the input CSV.
3. Pair and price taps into trips.
4. Store the trips against the run and write them to a staging file that
   replaces the output file just before the final commit, so a failed run
   never leaves a trips file behind.
5. Mark the run COMPLETED, or FAILED with the error if any step raised.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tapfare.config import settings
from tapfare.domain.entities import ProcessingRun
from tapfare.domain.enums import ProcessState
from tapfare.domain.matching import TripMatcher
from tapfare.domain.pricing import FareCalculator, StopFareCalculator
from tapfare.infrastructure.csv_files import read_taps, write_trips
from tapfare.infrastructure.database import async_session_factory
from tapfare.infrastructure.locks import DistributedLock, LockNotAcquired
from tapfare.infrastructure.redis_client import get_redis
from tapfare.infrastructure.repositories import (
    ProcessingRunRepository,
    TripRepository,
)

logger = logging.getLogger(__name__)

LOCK_NAME = "taps_processing"


class ProcessingAlreadyRunning(Exception):
    """Raised when another taps-processing run holds the lock."""


class ProcessingFailed(Exception):
    """Raised when a run fails; the original error is chained as the cause."""

    def __init__(self, message: str, run_id: Optional[str] = None):
        super().__init__(message)
        self.run_id = run_id


@dataclass(frozen=True)
class ProcessingResult:
    run_id: str
    trip_count: int
    output_path: str

    @property
    def message(self) -> str:
        return f"Processing completed, output saved to {self.output_path}"


async def processing_lock(redis: Optional[aioredis.Redis] = None) -> DistributedLock:
    redis = redis or await get_redis()
    return DistributedLock(
        redis, LOCK_NAME, ttl_seconds=settings.processing_lock_ttl_seconds
    )


async def process_taps(
    *,
    input_path: Optional[str] = None,
    output_path: Optional[str] = None,
    fare_calculator: Optional[FareCalculator] = None,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    redis: Optional[aioredis.Redis] = None,
) -> ProcessingResult:
    """Execute one taps-processing run and return where the trips went."""
    input_path = input_path or settings.input_file_path
    output_path = output_path or settings.output_file_path
    fare_calculator = fare_calculator or StopFareCalculator()

    lock = await processing_lock(redis)
    try:
        async with lock:
            return await _run(
                input_path, output_path, fare_calculator, session_factory
            )
    except LockNotAcquired:
        raise ProcessingAlreadyRunning("Taps processing is already running.") from None


async def _run(
    input_path: str,
    output_path: str,
    fare_calculator: FareCalculator,
    session_factory: async_sessionmaker[AsyncSession],
) -> ProcessingResult:
    target = Path(output_path)
    staging = target.with_name(target.name + ".partial")
    published = False

    async with session_factory() as session:
        runs = ProcessingRunRepository(session)
        run = ProcessingRun(
            id=str(uuid.uuid4()),
            input_path=input_path,
            output_path=output_path,
            started_at=datetime.now(timezone.utc),
        )
        run.transition_to(ProcessState.STARTED)
        await runs.create(run)
        await session.commit()
        logger.info("Starting taps processing run %s on %s", run.id, input_path)

        try:
            taps = read_taps(input_path)
            trips = TripMatcher(fare_calculator).match(taps)
            await TripRepository(session).add_many(run.id, trips)
            write_trips(trips, staging)

            run.trip_count = len(trips)
            run.ended_at = datetime.now(timezone.utc)
            run.transition_to(ProcessState.COMPLETED)
            await runs.save(run)
            staging.replace(target)
            published = True
            await session.commit()
        except Exception as exc:
            logger.exception("Taps processing run %s failed", run.id)
            await session.rollback()
            staging.unlink(missing_ok=True)
            if published:
                # The trips file must not outlive a run that was not stored
                target.unlink(missing_ok=True)
            run.error = f"{type(exc).__name__}: {exc}"
            run.trip_count = 0
            run.ended_at = datetime.now(timezone.utc)
            if run.state == ProcessState.COMPLETED:
                # The rollback restored the committed STARTED row
                run.state = ProcessState.STARTED
            run.transition_to(ProcessState.FAILED)
            await runs.save(run)
            await session.commit()
            raise ProcessingFailed(
                f"Taps processing failed due to unexpected error: {exc}",
                run_id=run.id,
            ) from exc

    result = ProcessingResult(run.id, run.trip_count, output_path)
    logger.info("Run %s: %d trips. %s", run.id, result.trip_count, result.message)
    return result
