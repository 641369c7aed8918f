"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ProcessingRunModel, TripModel
from tapfare.domain.entities import ProcessingRun, Trip


class ProcessingRunRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, run: ProcessingRun) -> ProcessingRunModel:
        model = ProcessingRunModel(
            id=run.id,
            state=run.state,
            input_path=run.input_path,
            output_path=run.output_path,
            started_at=run.started_at,
        )
        self.session.add(model)
        await self.session.flush()
        return model

    async def save(self, run: ProcessingRun) -> Optional[ProcessingRunModel]:
        """Copy the entity's mutable fields onto its row."""
        model = await self.get_by_id(run.id)
        if model is None:
            return None
        model.state = run.state
        model.trip_count = run.trip_count
        model.error = run.error
        model.ended_at = run.ended_at
        await self.session.flush()
        return model

    async def get_by_id(self, run_id: str) -> Optional[ProcessingRunModel]:
        return await self.session.get(ProcessingRunModel, run_id)

    async def get_latest(self) -> Optional[ProcessingRunModel]:
        result = await self.session.execute(
            select(ProcessingRunModel)
            .order_by(ProcessingRunModel.started_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_many(self, run_id: str, trips: Iterable[Trip]) -> int:
        models = [
            TripModel(
                run_id=run_id,
                seq=seq,
                started=trip.started,
                finished=trip.finished,
                duration_secs=trip.duration_secs,
                from_stop_id=trip.from_stop_id,
                to_stop_id=trip.to_stop_id,
                charge_amount=trip.charge_amount,
                company_id=trip.company_id,
                bus_id=trip.bus_id,
                pan=trip.pan,
                status=trip.status,
            )
            for seq, trip in enumerate(trips)
        ]
        self.session.add_all(models)
        await self.session.flush()
        return len(models)

    async def list_for_run(self, run_id: str) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.run_id == run_id)
            .order_by(TripModel.seq)
        )
        return list(result.scalars().all())
