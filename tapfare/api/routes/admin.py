"""
Admin / observability endpoints
===============================

GET /api/v1/admin/processing          -- is a run in progress + latest run
GET /api/v1/admin/runs/latest         -- latest processing run
GET /api/v1/admin/runs/{run_id}/trips -- trips stored for a run
GET /api/v1/admin/health              -- simple health check
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tapfare.api.dependencies import get_db
from tapfare.api.middleware import limiter
from tapfare.api.schemas import (
    HealthResponse,
    ProcessingRunResponse,
    ProcessingStatusResponse,
    TripResponse,
)
from tapfare.infrastructure.repositories import (
    ProcessingRunRepository,
    TripRepository,
)
from tapfare.workers import processor as _processor

router = APIRouter(prefix="/admin", tags=["admin"])


def _run_response(run) -> ProcessingRunResponse:
    return ProcessingRunResponse(
        id=run.id,
        state=run.state.value if hasattr(run.state, "value") else run.state,
        input_path=run.input_path,
        output_path=run.output_path,
        trip_count=run.trip_count,
        error=run.error,
        started_at=run.started_at,
        ended_at=run.ended_at,
    )


@router.get(
    "/processing",
    response_model=ProcessingStatusResponse,
    summary="Whether a taps-processing run is in progress",
)
@limiter.limit("100/minute")
async def get_processing_status(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    lock = await _processor.processing_lock()
    latest = await ProcessingRunRepository(db).get_latest()
    return ProcessingStatusResponse(
        running=await lock.is_held(),
        latest_run=_run_response(latest) if latest else None,
    )


@router.get(
    "/runs/latest",
    response_model=ProcessingRunResponse,
    summary="Latest processing run",
)
@limiter.limit("100/minute")
async def get_latest_run(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    run = await ProcessingRunRepository(db).get_latest()
    if not run:
        raise HTTPException(status_code=404, detail="No processing runs yet")
    return _run_response(run)


@router.get(
    "/runs/{run_id}/trips",
    response_model=list[TripResponse],
    summary="Trips produced by a processing run",
)
@limiter.limit("100/minute")
async def get_run_trips(
    request: Request,
    run_id: str,
    db: AsyncSession = Depends(get_db),
):
    if not await ProcessingRunRepository(db).get_by_id(run_id):
        raise HTTPException(status_code=404, detail="Processing run not found")

    trips = await TripRepository(db).list_for_run(run_id)
    return [
        TripResponse(
            started=t.started,
            finished=t.finished,
            duration_secs=t.duration_secs,
            from_stop_id=t.from_stop_id,
            to_stop_id=t.to_stop_id,
            charge_amount=t.charge_amount,
            company_id=t.company_id,
            bus_id=t.bus_id,
            pan=t.pan,
            status=t.status.value if hasattr(t.status, "value") else t.status,
        )
        for t in trips
    ]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
