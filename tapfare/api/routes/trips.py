"""
Trip endpoints
==============

POST /api/v1/taps/process -- run the batch over the configured taps file
POST /api/v1/trips/match  -- pair and price taps posted in the body
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from tapfare.api.dependencies import get_fare_calculator
from tapfare.api.middleware import limiter
from tapfare.api.schemas import (
    ErrorResponse,
    MatchRequest,
    ProcessResponse,
    TripResponse,
)
from tapfare.domain.entities import Trip
from tapfare.domain.matching import TripMatcher
from tapfare.domain.pricing import FareCalculator, UnknownStopError
from tapfare.workers import processor as _processor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trips"])


def trip_response(trip: Trip) -> TripResponse:
    return TripResponse(
        started=trip.started,
        finished=trip.finished,
        duration_secs=trip.duration_secs,
        from_stop_id=trip.from_stop_id,
        to_stop_id=trip.to_stop_id,
        charge_amount=trip.charge_amount,
        company_id=trip.company_id,
        bus_id=trip.bus_id,
        pan=trip.pan,
        status=trip.status.value,
    )


@router.post(
    "/taps/process",
    response_model=ProcessResponse,
    summary="Process the configured taps file into a trips file",
    responses={
        409: {"model": ErrorResponse, "description": "A run is already in progress."},
        500: {"model": ErrorResponse, "description": "The run failed."},
    },
)
@limiter.limit("10/minute")
async def process_taps(
    request: Request,
    calculator: FareCalculator = Depends(get_fare_calculator),
):
    try:
        result = await _processor.process_taps(fare_calculator=calculator)
    except _processor.ProcessingAlreadyRunning as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except _processor.ProcessingFailed as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    return ProcessResponse(
        run_id=result.run_id,
        trip_count=result.trip_count,
        output_path=result.output_path,
        message=result.message,
    )


@router.post(
    "/trips/match",
    response_model=list[TripResponse],
    summary="Pair and price a list of taps",
    description=(
        "Taps are paired by PAN in the order given. Nothing is stored; "
        "the whole request fails if any stop has no fare."
    ),
    responses={400: {"model": ErrorResponse, "description": "Unknown stop."}},
)
@limiter.limit("100/minute")
async def match_trips(
    request: Request,
    body: MatchRequest,
    calculator: FareCalculator = Depends(get_fare_calculator),
):
    taps = [t.to_entity() for t in body.taps]
    try:
        trips = TripMatcher(calculator).match(taps)
    except UnknownStopError as exc:
        logger.warning("Rejected match request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))
    return [trip_response(t) for t in trips]
