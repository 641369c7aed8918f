"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tapfare.domain.entities import Tap
from tapfare.domain.enums import TapType


# ── Requests ──────────────────────────────────────────────────────────


class TapRequest(BaseModel):
    id: int
    timestamp: datetime
    tap_type: str = Field(..., description="ON or OFF; anything else is skipped.")
    stop_id: str = Field(..., min_length=1, max_length=64)
    company_id: str = Field(..., min_length=1, max_length=64)
    bus_id: str = Field(..., min_length=1, max_length=64)
    pan: str = Field(..., min_length=1, max_length=32)

    @field_validator("timestamp")
    @classmethod
    def as_naive_utc(cls, value: datetime) -> datetime:
        """Taps are compared as naive UTC, like the batch file's DateTimeUTC."""
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def to_entity(self) -> Tap:
        try:
            tap_type = TapType(self.tap_type.upper())
        except ValueError:
            tap_type = self.tap_type
        return Tap(
            id=self.id,
            timestamp=self.timestamp,
            tap_type=tap_type,
            stop_id=self.stop_id,
            company_id=self.company_id,
            bus_id=self.bus_id,
            pan=self.pan,
        )


class MatchRequest(BaseModel):
    taps: list[TapRequest] = Field(..., max_length=10_000)


# ── Responses ─────────────────────────────────────────────────────────


class TripResponse(BaseModel):
    started: Optional[datetime] = None
    finished: Optional[datetime] = None
    duration_secs: int
    from_stop_id: Optional[str] = None
    to_stop_id: Optional[str] = None
    charge_amount: float
    company_id: str
    bus_id: str
    pan: str
    status: str

    model_config = {"from_attributes": True}


class ProcessResponse(BaseModel):
    run_id: str
    trip_count: int
    output_path: str
    message: str


class ProcessingRunResponse(BaseModel):
    id: str
    state: str
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    trip_count: int = 0
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProcessingStatusResponse(BaseModel):
    running: bool
    latest_run: Optional[ProcessingRunResponse] = None


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
