"""
Domain entities with business logic.

Patterns used
-------------
- ``Tap`` and ``Trip`` are immutable value objects: created once, never
  mutated, no back-references.
- **State Pattern** on ``ProcessingRun``: enforces valid lifecycle
  transitions (IDLE -> STARTED -> COMPLETED | FAILED -> STARTED ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from .enums import PROCESS_TRANSITIONS, ProcessState, TapType, TripStatus


class InvalidStateTransition(Exception):
    """Raised when a processing-run state change violates the state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Tap:
    id: int
    timestamp: datetime
    # Raw string when the source carried a tap type we don't recognise
    tap_type: Union[TapType, str]
    stop_id: str
    company_id: str
    bus_id: str
    pan: str


@dataclass(frozen=True)
class Trip:
    started: Optional[datetime]
    finished: Optional[datetime]
    duration_secs: int
    from_stop_id: Optional[str]
    to_stop_id: Optional[str]
    charge_amount: float
    company_id: str
    bus_id: str
    pan: str
    status: TripStatus


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class ProcessingRun:
    id: Optional[str] = None
    state: ProcessState = ProcessState.IDLE
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    trip_count: int = 0
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    def transition_to(self, new_state: ProcessState) -> None:
        """Move to *new_state* if the transition is legal, else raise."""
        allowed = PROCESS_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.state} to {new_state}"
            )
        self.state = new_state

    @property
    def is_running(self) -> bool:
        return self.state == ProcessState.STARTED
