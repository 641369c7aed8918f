"""Domain enumerations and state-transition rules."""

import enum


class TapType(str, enum.Enum):
    ON = "ON"
    OFF = "OFF"


class TripStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    INCOMPLETE = "INCOMPLETE"


class ProcessState(str, enum.Enum):
    IDLE = "IDLE"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# State machine: maps current state -> set of valid next states
PROCESS_TRANSITIONS: dict[ProcessState, set[ProcessState]] = {
    ProcessState.IDLE: {ProcessState.STARTED},
    ProcessState.STARTED: {ProcessState.COMPLETED, ProcessState.FAILED},
    ProcessState.COMPLETED: {ProcessState.STARTED},
    ProcessState.FAILED: {ProcessState.STARTED},
}
