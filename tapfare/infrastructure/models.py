"""
SQLAlchemy ORM models.

Tables
------
* ``processing_runs`` -- one row per batch run and its final state
* ``trips``           -- the output record set of a run

Indexes
-------
* **B-Tree** on ``state`` and ``started_at`` for "latest run" look-ups, and
  on ``run_id`` / ``pan`` for per-run and per-card trip queries.
"""

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from tapfare.domain.enums import ProcessState, TripStatus


class ProcessingRunModel(Base):
    __tablename__ = "processing_runs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    state = Column(Enum(ProcessState), default=ProcessState.STARTED, nullable=False)
    input_path = Column(String(1024), nullable=True)
    output_path = Column(String(1024), nullable=True)
    trip_count = Column(Integer, default=0, nullable=False)
    error = Column(Text, nullable=True)

    started_at = Column(DateTime(timezone=True), server_default=func.now())
    ended_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_runs_state", "state"),
        Index("idx_runs_started", "started_at"),
    )


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(36), ForeignKey("processing_runs.id"), nullable=False)
    # Position within the run's output, keeps the emitted order
    seq = Column(Integer, nullable=False)

    started = Column(DateTime, nullable=True)
    finished = Column(DateTime, nullable=True)
    duration_secs = Column(Integer, default=0, nullable=False)
    from_stop_id = Column(String(64), nullable=True)
    to_stop_id = Column(String(64), nullable=True)
    charge_amount = Column(Float, nullable=False)
    company_id = Column(String(64), nullable=False)
    bus_id = Column(String(64), nullable=False)
    pan = Column(String(32), nullable=False)
    status = Column(Enum(TripStatus), nullable=False)

    __table_args__ = (
        Index("idx_trips_run", "run_id", "seq"),
        Index("idx_trips_pan", "pan"),
    )
