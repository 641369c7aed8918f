"""
CSV readers / writers for the batch files.

Input  -- ``ID, DateTimeUTC, TapType, StopId, CompanyId, BusID, PAN``
Output -- ``Started, Finished, DurationSecs, FromStopId, ToStopId,
ChargeAmount, CompanyId, BusID, PAN, Status``

Headers and cells may be padded with spaces (``22-01-2023 13:00:00, ON``);
they are stripped on read.  Reported line numbers count the header as
line 1 and skip blank lines.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from tapfare.config import settings
from tapfare.domain.entities import Tap, Trip
from tapfare.domain.enums import TapType

logger = logging.getLogger(__name__)

TAP_COLUMNS = ["ID", "DateTimeUTC", "TapType", "StopId", "CompanyId", "BusID", "PAN"]
TRIP_COLUMNS = [
    "Started",
    "Finished",
    "DurationSecs",
    "FromStopId",
    "ToStopId",
    "ChargeAmount",
    "CompanyId",
    "BusID",
    "PAN",
    "Status",
]


class TapFileError(Exception):
    """Raised when a row of the taps file cannot be parsed."""


def read_taps(
    path: Union[str, Path], datetime_format: Optional[str] = None
) -> list[Tap]:
    fmt = datetime_format or settings.csv_datetime_format
    try:
        df = pd.read_csv(
            path,
            skipinitialspace=True,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise TapFileError(f"{path}: file is empty") from exc
    except pd.errors.ParserError as exc:
        raise TapFileError(f"{path}: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in TAP_COLUMNS if c not in df.columns]
    if missing:
        raise TapFileError(f"{path}: missing columns {missing}")

    # Short rows come back as NaN even with keep_default_na=False
    df = df[TAP_COLUMNS].fillna("").astype(str)
    for column in TAP_COLUMNS:
        df[column] = df[column].str.strip()

    ids = pd.to_numeric(df["ID"], errors="coerce")
    timestamps = pd.to_datetime(df["DateTimeUTC"], format=fmt, errors="coerce")
    bad = (df == "").any(axis=1) | ids.isna() | timestamps.isna()
    if bad.any():
        position = int(bad.to_numpy().nonzero()[0][0])
        row = df.iloc[position].tolist()
        raise TapFileError(f"{path}, line {position + 2}: cannot parse row {row}")

    taps = [
        Tap(
            id=int(tap_id),
            timestamp=timestamp.to_pydatetime(),
            tap_type=_parse_tap_type(tap_type),
            stop_id=stop_id,
            company_id=company_id,
            bus_id=bus_id,
            pan=pan,
        )
        for tap_id, timestamp, tap_type, stop_id, company_id, bus_id, pan in zip(
            ids,
            timestamps,
            df["TapType"],
            df["StopId"],
            df["CompanyId"],
            df["BusID"],
            df["PAN"],
        )
    ]

    logger.info("Read %d taps from %s", len(taps), path)
    return taps


def write_trips(
    trips: Iterable[Trip],
    path: Union[str, Path],
    datetime_format: Optional[str] = None,
    currency_symbol: Optional[str] = None,
) -> int:
    fmt = datetime_format or settings.csv_datetime_format
    symbol = settings.currency_symbol if currency_symbol is None else currency_symbol

    rows = [
        [
            trip.started.strftime(fmt) if trip.started else "",
            trip.finished.strftime(fmt) if trip.finished else "",
            trip.duration_secs,
            trip.from_stop_id or "",
            trip.to_stop_id or "",
            f"{symbol}{trip.charge_amount:.2f}",
            trip.company_id,
            trip.bus_id,
            trip.pan,
            trip.status.value,
        ]
        for trip in trips
    ]
    df = pd.DataFrame(rows, columns=TRIP_COLUMNS)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)

    logger.info("Wrote %d trips to %s", len(df), path)
    return len(df)


def _parse_tap_type(raw: str) -> Union[TapType, str]:
    try:
        return TapType(raw.upper())
    except ValueError:
        # Left for the matcher to warn about and skip
        return raw
