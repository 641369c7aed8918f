"""Tests for the taps / trips CSV files."""

from datetime import datetime

import pandas as pd
import pytest

from tapfare.domain.entities import Trip
from tapfare.domain.enums import TapType, TripStatus
from tapfare.infrastructure.csv_files import (
    TRIP_COLUMNS,
    TapFileError,
    read_taps,
    write_trips,
)

HEADER_ONLY = "ID, DateTimeUTC, TapType, StopId, CompanyId, BusID, PAN\n"

TAPS_CSV = """ID, DateTimeUTC, TapType, StopId, CompanyId, BusID, PAN
1, 22-01-2023 13:00:00, ON, Stop1, Company1, Bus37, 5500005555555559
2, 22-01-2023 13:05:00, OFF, Stop2, Company1, Bus37, 5500005555555559

3, 22-01-2023 09:20:00, on, Stop3, Company1, Bus36, 4111111111111111
"""


class TestReadTaps:
    def test_reads_padded_rows(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(TAPS_CSV)

        taps = read_taps(path)

        assert [t.id for t in taps] == [1, 2, 3]
        first = taps[0]
        assert first.timestamp == datetime(2023, 1, 22, 13, 0)
        assert first.tap_type == TapType.ON
        assert first.stop_id == "Stop1"
        assert first.company_id == "Company1"
        assert first.bus_id == "Bus37"
        assert first.pan == "5500005555555559"

    def test_tap_type_is_case_insensitive(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(TAPS_CSV)
        assert read_taps(path)[2].tap_type == TapType.ON

    def test_unknown_tap_type_passed_through(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(
            "ID,DateTimeUTC,TapType,StopId,CompanyId,BusID,PAN\n"
            "1,22-01-2023 13:00:00,TRANSFER,Stop1,Company1,Bus37,55\n"
        )
        assert read_taps(path)[0].tap_type == "TRANSFER"

    def test_column_order_follows_header(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(
            "PAN,ID,TapType,StopId,CompanyId,BusID,DateTimeUTC\n"
            "55,7,OFF,Stop2,Company1,Bus37,22-01-2023 13:05:00\n"
        )
        tap = read_taps(path)[0]
        assert (tap.id, tap.pan, tap.tap_type) == (7, "55", TapType.OFF)

    def test_bad_timestamp_names_the_line(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(
            "ID,DateTimeUTC,TapType,StopId,CompanyId,BusID,PAN\n"
            "1,22-01-2023 13:00:00,ON,Stop1,Company1,Bus37,55\n"
            "2,2023-01-22T13:05,OFF,Stop2,Company1,Bus37,55\n"
        )
        with pytest.raises(TapFileError, match="line 3"):
            read_taps(path)

    def test_short_row_raises(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(
            "ID,DateTimeUTC,TapType,StopId,CompanyId,BusID,PAN\n"
            "1,22-01-2023 13:00:00,ON\n"
        )
        with pytest.raises(TapFileError, match="line 2"):
            read_taps(path)

    def test_blank_cell_raises(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(
            "ID,DateTimeUTC,TapType,StopId,CompanyId,BusID,PAN\n"
            "1,22-01-2023 13:00:00,ON, ,Company1,Bus37,55\n"
        )
        with pytest.raises(TapFileError, match="line 2"):
            read_taps(path)

    def test_extra_field_raises(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(
            "ID,DateTimeUTC,TapType,StopId,CompanyId,BusID,PAN\n"
            "1,22-01-2023 13:00:00,ON,Stop1,Company1,Bus37,55\n"
            "2,22-01-2023 13:05:00,OFF,Stop2,Company1,Bus37,55,extra\n"
        )
        with pytest.raises(TapFileError):
            read_taps(path)

    def test_header_only_gives_no_taps(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text(HEADER_ONLY)
        assert read_taps(path) == []

    def test_missing_column_raises(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text("ID,DateTimeUTC,TapType,StopId\n")
        with pytest.raises(TapFileError, match="missing columns"):
            read_taps(path)

    def test_empty_file_raises(self, tmp_path):
        path = tmp_path / "taps.csv"
        path.write_text("")
        with pytest.raises(TapFileError):
            read_taps(path)


class TestWriteTrips:
    def test_writes_header_and_rows(self, tmp_path):
        trips = [
            Trip(
                started=datetime(2023, 1, 22, 13, 0),
                finished=datetime(2023, 1, 22, 13, 5),
                duration_secs=300,
                from_stop_id="Stop1",
                to_stop_id="Stop2",
                charge_amount=3.25,
                company_id="Company1",
                bus_id="Bus37",
                pan="5500005555555559",
                status=TripStatus.COMPLETED,
            ),
            Trip(
                started=None,
                finished=datetime(2023, 1, 22, 9, 0),
                duration_secs=0,
                from_stop_id=None,
                to_stop_id="Stop2",
                charge_amount=5.5,
                company_id="Company1",
                bus_id="Bus36",
                pan="4111111111111111",
                status=TripStatus.INCOMPLETE,
            ),
        ]
        path = tmp_path / "out" / "trips.csv"

        assert write_trips(trips, path) == 2

        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        assert list(df.columns) == TRIP_COLUMNS
        rows = df.values.tolist()
        assert rows[0] == [
            "22-01-2023 13:00:00",
            "22-01-2023 13:05:00",
            "300",
            "Stop1",
            "Stop2",
            "$3.25",
            "Company1",
            "Bus37",
            "5500005555555559",
            "COMPLETED",
        ]
        assert rows[1][:6] == ["", "22-01-2023 09:00:00", "0", "", "Stop2", "$5.50"]
        assert rows[1][-1] == "INCOMPLETE"

    def test_no_trips_writes_header_only(self, tmp_path):
        path = tmp_path / "trips.csv"
        assert write_trips([], path, currency_symbol="") == 0
        assert path.read_text().splitlines() == [",".join(TRIP_COLUMNS)]
