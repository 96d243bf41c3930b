"""Tests for measurement aggregation."""

from datetime import timedelta

import pytest

from weather_backend.aggregation import (
    compute_field_statistics,
    compute_statistics,
    group_by_station,
    max_daily_rainfall,
    merge_latest_fields,
    select_latest_per_station,
    summarize,
    summarize_by_station,
)
from weather_backend.mapper import RecordMapper
from weather_backend.models import Measurement

from conftest import BASE_TIME


def make_measurement(station_id="A", hours=0, **fields):
    return Measurement(
        station_id=station_id,
        timestamp=BASE_TIME + timedelta(hours=hours),
        **fields
    )


def test_select_latest_per_station():
    """Test the newest measurement of each station is kept."""
    measurements = [
        make_measurement("A", 0, temp=1.0),
        make_measurement("A", 3, temp=3.0),
        make_measurement("A", 1, temp=2.0),
        make_measurement("B", 1, temp=9.0),
    ]

    latest = select_latest_per_station(measurements)

    assert [(m.station_id, m.temp) for m in latest] == [("A", 3.0), ("B", 9.0)]


def test_select_latest_tie_keeps_first():
    """Test equal timestamps resolve to the first encountered."""
    measurements = [
        make_measurement("A", 2, temp=1.0),
        make_measurement("A", 2, temp=2.0),
    ]

    latest = select_latest_per_station(measurements)

    assert len(latest) == 1
    assert latest[0].temp == 1.0


def test_select_latest_empty():
    """Test no measurements yield no latest."""
    assert select_latest_per_station([]) == []


def test_merge_latest_fields_keeps_older_samples():
    """Test each field keeps its newest present value."""
    measurements = [
        make_measurement(hours=0, station_name="Centro", temp=10.0, hum=70.0),
        make_measurement(hours=1, temp=12.0),
        make_measurement(hours=2, rainfall_day_mm=1.5),
    ]

    snapshot = merge_latest_fields(measurements, ["temp", "hum", "rainfall_day_mm", "dew_point"])

    assert snapshot == {
        "timestamp": BASE_TIME + timedelta(hours=2),
        "station_name": "Centro",
        "temp": 12.0,
        "hum": 70.0,
        "rainfall_day_mm": 1.5,
    }


def test_merge_latest_fields_order_independent():
    """Test the newest value wins whatever the arrival order."""
    measurements = [
        make_measurement(hours=3, temp=5.0),
        make_measurement(hours=1, temp=9.0),
    ]

    snapshot = merge_latest_fields(measurements, ["temp"])

    assert snapshot["temp"] == 5.0
    assert snapshot["timestamp"] == BASE_TIME + timedelta(hours=3)


def test_merge_latest_fields_empty():
    """Test no measurements yield an empty snapshot."""
    assert merge_latest_fields([], ["temp"]) == {}


def test_group_by_station():
    """Test grouping keeps arrival order."""
    measurements = [
        make_measurement("A", 0),
        make_measurement("B", 0),
        make_measurement("A", 1),
    ]

    groups = group_by_station(measurements)

    assert list(groups) == ["A", "B"]
    assert [m.timestamp for m in groups["A"]] == [BASE_TIME, BASE_TIME + timedelta(hours=1)]


def test_summarize(station_rows):
    """Test history summary header comes from the last measurement."""
    measurements = [
        m for m in RecordMapper().map_records(station_rows) if m.station_id == "CDMX01"
    ]

    response = summarize("CDMX01", measurements)

    assert response.station_id == "CDMX01"
    assert response.station_name == "Coyoacan"
    assert response.latitude == 19.35
    assert response.longitude == -99.16
    assert response.total_measurements == 3
    assert len(response.measurements) == 3


def test_summarize_empty():
    """Test an empty window keeps the station id with zero measurements."""
    response = summarize("X", [])

    assert response.station_id == "X"
    assert response.total_measurements == 0
    assert response.measurements == []
    assert response.station_name is None


def test_summarize_by_station(station_rows):
    """Test every station present gets its own summary."""
    result = summarize_by_station(RecordMapper().map_records(station_rows))

    assert set(result) == {"CDMX01", "CDMX02"}
    assert result["CDMX01"].total_measurements == 3
    assert result["CDMX02"].total_measurements == 1
    assert result["CDMX02"].station_name == "Tlalpan"


def test_field_statistics_skip_absent_values():
    """Test statistics use present values only."""
    measurements = [
        make_measurement(hours=0, temp=10.0),
        make_measurement(hours=1),
        make_measurement(hours=2, temp=20.0),
        make_measurement(hours=3),
        make_measurement(hours=4),
    ]

    stats = compute_field_statistics(measurements)

    assert set(stats) == {"temp"}
    assert stats["temp"].min == 10.0
    assert stats["temp"].max == 20.0
    assert stats["temp"].avg == pytest.approx(15.0)


def test_field_statistics_custom_fields():
    """Test the summarized fields can be chosen."""
    measurements = [make_measurement(hours=0, temp=10.0, dew_point=4.0)]

    stats = compute_field_statistics(measurements, fields=["dew_point"])

    assert list(stats) == ["dew_point"]


def test_max_daily_rainfall():
    """Test maximum over present rainfall values."""
    measurements = [
        make_measurement(hours=0, rainfall_day_mm=0.0),
        make_measurement(hours=1, rainfall_day_mm=5.2),
        make_measurement(hours=2, rainfall_day_mm=3.1),
        make_measurement(hours=3),
    ]

    assert max_daily_rainfall(measurements) == 5.2


def test_max_daily_rainfall_none_reported():
    """Test missing rainfall yields zero."""
    assert max_daily_rainfall([make_measurement()]) == 0.0
    assert max_daily_rainfall([]) == 0.0


def test_compute_statistics(station_rows):
    """Test statistics response of a station window."""
    measurements = [
        m for m in RecordMapper().map_records(station_rows) if m.station_id == "CDMX01"
    ]

    stats = compute_statistics("CDMX01", measurements, 3)

    assert stats.station_id == "CDMX01"
    assert stats.total_measurements == 3
    assert stats.period == "3 days"
    assert stats.statistics["temp"].min == 18.5
    assert stats.statistics["temp"].max == 21.5
    assert stats.statistics["temp"].avg == pytest.approx(20.0)
    assert stats.statistics["bar_sea_level"].max == 1015.0
    assert stats.max_rainfall_day_mm == 5.2


def test_compute_statistics_empty():
    """Test an empty window has no statistics."""
    assert compute_statistics("A", [], 3) is None
