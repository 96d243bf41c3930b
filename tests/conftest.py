"""Test configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from influxdb_client.client.flux_table import FluxRecord, FluxTable

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("INFLUX_URL", "http://localhost:8086")

from weather_backend.main import app  # noqa: E402
from weather_backend.influx import get_query_api  # noqa: E402

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_tables(*tables):
    """Build Flux tables from lists of record value dicts."""
    result = []
    for index, rows in enumerate(tables):
        table = FluxTable()
        for values in rows:
            table.records.append(FluxRecord(table=index, values=dict(values)))
        result.append(table)
    return result


class FakeQueryApi:
    """Query API stand-in answering per query operation."""

    def __init__(self):
        self.responses = {}
        self.calls = []
        self.error = None

    def respond(self, markers, *tables):
        """Answer queries whose text contains every marker with the given tables."""
        if isinstance(markers, str):
            markers = (markers,)
        self.responses[tuple(markers)] = make_tables(*tables)

    def query(self, query, org=None, params=None):
        self.calls.append({"query": query, "org": org, "params": params})
        if self.error is not None:
            raise self.error
        for markers, tables in self.responses.items():
            if all(marker in query for marker in markers):
                return tables
        return []


@pytest.fixture
def fake_query_api():
    """Empty fake store."""
    return FakeQueryApi()


@pytest.fixture(scope="function")
def client(fake_query_api, monkeypatch):
    """Create a test client backed by the fake store."""
    monkeypatch.setattr("weather_backend.main.check_influx_connection", lambda: True)
    monkeypatch.setattr("weather_backend.main.client", MagicMock())

    def override_get_query_api():
        yield fake_query_api

    app.dependency_overrides[get_query_api] = override_get_query_api

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def station_rows():
    """Pivoted history rows of two stations over three hours."""
    rows = []
    for hour, (temp, hum, rain) in enumerate([(18.5, 60.0, 0.0), (20.0, 55.0, 5.2), (21.5, 50.0, 3.1)]):
        rows.append({
            "_time": BASE_TIME + timedelta(hours=hour),
            "station_id": "CDMX01",
            "station_name": "Coyoacan",
            "temp": temp,
            "hum": hum,
            "rainfall_day_mm": rain,
            "bar_sea_level": 1013.0 + hour,
            "wind_speed_last": 2.0 * hour,
            "latitude": 19.35,
            "longitude": -99.16,
        })
    rows.append({
        "_time": BASE_TIME,
        "station_id": "CDMX02",
        "station_name": "Tlalpan",
        "temp": 15.0,
        "latitude": 19.29,
        "longitude": -99.17,
    })
    return rows
