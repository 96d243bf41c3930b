"""Station discovery and static attribute lookup."""

import logging
from typing import Any, Optional

from influxdb_client.client.query_api import QueryApi

from weather_backend.influx import execute
from weather_backend.mapper import STATION_ID_KEY, coerce_numeric, iter_records
from weather_backend.metrics import COERCION_FAILURES
from weather_backend.models import StationInfo
from weather_backend.queries import FluxQueryBuilder

logger = logging.getLogger(__name__)

COORDINATE_FIELDS = ("latitude", "longitude", "elevation")


class StationDirectory:
    """Finds stations that reported recently and reads their attributes."""

    def __init__(
        self,
        query_api: QueryApi,
        builder: FluxQueryBuilder,
        window_hours: int = 24,
    ):
        """
        Initialize directory

        Args:
            query_api: InfluxDB query API
            builder: Query builder bound to the measurement bucket
            window_hours: Trailing window that defines an active station
        """
        self.query_api = query_api
        self.builder = builder
        self.window_hours = window_hours

    def list_active_stations(self) -> list[str]:
        """
        List station identifiers seen within the trailing window.

        Returns:
            Distinct identifiers in order of first appearance
        """
        tables = execute(self.query_api, self.builder.active_stations(self.window_hours))

        stations: dict[str, None] = {}
        for values in iter_records(tables):
            station_id = values.get(STATION_ID_KEY)
            if station_id is None:
                # distinct() reports the value in _value
                station_id = values.get("_value")
            if station_id is not None:
                stations.setdefault(str(station_id), None)

        logger.debug(f"Found {len(stations)} active stations")
        return list(stations)

    def resolve_basic_info(self, station_id: str) -> StationInfo:
        """
        Read name and coordinates of a station from its latest record.

        Only the first returned record is read. Coordinates that cannot be
        parsed are left out.

        Args:
            station_id: Station identifier

        Returns:
            Station info; only the identifier is set when nothing was found
        """
        query = self.builder.station_snapshot(station_id, self.window_hours)
        tables = execute(self.query_api, query)

        record = next(iter_records(tables), None)
        if record is None:
            logger.debug(f"No snapshot found for station {station_id}")
            return StationInfo(station_id=station_id)

        info: dict[str, Any] = {"station_id": station_id}

        name = _read(record, "station_name")
        if isinstance(name, str):
            info["station_name"] = name

        for field_name in COORDINATE_FIELDS:
            value = self._read_coordinate(station_id, field_name, _read(record, field_name))
            if value is not None:
                info[field_name] = value

        return StationInfo(**info)

    def list_stations(self) -> list[StationInfo]:
        """Resolve every active station to its basic info."""
        stations = []
        for station_id in self.list_active_stations():
            info = self.resolve_basic_info(station_id)
            stations.append(info.model_copy(update={"active": True}))
        return stations

    @staticmethod
    def _read_coordinate(station_id: str, field_name: str, raw: Any) -> Optional[float]:
        if raw is None:
            return None

        value = coerce_numeric(raw)
        if value is None:
            COERCION_FAILURES.labels(field=field_name).inc()
            logger.warning(
                f"Cannot parse {field_name} for station {station_id}: {raw!r}"
            )
        return value


def _read(record: dict, key: str) -> Any:
    """Read a tag or pivoted column, falling back to a narrow field/value pair."""
    value = record.get(key)
    if value is None and record.get("_field") == key:
        value = record.get("_value")
    return value
