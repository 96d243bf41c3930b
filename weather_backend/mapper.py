"""
Record mapper

Turns the flat record stream returned by InfluxDB into Measurement
entities, one per (station, timestamp). Records may be pivoted (one column
per field) or narrow (``_field`` / ``_value``); both shapes can appear in the
same result when a pivot spans several tables.
"""
import logging
import math
from datetime import datetime
from numbers import Real
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional

from influxdb_client.client.flux_table import FluxTable

from weather_backend.metrics import DROPPED_RECORDS
from weather_backend.models import Measurement

logger = logging.getLogger(__name__)

STATION_ID_KEY = "station_id"
TIME_KEY = "_time"
FIELD_KEY = "_field"
VALUE_KEY = "_value"

TEXT_FIELDS = (
    "station_name",
    "bar_trend",
)

NUMERIC_FIELDS = (
    # Temperature
    "temp",
    "temp_in",
    "dew_point",
    "dew_point_in",
    "heat_index",
    "heat_index_in",
    "wind_chill",
    "wet_bulb",
    "wet_bulb_in",
    "thw_index",
    "thsw_index",
    # Humidity
    "hum",
    "hum_in",
    # Pressure
    "bar_absolute",
    "bar_sea_level",
    "bar_offset",
    # Wind
    "wind_speed_last",
    "wind_speed_avg_last_1_min",
    "wind_speed_avg_last_2_min",
    "wind_speed_avg_last_10_min",
    "wind_speed_hi_last_2_min",
    "wind_speed_hi_last_10_min",
    "wind_dir_last",
    "wind_dir_scalar_avg_last_1_min",
    "wind_dir_scalar_avg_last_2_min",
    "wind_dir_scalar_avg_last_10_min",
    "wind_dir_at_hi_speed_last_2_min",
    "wind_dir_at_hi_speed_last_10_min",
    "wind_run_day",
    # Rainfall
    "rainfall_daily_mm",
    "rainfall_daily_in",
    "rainfall_day_mm",
    "rainfall_month_mm",
    "rainfall_year_mm",
    "rainfall_last_15_min_mm",
    "rainfall_last_60_min_mm",
    "rainfall_last_24_hr_mm",
    "rain_rate_last_mm",
    "rain_rate_hi_mm",
    "rain_rate_hi_last_15_min_mm",
    # Solar radiation and UV
    "solar_rad",
    "solar_energy_day",
    "uv_index",
    "uv_dose_day",
    # Evapotranspiration
    "et_day",
    "et_month",
    "et_year",
)

LOCATION_FIELDS = ("latitude", "longitude", "elevation")


def coerce_numeric(value: Any, parse_strings: bool = True) -> Optional[float]:
    """
    Convert a store value to float.

    Args:
        value: Raw value read from a record
        parse_strings: Whether numeric strings such as ``"19.43"`` are parsed

    Returns:
        The value as float, or None when it is absent, not numeric or not finite
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Real):
        number = float(value)
    elif parse_strings and isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


Setter = Callable[[dict, Any], None]


def _text_setter(attribute: str) -> Setter:
    def setter(target: dict, value: Any) -> None:
        if isinstance(value, str):
            target[attribute] = value
    return setter


def _numeric_setter(attribute: str) -> Setter:
    def setter(target: dict, value: Any) -> None:
        number = coerce_numeric(value, parse_strings=False)
        if number is not None:
            target[attribute] = number
    return setter


# Store field name -> setter applied to the accumulator of its measurement
FIELD_SETTERS: dict[str, Setter] = {
    **{name: _text_setter(name) for name in TEXT_FIELDS},
    **{name: _numeric_setter(name) for name in NUMERIC_FIELDS},
}


def iter_records(tables: Iterable[FluxTable]) -> Iterator[Mapping[str, Any]]:
    """Yield the value mapping of every record across all tables."""
    for table in tables:
        for record in table.records:
            yield record.values


class RecordMapper:
    """Assembles Measurement entities from raw store records."""

    def __init__(self):
        self.dropped_records = 0

    def map_tables(self, tables: Iterable[FluxTable]) -> list[Measurement]:
        """Map every record of a query result."""
        return self.map_records(iter_records(tables))

    def map_records(self, records: Iterable[Mapping[str, Any]]) -> list[Measurement]:
        """
        Map raw records to measurements.

        Records without a timestamp or station identifier are dropped and
        counted. Repeated (station, timestamp, field) values overwrite
        earlier ones.

        Args:
            records: Record value mappings

        Returns:
            Measurements sorted by timestamp ascending
        """
        accumulators: dict[str, dict[str, Any]] = {}
        dropped = 0

        for record in records:
            timestamp = record.get(TIME_KEY)
            station_id = record.get(STATION_ID_KEY)

            if timestamp is None or station_id is None:
                dropped += 1
                continue

            stamp = timestamp.isoformat() if isinstance(timestamp, datetime) else str(timestamp)
            key = f"{station_id}_{stamp}"
            accumulator = accumulators.get(key)
            if accumulator is None:
                accumulator = {"station_id": str(station_id), "timestamp": timestamp}
                accumulators[key] = accumulator

            self._apply(accumulator, record)

        if dropped:
            self.dropped_records += dropped
            DROPPED_RECORDS.inc(dropped)
            logger.warning(f"Dropped {dropped} records without timestamp or station_id")

        measurements = [Measurement(**values) for values in accumulators.values()]
        measurements.sort(key=lambda m: m.timestamp)

        logger.debug(f"Mapped {len(measurements)} measurements")
        return measurements

    @staticmethod
    def _apply(accumulator: dict[str, Any], record: Mapping[str, Any]) -> None:
        # Pivoted columns
        for name, value in record.items():
            setter = FIELD_SETTERS.get(name)
            if setter is not None:
                setter(accumulator, value)

        # Narrow field/value pair
        field_name = record.get(FIELD_KEY)
        if field_name is not None:
            setter = FIELD_SETTERS.get(field_name)
            if setter is not None:
                setter(accumulator, record.get(VALUE_KEY))

        # Location travels with the row, whichever field it carries
        for name in LOCATION_FIELDS:
            number = coerce_numeric(record.get(name))
            if number is not None:
                accumulator[name] = number
        if record.get(FIELD_KEY) in LOCATION_FIELDS:
            number = coerce_numeric(record.get(VALUE_KEY))
            if number is not None:
                accumulator[record[FIELD_KEY]] = number
