"""Read operations against the measurement bucket."""

import logging
from typing import Optional

from influxdb_client.client.query_api import QueryApi

from weather_backend.aggregation import (
    compute_statistics,
    merge_latest_fields,
    select_latest_per_station,
    summarize,
    summarize_by_station,
)
from weather_backend.config import get_config
from weather_backend.directory import StationDirectory
from weather_backend.influx import execute
from weather_backend.mapper import RecordMapper, coerce_numeric, iter_records
from weather_backend.models import (
    Measurement,
    StationDataResponse,
    StationInfo,
    StationStatistics,
    WeatherDataSimple,
)
from weather_backend.queries import FluxQueryBuilder, InvalidLookbackError

logger = logging.getLogger(__name__)

# Fields of the current-conditions snapshot
CURRENT_FIELDS = (
    "temp",
    "wind_chill",
    "dew_point",
    "wet_bulb",
    "hum",
    "wind_speed_last",
    "wind_dir_last",
    "rainfall_day_mm",
    "rainfall_month_mm",
)

# Fields averaged over the trailing week
AVERAGE_FIELDS = (
    "temp",
    "wind_chill",
    "dew_point",
    "wet_bulb",
    "hum",
)


def get_query_builder() -> FluxQueryBuilder:
    """Query builder bound to the configured bucket."""
    config = get_config()
    return FluxQueryBuilder(config.influx_bucket, config.max_lookback_days)


def get_station_directory(query_api: QueryApi) -> StationDirectory:
    """Station directory over the configured activity window."""
    return StationDirectory(
        query_api,
        get_query_builder(),
        window_hours=get_config().active_window_hours,
    )


def resolve_days(days: Optional[int]) -> int:
    """Fall back to the configured default when no day count is given."""
    return get_config().default_days if days is None else days


# ============================================================================
# Measurement Queries
# ============================================================================

def get_station_measurements(
    query_api: QueryApi,
    station_id: str,
    days: int,
) -> list[Measurement]:
    """
    Get measurements of one station over the last N days.

    Args:
        query_api: InfluxDB query API
        station_id: Station identifier
        days: Lookback window in days

    Returns:
        Measurements ordered by time; empty for a non-positive window
    """
    try:
        query = get_query_builder().station_history(station_id, days)
    except InvalidLookbackError as e:
        logger.warning(f"Rejected lookback for station {station_id}: {e}")
        return []

    measurements = RecordMapper().map_tables(execute(query_api, query))
    logger.debug(f"Retrieved {len(measurements)} measurements for station {station_id}")
    return measurements


def get_all_stations_measurements(query_api: QueryApi, days: int) -> list[Measurement]:
    """
    Get measurements of every station over the last N days.

    Args:
        query_api: InfluxDB query API
        days: Lookback window in days

    Returns:
        Measurements ordered by time; empty for a non-positive window
    """
    try:
        query = get_query_builder().all_stations_history(days)
    except InvalidLookbackError as e:
        logger.warning(f"Rejected lookback for all stations: {e}")
        return []

    return RecordMapper().map_tables(execute(query_api, query))


def get_latest_measurements(query_api: QueryApi) -> list[Measurement]:
    """Get the most recent measurement of every station."""
    query = get_query_builder().latest_records(get_config().latest_window_hours)
    measurements = RecordMapper().map_tables(execute(query_api, query))
    return select_latest_per_station(measurements)


# ============================================================================
# Station Queries
# ============================================================================

def get_stations(query_api: QueryApi) -> list[StationInfo]:
    """
    Get all active stations with their basic info.

    Args:
        query_api: InfluxDB query API

    Returns:
        Active stations in order of discovery
    """
    stations = get_station_directory(query_api).list_stations()
    logger.info(f"Resolved {len(stations)} active stations")
    return stations


def get_station_data(
    query_api: QueryApi,
    station_id: str,
    days: Optional[int] = None,
) -> StationDataResponse:
    """
    Get the measurement history of one station.

    Returns:
        History response; ``total_measurements`` is 0 when nothing was found
    """
    query_days = resolve_days(days)
    measurements = get_station_measurements(query_api, station_id, query_days)

    if not measurements:
        logger.warning(f"No measurements found for station {station_id}")

    return summarize(station_id, measurements)


def get_all_stations_data(
    query_api: QueryApi,
    days: Optional[int] = None,
) -> dict[str, StationDataResponse]:
    """Get the measurement history of every station, keyed by station id."""
    query_days = resolve_days(days)
    measurements = get_all_stations_measurements(query_api, query_days)
    result = summarize_by_station(measurements)
    logger.info(f"Retrieved data for {len(result)} stations")
    return result


def get_station_statistics(
    query_api: QueryApi,
    station_id: str,
    days: Optional[int] = None,
) -> Optional[StationStatistics]:
    """
    Get summary statistics of one station.

    Returns:
        Statistics, or None when the window holds no measurements
    """
    query_days = resolve_days(days)
    measurements = get_station_measurements(query_api, station_id, query_days)
    return compute_statistics(station_id, measurements, query_days)


def get_station_weather_simple(
    query_api: QueryApi,
    station_id: str,
) -> Optional[WeatherDataSimple]:
    """
    Get current conditions of one station with trailing weekly averages.

    Args:
        query_api: InfluxDB query API
        station_id: Station identifier

    Returns:
        Snapshot, or None when the station reported nothing in either window
    """
    config = get_config()
    builder = get_query_builder()

    current_query = builder.current_conditions(
        station_id, CURRENT_FIELDS, config.latest_window_hours
    )
    average_query = builder.field_means(
        station_id, AVERAGE_FIELDS, config.average_window_days
    )

    current = merge_latest_fields(
        RecordMapper().map_tables(execute(query_api, current_query)), CURRENT_FIELDS
    )
    average_record = next(iter_records(execute(query_api, average_query)), None)

    if not current and average_record is None:
        return None

    data: dict = {"station_id": station_id, **current}

    if average_record is not None:
        for field_name in AVERAGE_FIELDS:
            data[f"{field_name}_avg_7_days"] = coerce_numeric(
                average_record.get(field_name), parse_strings=False
            )

    return WeatherDataSimple(**data)
