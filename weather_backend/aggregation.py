"""
Measurement aggregation.

Reductions over measurement windows used by the API:
- latest measurement per station
- newest value of each field of one station
- per-station history summaries
- min / max / mean statistics of numeric fields
- maximum daily rainfall over a window

Absent values never count as zero: they are skipped in every reduction.
"""
import logging
import statistics
from typing import Any, Iterable, Optional, Sequence

from weather_backend.models import (
    FieldStatistics,
    Measurement,
    StationDataResponse,
    StationStatistics,
)

logger = logging.getLogger(__name__)

# Fields reported by the statistics endpoint
STATISTICS_FIELDS = (
    "temp",
    "hum",
    "wind_speed_last",
    "bar_sea_level",
)

DAILY_RAINFALL_FIELD = "rainfall_day_mm"


def group_by_station(measurements: Iterable[Measurement]) -> dict[str, list[Measurement]]:
    """Group measurements by station, keeping arrival order within each group."""
    groups: dict[str, list[Measurement]] = {}
    for measurement in measurements:
        groups.setdefault(measurement.station_id, []).append(measurement)
    return groups


def select_latest_per_station(measurements: Iterable[Measurement]) -> list[Measurement]:
    """
    Select the most recent measurement of every station.

    When several measurements of a station share the latest timestamp, the
    first one encountered wins.

    Args:
        measurements: Measurements of any number of stations

    Returns:
        One measurement per station, in order of first appearance
    """
    latest: dict[str, Measurement] = {}
    for measurement in measurements:
        current = latest.get(measurement.station_id)
        if current is None or measurement.timestamp > current.timestamp:
            latest[measurement.station_id] = measurement
    return list(latest.values())


def merge_latest_fields(
    measurements: Iterable[Measurement],
    fields: Iterable[str],
) -> dict[str, Any]:
    """
    Merge the newest present value of each field into one snapshot.

    Fields sampled at different times still appear in the snapshot. The
    timestamp is the newest one seen and the station name is the newest
    present name. Measurements sharing a timestamp keep the first value.

    Args:
        measurements: Measurements of a single station
        fields: Field names to merge

    Returns:
        Snapshot values; empty when there are no measurements
    """
    fields = tuple(fields)
    snapshot: dict[str, Any] = {}
    stamps: dict[str, Any] = {}

    for measurement in measurements:
        for name in ("timestamp", "station_name", *fields):
            value = getattr(measurement, name)
            if value is None:
                continue
            seen = stamps.get(name)
            if seen is None or measurement.timestamp > seen:
                snapshot[name] = value
                stamps[name] = measurement.timestamp

    return snapshot


def summarize(station_id: str, measurements: Sequence[Measurement]) -> StationDataResponse:
    """
    Build the history response of one station.

    Name and coordinates come from the last measurement in arrival order.
    An empty window yields a zero-count response carrying only the station id.
    """
    if not measurements:
        return StationDataResponse(station_id=station_id)

    last = measurements[-1]
    return StationDataResponse(
        station_id=station_id,
        station_name=last.station_name,
        latitude=last.latitude,
        longitude=last.longitude,
        total_measurements=len(measurements),
        measurements=list(measurements),
    )


def summarize_by_station(measurements: Iterable[Measurement]) -> dict[str, StationDataResponse]:
    """Summarize the history of every station present in the window."""
    return {
        station_id: summarize(station_id, group)
        for station_id, group in group_by_station(measurements).items()
    }


def compute_field_statistics(
    measurements: Sequence[Measurement],
    fields: Iterable[str] = STATISTICS_FIELDS,
) -> dict[str, FieldStatistics]:
    """
    Compute min, max and mean of each field over present values.

    Fields without a single present value are left out of the result.
    """
    result = {}
    for field_name in fields:
        values = [
            value for value in (getattr(m, field_name) for m in measurements)
            if value is not None
        ]
        if not values:
            logger.debug(f"No values for field {field_name}")
            continue

        result[field_name] = FieldStatistics(
            min=min(values),
            max=max(values),
            avg=statistics.fmean(values),
        )
    return result


def max_daily_rainfall(measurements: Iterable[Measurement]) -> float:
    """Largest daily rainfall reported in the window, 0.0 when none is reported."""
    values = [
        value for value in (getattr(m, DAILY_RAINFALL_FIELD) for m in measurements)
        if value is not None
    ]
    return max(values, default=0.0)


def compute_statistics(
    station_id: str,
    measurements: Sequence[Measurement],
    days: int,
    fields: Iterable[str] = STATISTICS_FIELDS,
) -> Optional[StationStatistics]:
    """
    Compute the statistics response of one station.

    Args:
        station_id: Station identifier
        measurements: Measurements of the window
        days: Window length, used for the period label
        fields: Numeric fields to summarize

    Returns:
        Statistics, or None when the window holds no measurements
    """
    if not measurements:
        return None

    return StationStatistics(
        station_id=station_id,
        total_measurements=len(measurements),
        period=f"{days} days",
        statistics=compute_field_statistics(measurements, fields),
        max_rainfall_day_mm=max_daily_rainfall(measurements),
    )
