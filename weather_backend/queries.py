"""
Flux query builder.

Builds the query descriptions the repository sends to InfluxDB. Bucket and
station identifiers travel as query parameters (``_bucket``, ``_station_id``)
so caller input is never interpolated into the query text. Lookback windows
are validated integers rendered as duration literals.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from weather_backend.mapper import LOCATION_FIELDS

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class InvalidLookbackError(ValueError):
    """Raised when a lookback window is not a positive number of units."""


@dataclass(frozen=True)
class FluxQuery:
    """Flux source text plus the parameters bound as extern options."""

    text: str
    params: dict[str, Any] = field(default_factory=dict)
    operation: str = "query"


class FluxQueryBuilder:
    """Builds parameterized Flux queries against a single bucket."""

    def __init__(self, bucket: str, max_lookback_days: Optional[int] = None):
        """
        Initialize builder

        Args:
            bucket: InfluxDB bucket holding station measurements
            max_lookback_days: Upper bound for day-based lookbacks; larger
                values are clamped. None disables clamping.
        """
        if not bucket:
            raise ValueError("Bucket name must not be empty")
        self.bucket = bucket
        self.max_lookback_days = max_lookback_days

    # ------------------------------------------------------------------
    # Query shapes
    # ------------------------------------------------------------------

    def station_history(self, station_id: str, days: int) -> FluxQuery:
        """Measurements of one station over the last ``days`` days, oldest first."""
        lines = [
            self._source(self._days(days)),
            self._station_filter(),
            self._exclude_fields(LOCATION_FIELDS),
            self._pivot("_time"),
            '  |> sort(columns: ["_time"], desc: false)',
        ]
        return self._query("station_history", lines, _station_id=station_id)

    def all_stations_history(self, days: int) -> FluxQuery:
        """Measurements of every station over the last ``days`` days, oldest first."""
        lines = [
            self._source(self._days(days)),
            self._exclude_fields(LOCATION_FIELDS),
            self._pivot("_time"),
            '  |> sort(columns: ["_time"], desc: false)',
        ]
        return self._query("all_stations_history", lines)

    def latest_records(self, hours: int = 1) -> FluxQuery:
        """Most recent value of every series within the trailing window."""
        lines = [
            self._source(self._hours(hours)),
            self._exclude_fields(LOCATION_FIELDS),
            "  |> last()",
            self._pivot("_time"),
        ]
        return self._query("latest_records", lines)

    def active_stations(self, hours: int = 24) -> FluxQuery:
        """Distinct station identifiers that reported within the trailing window."""
        lines = [
            self._source(self._hours(hours)),
            "  |> filter(fn: (r) => exists r.station_id)",
            '  |> keep(columns: ["station_id"])',
            '  |> distinct(column: "station_id")',
        ]
        return self._query("active_stations", lines)

    def station_snapshot(self, station_id: str, hours: int = 24) -> FluxQuery:
        """A single raw record of one station, used to read its static attributes."""
        lines = [
            self._source(self._hours(hours)),
            self._station_filter(),
            "  |> limit(n: 1)",
        ]
        return self._query("station_snapshot", lines, _station_id=station_id)

    def current_conditions(
        self,
        station_id: str,
        fields: Sequence[str],
        hours: int = 1,
    ) -> FluxQuery:
        """Last value of the selected fields of one station, pivoted per timestamp."""
        lines = [
            self._source(self._hours(hours)),
            self._station_filter(),
            self._include_fields(fields),
            "  |> last()",
            self._pivot("_time"),
        ]
        return self._query("current_conditions", lines, _station_id=station_id)

    def field_means(
        self,
        station_id: str,
        fields: Sequence[str],
        days: int = 7,
    ) -> FluxQuery:
        """Mean of the selected fields of one station, pivoted per station."""
        lines = [
            self._source(self._days(days)),
            self._station_filter(),
            self._include_fields(fields),
            "  |> mean()",
            self._pivot("station_id"),
        ]
        return self._query("field_means", lines, _station_id=station_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _days(self, days: int) -> str:
        days = self._validate_lookback(days, "days")
        if self.max_lookback_days is not None and days > self.max_lookback_days:
            days = self.max_lookback_days
        return f"-{days}d"

    def _hours(self, hours: int) -> str:
        return f"-{self._validate_lookback(hours, 'hours')}h"

    @staticmethod
    def _validate_lookback(value: Any, unit: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidLookbackError(
                f"Lookback must be an integer number of {unit}, got {value!r}"
            )
        if value <= 0:
            raise InvalidLookbackError(
                f"Lookback must be positive, got {value} {unit}"
            )
        return value

    @staticmethod
    def _source(start: str) -> str:
        return f"from(bucket: _bucket)\n  |> range(start: {start})"

    @staticmethod
    def _station_filter() -> str:
        return '  |> filter(fn: (r) => r["station_id"] == _station_id)'

    @staticmethod
    def _exclude_fields(fields: Sequence[str]) -> str:
        clauses = " and ".join(
            f'r["_field"] != "{_check_identifier(name)}"' for name in fields
        )
        return f"  |> filter(fn: (r) => {clauses})"

    @staticmethod
    def _include_fields(fields: Sequence[str]) -> str:
        if not fields:
            raise ValueError("At least one field is required")
        clauses = " or ".join(
            f'r["_field"] == "{_check_identifier(name)}"' for name in fields
        )
        return f"  |> filter(fn: (r) => {clauses})"

    @staticmethod
    def _pivot(row_key: str) -> str:
        return (
            f'  |> pivot(rowKey: ["{row_key}"], columnKey: ["_field"], '
            f'valueColumn: "_value")'
        )

    def _query(self, operation: str, lines: list[str], **params: Any) -> FluxQuery:
        return FluxQuery(
            text="\n".join(lines),
            params={"_bucket": self.bucket, **params},
            operation=operation,
        )


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid field name: {name!r}")
    return name
