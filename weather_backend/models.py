"""Pydantic models for measurements and API responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Domain Models
# ============================================================================

class Measurement(BaseModel):
    """One observation bundle from one station at one instant."""
    model_config = ConfigDict(frozen=True)

    station_id: str
    station_name: Optional[str] = None
    timestamp: datetime

    # Temperature
    temp: Optional[float] = None
    temp_in: Optional[float] = None
    dew_point: Optional[float] = None
    dew_point_in: Optional[float] = None
    heat_index: Optional[float] = None
    heat_index_in: Optional[float] = None
    wind_chill: Optional[float] = None
    wet_bulb: Optional[float] = None
    wet_bulb_in: Optional[float] = None
    thw_index: Optional[float] = None
    thsw_index: Optional[float] = None

    # Humidity
    hum: Optional[float] = None
    hum_in: Optional[float] = None

    # Pressure
    bar_absolute: Optional[float] = None
    bar_sea_level: Optional[float] = None
    bar_offset: Optional[float] = None
    bar_trend: Optional[str] = None

    # Wind
    wind_speed_last: Optional[float] = None
    wind_speed_avg_last_1_min: Optional[float] = None
    wind_speed_avg_last_2_min: Optional[float] = None
    wind_speed_avg_last_10_min: Optional[float] = None
    wind_speed_hi_last_2_min: Optional[float] = None
    wind_speed_hi_last_10_min: Optional[float] = None
    wind_dir_last: Optional[float] = None
    wind_dir_scalar_avg_last_1_min: Optional[float] = None
    wind_dir_scalar_avg_last_2_min: Optional[float] = None
    wind_dir_scalar_avg_last_10_min: Optional[float] = None
    wind_dir_at_hi_speed_last_2_min: Optional[float] = None
    wind_dir_at_hi_speed_last_10_min: Optional[float] = None
    wind_run_day: Optional[float] = None

    # Rainfall
    rainfall_daily_mm: Optional[float] = None
    rainfall_daily_in: Optional[float] = None
    rainfall_day_mm: Optional[float] = None
    rainfall_month_mm: Optional[float] = None
    rainfall_year_mm: Optional[float] = None
    rainfall_last_15_min_mm: Optional[float] = None
    rainfall_last_60_min_mm: Optional[float] = None
    rainfall_last_24_hr_mm: Optional[float] = None
    rain_rate_last_mm: Optional[float] = None
    rain_rate_hi_mm: Optional[float] = None
    rain_rate_hi_last_15_min_mm: Optional[float] = None

    # Solar radiation and UV
    solar_rad: Optional[float] = None
    solar_energy_day: Optional[float] = None
    uv_index: Optional[float] = None
    uv_dose_day: Optional[float] = None

    # Evapotranspiration
    et_day: Optional[float] = None
    et_month: Optional[float] = None
    et_year: Optional[float] = None

    # Location
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    elevation: Optional[float] = None


class StationInfo(BaseModel):
    """Static description of a station, read from its latest snapshot."""
    model_config = ConfigDict(frozen=True)

    station_id: str
    station_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    elevation: Optional[float] = None
    active: bool = False


# ============================================================================
# Pydantic Response Models (API Responses)
# ============================================================================

class StationDataResponse(BaseModel):
    """Measurement history of one station."""
    station_id: str
    station_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    total_measurements: int = 0
    measurements: list[Measurement] = Field(default_factory=list)


class FieldStatistics(BaseModel):
    """Minimum, maximum and mean of one field over a window."""
    min: float
    max: float
    avg: float


class StationStatistics(BaseModel):
    """Summary statistics of one station over a window."""
    station_id: str
    total_measurements: int
    period: str
    statistics: dict[str, FieldStatistics] = Field(default_factory=dict)
    max_rainfall_day_mm: float = 0.0


class WeatherDataSimple(BaseModel):
    """Current conditions of a station with trailing averages."""
    station_id: str
    station_name: Optional[str] = None
    timestamp: Optional[datetime] = None

    # Temperature
    temp: Optional[float] = None
    temp_avg_7_days: Optional[float] = None
    wind_chill: Optional[float] = None
    wind_chill_avg_7_days: Optional[float] = None
    dew_point: Optional[float] = None
    dew_point_avg_7_days: Optional[float] = None
    wet_bulb: Optional[float] = None
    wet_bulb_avg_7_days: Optional[float] = None

    # Humidity
    hum: Optional[float] = None
    hum_avg_7_days: Optional[float] = None

    # Wind
    wind_speed_last: Optional[float] = None
    wind_dir_last: Optional[float] = None

    # Rainfall
    rainfall_day_mm: Optional[float] = None
    rainfall_month_mm: Optional[float] = None
