"""Weather station and measurement endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from influxdb_client.client.query_api import QueryApi

from weather_backend import crud
from weather_backend.influx import get_query_api
from weather_backend.limits import rate_limit
from weather_backend.models import (
    Measurement,
    StationDataResponse,
    StationInfo,
    StationStatistics,
    WeatherDataSimple,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/weather", tags=["weather"])

DAYS_DESCRIPTION = "Number of days to look back (default from configuration)"


@router.get("/stations", response_model=list[StationInfo])
@rate_limit()
def list_stations(
    request: Request,
    query_api: QueryApi = Depends(get_query_api)
) -> list[StationInfo]:
    """
    List stations that reported within the activity window.

    Returns:
        Active stations with name and coordinates
    """
    logger.info("Fetching all active stations")
    return crud.get_stations(query_api)


@router.get("/stations/data/all", response_model=dict[str, StationDataResponse])
@rate_limit()
def get_all_stations_data(
    request: Request,
    days: Optional[int] = Query(default=None, description=DAYS_DESCRIPTION),
    query_api: QueryApi = Depends(get_query_api)
) -> dict[str, StationDataResponse]:
    """
    Get the measurement history of every station.

    Query parameters:
    - **days**: Lookback window in days

    Returns:
        Station histories keyed by station id
    """
    logger.info(f"Fetching data for all stations for {days} days")
    return crud.get_all_stations_data(query_api, days)


@router.get("/stations/{station_id}/simple", response_model=WeatherDataSimple)
@rate_limit()
def get_station_weather_simple(
    request: Request,
    station_id: str,
    query_api: QueryApi = Depends(get_query_api)
) -> WeatherDataSimple:
    """
    Get current conditions of a station with 7-day averages.

    Path parameters:
    - **station_id**: Station identifier

    Raises:
        404: Station reported no data
    """
    logger.info(f"Fetching simplified weather data for station {station_id}")
    data = crud.get_station_weather_simple(query_api, station_id)

    if data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No data found for station {station_id}"
        )

    return data


@router.get("/stations/{station_id}/statistics", response_model=StationStatistics)
@rate_limit()
def get_station_statistics(
    request: Request,
    station_id: str,
    days: Optional[int] = Query(default=None, description=DAYS_DESCRIPTION),
    query_api: QueryApi = Depends(get_query_api)
) -> StationStatistics:
    """
    Get min/max/avg statistics of a station.

    Path parameters:
    - **station_id**: Station identifier

    Query parameters:
    - **days**: Lookback window in days

    Raises:
        404: Station reported no data in the window
    """
    logger.info(f"Calculating statistics for station {station_id} for {days} days")
    stats = crud.get_station_statistics(query_api, station_id, days)

    if stats is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No data found for station {station_id}"
        )

    return stats


@router.get("/stations/{station_id}", response_model=StationDataResponse)
@rate_limit()
def get_station_data(
    request: Request,
    station_id: str,
    days: Optional[int] = Query(default=None, description=DAYS_DESCRIPTION),
    query_api: QueryApi = Depends(get_query_api)
) -> StationDataResponse:
    """
    Get the measurement history of a station.

    Path parameters:
    - **station_id**: Station identifier

    Query parameters:
    - **days**: Lookback window in days

    Raises:
        404: Station reported no data in the window
    """
    logger.info(f"Fetching station data for {station_id} for {days} days")
    response = crud.get_station_data(query_api, station_id, days)

    if response.total_measurements == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No data found for station {station_id}"
        )

    return response


@router.get("/latest", response_model=list[Measurement])
@rate_limit()
def get_latest_measurements(
    request: Request,
    query_api: QueryApi = Depends(get_query_api)
) -> list[Measurement]:
    """
    Get the latest measurement of every station.

    Returns:
        One measurement per station
    """
    logger.info("Fetching latest measurements")
    return crud.get_latest_measurements(query_api)
