"""Health check endpoint."""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from weather_backend.influx import check_influx_connection

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    store: str
    message: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Verifies that the API is running and can reach InfluxDB.

    Returns:
        Health status information
    """
    if not check_influx_connection():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="InfluxDB connection failed"
        )

    return HealthResponse(
        status="healthy",
        store="connected",
        message="Weather Station API is running"
    )


@router.get("/")
async def root() -> dict:
    """
    Root endpoint with API information.

    Returns:
        Basic API information
    """
    return {
        "service": "Weather Station API",
        "version": "1.0.0",
        "documentation": "/docs",
        "health_check": "/health"
    }
