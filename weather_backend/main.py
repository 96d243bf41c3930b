"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from weather_backend.config import get_config
from weather_backend.influx import StoreQueryError, check_influx_connection, client
from weather_backend.limits import limiter, is_health_check
from weather_backend.metrics import REQUEST_COUNT, REQUEST_DURATION
from weather_backend.routers import health, weather

# Get configuration
config = get_config()

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Check InfluxDB connectivity
    - Log configuration

    Shutdown:
    - Close the InfluxDB client
    """
    # Startup
    logger.info("Starting Weather Station API")
    logger.info(f"InfluxDB URL: {config.influx_url}, bucket: {config.influx_bucket}")

    if check_influx_connection():
        logger.info("InfluxDB connection successful")
    else:
        logger.warning("InfluxDB connection failed - API may not function properly")

    yield

    # Shutdown
    logger.info("Shutting down Weather Station API")
    client.close()


# Initialize FastAPI application
app = FastAPI(
    title=config.api_title,
    version=config.api_version,
    description=config.api_description,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add rate limiter state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


# Request logging and metrics middleware
@app.middleware("http")
async def logging_and_metrics_middleware(request: Request, call_next):
    """
    Middleware to log requests and collect Prometheus metrics.

    Tracks:
    - Request count by method, endpoint, and status
    - Request duration by method and endpoint
    """
    if is_health_check(request):
        return await call_next(request)

    start_time = time.time()
    request_id = f"{int(start_time * 1000)}-{id(request)}"

    logger.info(
        f"Request started: {request.method} {request.url.path} "
        f"[{request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time
    endpoint = request.url.path

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(duration)

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"[{request_id}] - {response.status_code} - {duration:.3f}s"
    )

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time"] = f"{duration:.3f}s"

    return response


@app.exception_handler(StoreQueryError)
async def store_exception_handler(request: Request, exc: StoreQueryError):
    """
    Handler for InfluxDB failures.

    Returns:
        503 error distinguishing store outages from missing data
    """
    logger.error(
        f"Store failure: {request.method} {request.url.path} - {str(exc)}"
    )

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": "Measurement store unavailable",
            "type": "store_error",
            "path": str(request.url.path)
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    Returns:
        500 error with sanitized error message
    """
    logger.error(
        f"Unhandled exception: {request.method} {request.url.path} - {str(exc)}",
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "type": "internal_error",
            "path": str(request.url.path)
        }
    )


# Prometheus metrics endpoint
@app.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Include routers
app.include_router(health.router)
app.include_router(weather.router)


@app.get("/api/v1/info")
async def api_info():
    """
    Get API version and configuration information.

    Returns:
        API metadata and available endpoints
    """
    return {
        "api": {
            "title": config.api_title,
            "version": config.api_version,
            "description": config.api_description
        },
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "metrics": "/metrics",
            "stations": "/api/v1/weather/stations",
            "all_stations_data": "/api/v1/weather/stations/data/all",
            "latest": "/api/v1/weather/latest"
        },
        "store": {
            "bucket": config.influx_bucket,
            "org": config.influx_org
        },
        "defaults": {
            "days": config.default_days,
            "max_lookback_days": config.max_lookback_days
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "weather_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.log_level.lower()
    )
