"""InfluxDB client and query execution."""

import logging
import time
from typing import Generator

from influxdb_client import InfluxDBClient
from influxdb_client.client.flux_table import FluxTable
from influxdb_client.client.query_api import QueryApi
from influxdb_client.rest import ApiException
from urllib3.exceptions import HTTPError

from weather_backend.config import get_config
from weather_backend.metrics import STORE_QUERY_DURATION
from weather_backend.queries import FluxQuery

logger = logging.getLogger(__name__)

# Get configuration
config = get_config()

# Shared client; the query API it hands out is safe to use across threads
client = InfluxDBClient(
    url=config.influx_url,
    token=config.influx_token,
    org=config.influx_org,
    timeout=config.influx_timeout_ms,
)


class StoreQueryError(Exception):
    """Raised when InfluxDB cannot be reached or rejects a query."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


def get_query_api() -> Generator[QueryApi, None, None]:
    """
    Dependency for FastAPI endpoints to get the InfluxDB query API.

    Yields:
        Query API bound to the shared client.
    """
    yield client.query_api()


def execute(query_api: QueryApi, query: FluxQuery) -> list[FluxTable]:
    """
    Run a Flux query and return its tables.

    Args:
        query_api: InfluxDB query API
        query: Query built by FluxQueryBuilder

    Returns:
        Result tables, possibly empty

    Raises:
        StoreQueryError: If the store is unreachable or the query fails
    """
    start_time = time.time()
    try:
        tables = query_api.query(query.text, org=config.influx_org, params=query.params)
    except (ApiException, HTTPError) as e:
        logger.error(f"InfluxDB query {query.operation} failed: {e}")
        raise StoreQueryError(query.operation, str(e)) from e
    finally:
        STORE_QUERY_DURATION.labels(operation=query.operation).observe(
            time.time() - start_time
        )

    logger.debug(f"InfluxDB query {query.operation} returned {len(tables)} tables")
    return list(tables)


def check_influx_connection() -> bool:
    """
    Check if InfluxDB is reachable.

    Returns:
        True if the server answers a ping, False otherwise.
    """
    try:
        return client.ping()
    except Exception:
        return False
