"""Prometheus metrics shared by the API and the store access layer."""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "weather_backend_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "weather_backend_request_duration_seconds",
    "API request duration in seconds",
    ["method", "endpoint"]
)
STORE_QUERY_DURATION = Histogram(
    "weather_backend_store_query_duration_seconds",
    "InfluxDB query duration in seconds",
    ["operation"]
)
DROPPED_RECORDS = Counter(
    "weather_backend_dropped_records_total",
    "Store records dropped for missing timestamp or station identifier"
)
COERCION_FAILURES = Counter(
    "weather_backend_coercion_failures_total",
    "Station attributes that could not be parsed as numbers",
    ["field"]
)
