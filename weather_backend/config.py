"""Configuration management for the weather station API."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseSettings):
    """API configuration with InfluxDB connection settings."""

    # InfluxDB connection
    influx_url: str = "http://influxdb:8086"
    influx_token: str = "weather-token"
    influx_org: str = "weather"
    influx_bucket: str = "weather_data"
    influx_timeout_ms: int = 10_000

    # Query windows
    default_days: int = 3
    max_lookback_days: int = 365
    latest_window_hours: int = 1
    active_window_hours: int = 24
    average_window_days: int = 7

    # API settings
    api_title: str = "Weather Station API"
    api_version: str = "1.0.0"
    api_description: str = "Read-only REST API for weather station telemetry stored in InfluxDB"

    # CORS settings
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit: str = "100/minute"
    rate_limit_storage_uri: str = "memory://"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global config instance
_config: Optional[APIConfig] = None


def get_config() -> APIConfig:
    """Get or create global configuration instance."""
    global _config
    if _config is None:
        _config = APIConfig()
    return _config
