"""
Rate limiting utilities.

Provides:
- Per-client rate limiter for weather endpoints
- Health check detection for monitoring middleware
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from weather_backend.config import get_config

config = get_config()

# Health and monitoring paths are never rate limited or counted as API traffic
HEALTH_CHECK_PATHS = ("/health", "/", "/metrics")

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=config.rate_limit_storage_uri,
    enabled=config.rate_limit_enabled,
)


def rate_limit(limit: str = config.rate_limit):
    """
    Rate limit decorator for weather endpoints.

    The decorated endpoint must accept a ``request: Request`` argument.

    Args:
        limit: Rate limit string (e.g., "10/minute")

    Returns:
        Decorated function
    """
    def decorator(func):
        return limiter.limit(limit)(func)
    return decorator


def is_health_check(request: Request) -> bool:
    """Check if request is a health check endpoint."""
    return request.url.path in HEALTH_CHECK_PATHS
