"""
Rate limiting dependencies for API endpoints.

Uses slowapi; the storage backend comes from settings (in-memory by default,
Redis when shared across backend instances).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from ...core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    storage_uri=get_settings().rate_limit_storage_uri,
)


def rate_limit_standard(func):
    """
    Standard rate limit for read operations.

    Allows 60 requests per minute.
    """
    return limiter.limit("60/minute")(func)


def rate_limit_expensive(func):
    """
    Restrictive rate limit for endpoints that fan out to the market data API.

    Allows 20 requests per minute.
    """
    return limiter.limit("20/minute")(func)


def rate_limit_write(func):
    """
    Moderate rate limit for write operations.

    Allows 30 requests per minute.
    """
    return limiter.limit("30/minute")(func)
