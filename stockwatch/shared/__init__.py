"""
Shared utilities module.

Provides formatting and sanitization helpers used across the repository,
market data client, and API layers.
"""

from .formatters import (
    NOT_AVAILABLE,
    format_change_percent,
    format_market_cap,
    format_price,
    format_ratio,
    safe_float,
)
from .sanitizers import (
    sanitize_api_response,
    sanitize_exception_message,
    sanitize_text,
)

__all__ = [
    # Formatters
    "NOT_AVAILABLE",
    "safe_float",
    "format_price",
    "format_change_percent",
    "format_market_cap",
    "format_ratio",
    # Sanitizers
    "sanitize_text",
    "sanitize_api_response",
    "sanitize_exception_message",
]
