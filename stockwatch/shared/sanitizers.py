"""
Shared sanitization utilities.

Prevents market data API keys and bearer tokens from leaking into logs,
error messages, and user-facing responses. Finnhub authenticates with a
``token`` query parameter, so request URLs embedded in httpx error messages
must be scrubbed before they are logged.
"""

import re
from typing import Any

# Pre-compiled regex patterns for performance
_QUERY_TOKEN_PATTERN = re.compile(r"((?:token|apikey|api_key)[=:]\s*)([^\s&\"']+)", re.IGNORECASE)
_BEARER_TOKEN_PATTERN = re.compile(r"(Bearer\s+)([A-Za-z0-9._-]+)", re.IGNORECASE)

_SENSITIVE_KEYWORDS = frozenset({"token", "apikey", "api_key", "bearer"})


def sanitize_text(text: str, mask: str = "****") -> str:
    """
    Remove credentials from text strings.

    Args:
        text: Text to sanitize
        mask: Replacement mask for sensitive values

    Returns:
        Sanitized text with sensitive values masked

    Examples:
        >>> sanitize_text("GET https://finnhub.io/api/v1/quote?symbol=AAPL&token=abc123")
        "GET https://finnhub.io/api/v1/quote?symbol=AAPL&token=****"
        >>> sanitize_text("Bearer eyJhbGciOiJIUzI1NiJ9.xyz")
        "Bearer ****"
    """
    if not text:
        return text

    text_lower = text.lower()
    if not any(keyword in text_lower for keyword in _SENSITIVE_KEYWORDS):
        return text

    result = _QUERY_TOKEN_PATTERN.sub(rf"\1{mask}", text)
    result = _BEARER_TOKEN_PATTERN.sub(rf"\1{mask}", result)

    return result


def sanitize_api_response(
    response: dict[str, Any], mask: str = "****"
) -> dict[str, Any]:
    """
    Mask credentials in the error fields of an API response body.

    Args:
        response: API response dictionary
        mask: Replacement mask for sensitive values

    Returns:
        Sanitized copy of the response
    """
    if not response:
        return response

    sanitized = response.copy()

    for field in ("error", "message", "detail"):
        if field in sanitized and isinstance(sanitized[field], str):
            sanitized[field] = sanitize_text(sanitized[field], mask)

    return sanitized


def sanitize_exception_message(exc: Exception, mask: str = "****") -> str:
    """Sanitize an exception message for safe logging/display."""
    return sanitize_text(str(exc), mask)
