"""
Custom exception hierarchy for proper error categorization and HTTP status mapping.

Maps internal errors to HTTP status codes so that logs and responses clearly
distinguish:
- User errors (400-level): Caller lacks identity or the resource state conflicts
- Server errors (500-level): Our infrastructure failed
- External errors (503): The market data provider failed

Usage:
    from stockwatch.core.exceptions import DatabaseError, ExternalServiceError

    raise DatabaseError("Watchlist query failed", user_id=user_id)
    raise ExternalServiceError("Quote request timed out", service="finnhub")
"""

from typing import Any


class AppError(Exception):
    """
    Base application error with HTTP status mapping.

    All custom exceptions inherit from this to enable consistent error handling.
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional key-value pairs for logging (e.g., user_id, symbol)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON response and structured logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


# ===== 400-level: Client Errors =====


class ValidationError(AppError):
    """Caller provided invalid input (e.g., blank symbol)."""

    status_code = 400
    error_type = "validation_error"


class AuthenticationError(AppError):
    """No valid caller identity for an operation that requires one."""

    status_code = 401
    error_type = "authentication_error"


class NotFoundError(AppError):
    """Requested resource does not exist."""

    status_code = 404
    error_type = "not_found_error"


class ConflictError(AppError):
    """Resource already exists (e.g., symbol already in watchlist)."""

    status_code = 409
    error_type = "conflict_error"


# ===== 500-level: Server Errors =====


class DatabaseError(AppError):
    """
    Database operation failed (connection, query, schema issues).

    Examples:
        - Connection timeout to MongoDB
        - Query execution error
        - Database name parsing issue
    """

    status_code = 500
    error_type = "database_error"


class ConfigurationError(AppError):
    """
    Application misconfigured (e.g., missing env vars, invalid settings).

    Should be caught during startup, not during request handling.
    """

    status_code = 500
    error_type = "configuration_error"


# ===== 503: External Service Errors =====


class ExternalServiceError(AppError):
    """
    External service unavailable or returned error.

    Examples:
        - Finnhub quote request timeout
        - Finnhub non-200 response (rate limit, bad key)
        - Malformed JSON body

    Maps to 503 Service Unavailable (third-party problem, retry may help).
    """

    status_code = 503
    error_type = "external_service_error"

    def __init__(self, message: str, service: str, **context: Any):
        """
        Initialize with service name for easier debugging.

        Args:
            message: Error description
            service: Service identifier (e.g., "finnhub")
            **context: Additional context (e.g., symbol, status_code)
        """
        super().__init__(message, service=service, **context)
