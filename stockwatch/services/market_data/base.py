"""
Base class for the Finnhub market data client.
Provides initialization, HTTP client management, and the shared request helper.
"""

from typing import Any

import httpx
import structlog

from ...core.config import Settings
from ...core.exceptions import ExternalServiceError
from ...shared.sanitizers import (
    sanitize_api_response,
    sanitize_exception_message,
    sanitize_text,
)

logger = structlog.get_logger()

SERVICE_NAME = "finnhub"

# Every call must be a fresh fetch; ask intermediaries not to serve cached bodies
NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class FinnhubBase:
    """
    Base class for Finnhub API interactions.

    Provides:
    - HTTP client with connection pooling
    - API key management (sent as the ``token`` query parameter)
    - Error translation to ExternalServiceError with credentials scrubbed
    - Resource cleanup
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        """Initialize client with Finnhub API key and persistent HTTP client.

        Args:
            settings: Application settings with API keys
            client: Optional pre-built HTTP client (tests inject a mock)
        """
        self.settings = settings
        self.api_key = settings.finnhub_api_key
        self.base_url = settings.finnhub_base_url.rstrip("/")

        self.client = client or httpx.AsyncClient(
            timeout=settings.market_data_timeout_seconds,
            headers=NO_CACHE_HEADERS,
            limits=httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0,
            ),
        )

        if not self.api_key:
            logger.warning("Finnhub API key not configured")

        logger.info(
            "Finnhub market data client initialized",
            api_key_configured=bool(self.api_key),
            connection_pool_enabled=True,
        )

    async def close(self) -> None:
        """Close HTTP client and cleanup resources."""
        await self.client.aclose()
        logger.info("Finnhub market data client closed")

    async def _get_json(
        self, path: str, params: dict[str, Any], symbol: str | None = None
    ) -> dict[str, Any]:
        """
        Issue a GET request and return the decoded JSON object.

        Raises:
            ExternalServiceError: transport failure, non-200 status, or a body
                that is not a JSON object
        """
        url = f"{self.base_url}/{path}"

        try:
            response = await self.client.get(
                url,
                params={**params, "token": self.api_key},
                headers=NO_CACHE_HEADERS,
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Finnhub request failed: {sanitize_exception_message(e)}",
                service=SERVICE_NAME,
                endpoint=path,
                symbol=symbol,
                error_type=type(e).__name__,
            ) from e

        if response.status_code != 200:
            raise ExternalServiceError(
                f"Finnhub API error: {response.status_code} - {sanitize_text(response.text)}",
                service=SERVICE_NAME,
                endpoint=path,
                symbol=symbol,
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError(
                "Finnhub returned a malformed response",
                service=SERVICE_NAME,
                endpoint=path,
                symbol=symbol,
            ) from e

        if not isinstance(data, dict):
            raise ExternalServiceError(
                "Finnhub returned an unexpected payload",
                service=SERVICE_NAME,
                endpoint=path,
                symbol=symbol,
            )

        # Some plan and key errors come back as 200 with an error body
        if "error" in data:
            raise ExternalServiceError(
                f"Finnhub API error: {sanitize_api_response(data)['error']}",
                service=SERVICE_NAME,
                endpoint=path,
                symbol=symbol,
            )

        return data
