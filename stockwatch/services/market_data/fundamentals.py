"""
Company fundamentals for the Finnhub client.
"""

import structlog

from ...models.market import FundamentalsSnapshot
from ...shared.formatters import safe_float
from .base import FinnhubBase

logger = structlog.get_logger()


class FundamentalsMixin(FinnhubBase):
    """Methods for company fundamentals (basic financial metrics)."""

    async def fetch_fundamentals(self, symbol: str) -> FundamentalsSnapshot:
        """
        Get basic financials using the /stock/metric endpoint (metric=all).

        Only market capitalization (millions) and normalized annual P/E are
        extracted; missing metrics come back as 0.

        Raises:
            ExternalServiceError: On any upstream failure
        """
        try:
            data = await self._get_json(
                "stock/metric", {"symbol": symbol, "metric": "all"}, symbol=symbol
            )

            metric = data.get("metric") or {}

            fundamentals = FundamentalsSnapshot(
                symbol=symbol,
                market_capitalization=safe_float(metric.get("marketCapitalization")),
                pe_normalized_annual=safe_float(metric.get("peNormalizedAnnual")),
            )

            logger.info(
                "Fundamentals fetched",
                symbol=symbol,
                market_cap_millions=fundamentals.market_capitalization,
            )

            return fundamentals

        except Exception as e:
            logger.error("Fundamentals fetch failed", symbol=symbol, error=str(e))
            raise
