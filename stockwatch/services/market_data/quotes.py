"""
Stock quotes and symbol search methods for the Finnhub client.
"""

from typing import Any

import structlog

from ...models.market import QuoteSnapshot
from ...shared.formatters import safe_float
from .base import FinnhubBase

logger = structlog.get_logger()


class QuotesMixin(FinnhubBase):
    """Methods for stock quotes and symbol search."""

    async def fetch_quote(self, symbol: str) -> QuoteSnapshot:
        """
        Get the current quote using the Finnhub /quote endpoint.

        Args:
            symbol: Stock symbol

        Returns:
            QuoteSnapshot with current price (``c``) and percent change (``dp``)

        Raises:
            ExternalServiceError: On any upstream failure
        """
        try:
            data = await self._get_json("quote", {"symbol": symbol}, symbol=symbol)

            quote = QuoteSnapshot(
                symbol=symbol,
                current_price=safe_float(data.get("c")),
                change_percent=safe_float(data.get("dp")),
            )

            logger.info(
                "Quote fetched",
                symbol=symbol,
                price=quote.current_price,
            )

            return quote

        except Exception as e:
            logger.error("Quote fetch failed", symbol=symbol, error=str(e))
            raise

    async def search_symbols(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        """
        Search for stock symbols using the Finnhub /search endpoint.

        Args:
            query: Search query (symbol or company name)
            limit: Maximum number of results

        Returns:
            List of results with symbol, description, display_symbol, type
        """
        try:
            data = await self._get_json("search", {"q": query})

            matches = data.get("result") or []

            results = [
                {
                    "symbol": match.get("symbol", ""),
                    "description": match.get("description", ""),
                    "display_symbol": match.get("displaySymbol", ""),
                    "type": match.get("type", ""),
                }
                for match in matches[:limit]
                if match.get("symbol")
            ]

            logger.info(
                "Symbol search completed",
                query=query,
                results_count=len(results),
            )

            return results

        except Exception as e:
            logger.error("Symbol search failed", query=query, error=str(e))
            raise
