"""
Finnhub market data client.

This module is organized into the following components:
- base: Initialization, HTTP client, and request/error handling
- quotes: Stock quotes and symbol search
- fundamentals: Market capitalization and P/E metrics
"""

from .base import FinnhubBase
from .fundamentals import FundamentalsMixin
from .quotes import QuotesMixin


class FinnhubMarketDataClient(
    QuotesMixin,
    FundamentalsMixin,
    FinnhubBase,
):
    """
    Market data client using the Finnhub API.

    Features:
    - Real-time quotes (/quote)
    - Basic financial metrics (/stock/metric)
    - Symbol search (/search)

    Every call is a fresh network fetch; nothing is cached.
    """

    pass


__all__ = [
    "FinnhubMarketDataClient",
]
