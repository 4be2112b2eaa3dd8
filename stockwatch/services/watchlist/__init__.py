"""
Watchlist services.

- enrichment: live market data merge for watchlist rows
- service: add/remove/list/status orchestration
"""

from .enrichment import WatchlistEnricher, build_record
from .service import WatchlistService

__all__ = [
    "WatchlistEnricher",
    "WatchlistService",
    "build_record",
]
