"""
Pydantic models for MongoDB collections and market data.
Provides type safety and validation for database operations.
"""

from .market import FundamentalsSnapshot, QuoteSnapshot
from .watchlist import (
    EnrichedWatchlistRecord,
    SymbolSearchResult,
    WatchlistActionResult,
    WatchlistEntry,
    WatchlistEntryCreate,
    WatchlistErrorKind,
    WatchlistStatusRequest,
)

__all__ = [
    "WatchlistEntry",
    "WatchlistEntryCreate",
    "WatchlistStatusRequest",
    "EnrichedWatchlistRecord",
    "WatchlistErrorKind",
    "WatchlistActionResult",
    "SymbolSearchResult",
    "QuoteSnapshot",
    "FundamentalsSnapshot",
]
