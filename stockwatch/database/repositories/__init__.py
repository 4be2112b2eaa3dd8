"""
Repository layer for MongoDB data access.
Provides clean abstraction over database operations.
"""

from .watchlist_repository import WatchlistRepository, normalize_symbol

__all__ = [
    "WatchlistRepository",
    "normalize_symbol",
]
