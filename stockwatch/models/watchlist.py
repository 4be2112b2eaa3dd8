"""
Watchlist models for tracking symbols a user follows.

Simple structure for managing a user's watched stocks plus the display-ready
record built when the list is enriched with live market data.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..core.utils.date_utils import utcnow


class WatchlistEntry(BaseModel):
    """
    Persisted watchlist entry for a stock symbol.

    The pair (user_id, symbol) is unique.
    """

    user_id: str = Field(..., description="User who owns this watchlist entry")
    symbol: str = Field(..., description="Uppercase stock symbol (e.g., AAPL)")
    company: str = Field("", description="Company display name")
    added_at: datetime = Field(
        default_factory=utcnow,
        description="When symbol was added to watchlist",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "symbol": "AAPL",
                "company": "Apple Inc",
                "added_at": "2025-11-01T10:00:00Z",
            }
        }


class WatchlistEntryCreate(BaseModel):
    """Request model for adding a symbol to the watchlist."""

    symbol: str = Field(
        ...,
        description="Stock symbol",
        min_length=1,
        max_length=10,
        pattern=r"^\S+$",
    )
    company: str = Field("", description="Company display name", max_length=200)

    class Config:
        json_schema_extra = {
            "example": {
                "symbol": "AAPL",
                "company": "Apple Inc",
            }
        }


class WatchlistStatusRequest(BaseModel):
    """Request model for checking membership of several symbols."""

    symbols: list[str] = Field(..., description="Candidate symbols", max_length=200)


class EnrichedWatchlistRecord(BaseModel):
    """
    Watchlist entry merged with live quote and fundamentals data.

    Built fresh on every list request; never cached or persisted. Display
    fields fall back to "N/A" whenever the underlying value is unavailable.
    """

    user_id: str
    symbol: str
    company: str
    added_at: datetime

    # Raw market values (0 when unavailable)
    current_price: float = 0.0
    change_percent: float = 0.0

    # Display strings
    price_formatted: str = "N/A"
    change_formatted: str = "N/A"
    market_cap: str = "N/A"
    pe_ratio: str = "N/A"


class WatchlistErrorKind(str, Enum):
    """Failure categories surfaced by watchlist write operations."""

    UNAUTHORIZED = "unauthorized"
    INVALID_SYMBOL = "invalid_symbol"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    PERSISTENCE_FAILURE = "persistence_failure"


class WatchlistActionResult(BaseModel):
    """Outcome of an add/remove operation (returned, not raised)."""

    success: bool
    message: str
    error: WatchlistErrorKind | None = None

    @classmethod
    def ok(cls, message: str) -> "WatchlistActionResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, error: WatchlistErrorKind, message: str) -> "WatchlistActionResult":
        return cls(success=False, message=message, error=error)


class SymbolSearchResult(BaseModel):
    """Symbol search hit annotated with the caller's watchlist membership."""

    symbol: str
    description: str = ""
    display_symbol: str = ""
    type: str = ""
    in_watchlist: bool = False
