"""
Market data snapshots returned by the market data client.

Both snapshots are ephemeral: built per fetch, never stored.
"""

from pydantic import BaseModel, Field


class QuoteSnapshot(BaseModel):
    """Current price and daily percent change for a symbol."""

    symbol: str
    current_price: float = Field(0.0, description="Last price (0 = unavailable)")
    change_percent: float = Field(
        0.0, description="Percent change vs previous close (0 = unavailable)"
    )


class FundamentalsSnapshot(BaseModel):
    """Market capitalization and normalized annual P/E for a symbol."""

    symbol: str
    market_capitalization: float = Field(
        0.0, description="Market cap in millions (<= 0 = unavailable)"
    )
    pe_normalized_annual: float = Field(
        0.0, description="Normalized annual P/E ratio (<= 0 = unavailable)"
    )
