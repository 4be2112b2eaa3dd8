"""
Watchlist enrichment with live market data.

Fans out one task per watchlist entry, fetches quote and fundamentals for each
symbol, and merges the results into display-ready records. A failure for one
symbol never affects another: the failing row is returned with "N/A"
placeholders instead.

Concurrency is bounded by a semaphore, and every upstream call runs under a
deadline with a capped number of retries. Output order always matches input
order.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar

import structlog

from ...core.config import Settings
from ...models.market import FundamentalsSnapshot, QuoteSnapshot
from ...models.watchlist import EnrichedWatchlistRecord, WatchlistEntry
from ...shared.formatters import (
    NOT_AVAILABLE,
    format_change_percent,
    format_market_cap,
    format_price,
    format_ratio,
    safe_float,
)

logger = structlog.get_logger()

T = TypeVar("T")


class MarketDataSource(Protocol):
    """Per-symbol market data lookups required by the enricher."""

    async def fetch_quote(self, symbol: str) -> QuoteSnapshot: ...

    async def fetch_fundamentals(self, symbol: str) -> FundamentalsSnapshot: ...


def build_record(
    entry: WatchlistEntry,
    quote: QuoteSnapshot | None,
    fundamentals: FundamentalsSnapshot | None,
) -> EnrichedWatchlistRecord:
    """
    Merge a stored entry with market snapshots and apply display formatting.

    Missing snapshots and non-finite values are treated as zero, which
    formats to "N/A".
    """
    current_price = safe_float(quote.current_price) if quote else 0.0
    change_percent = safe_float(quote.change_percent) if quote else 0.0
    market_cap = safe_float(fundamentals.market_capitalization) if fundamentals else 0.0
    pe_ratio = safe_float(fundamentals.pe_normalized_annual) if fundamentals else 0.0

    return EnrichedWatchlistRecord(
        user_id=entry.user_id,
        symbol=entry.symbol,
        company=entry.company,
        added_at=entry.added_at,
        current_price=current_price,
        change_percent=change_percent,
        price_formatted=format_price(current_price),
        change_formatted=format_change_percent(change_percent),
        market_cap=format_market_cap(market_cap),
        pe_ratio=format_ratio(pe_ratio),
    )


class WatchlistEnricher:
    """
    Enriches watchlist entries with quote and fundamentals data.

    Args:
        market_data: Client providing fetch_quote / fetch_fundamentals
        max_concurrency: Max entries enriched at the same time
        timeout_seconds: Deadline for each upstream call
        max_attempts: Attempts per upstream call (1 = no retry)
        backoff_seconds: Delay before the first retry, doubled afterwards
    """

    def __init__(
        self,
        market_data: MarketDataSource,
        max_concurrency: int = 8,
        timeout_seconds: float = 10.0,
        max_attempts: int = 1,
        backoff_seconds: float = 0.5,
    ):
        self.market_data = market_data
        self.max_concurrency = max(1, max_concurrency)
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds

    @classmethod
    def from_settings(
        cls, market_data: MarketDataSource, settings: Settings
    ) -> "WatchlistEnricher":
        """Build an enricher using the configured fan-out policy."""
        return cls(
            market_data,
            max_concurrency=settings.watchlist_max_concurrency,
            timeout_seconds=settings.market_data_timeout_seconds,
            max_attempts=settings.market_data_max_attempts,
            backoff_seconds=settings.market_data_retry_backoff_seconds,
        )

    async def enrich(
        self, entries: Sequence[WatchlistEntry]
    ) -> list[EnrichedWatchlistRecord]:
        """
        Enrich all entries concurrently.

        Args:
            entries: Watchlist entries in display order

        Returns:
            One record per entry, in the same order as the input
        """
        if not entries:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(entry: WatchlistEntry) -> EnrichedWatchlistRecord:
            async with semaphore:
                return await self._enrich_entry(entry)

        # gather preserves argument order regardless of completion order
        records = await asyncio.gather(*(bounded(entry) for entry in entries))

        logger.info(
            "Watchlist enriched",
            count=len(records),
            unavailable=sum(1 for r in records if r.price_formatted == NOT_AVAILABLE),
        )

        return list(records)

    async def _enrich_entry(self, entry: WatchlistEntry) -> EnrichedWatchlistRecord:
        """Fetch market data for one entry; any failure yields N/A defaults."""
        try:
            quote = await self._fetch_with_retry(
                self.market_data.fetch_quote, entry.symbol, "quote"
            )
            fundamentals = await self._fetch_with_retry(
                self.market_data.fetch_fundamentals, entry.symbol, "fundamentals"
            )
        except Exception as e:
            logger.warning(
                "Market data unavailable for watchlist symbol",
                symbol=entry.symbol,
                error=str(e),
                error_type=type(e).__name__,
            )
            return build_record(entry, None, None)

        return build_record(entry, quote, fundamentals)

    async def _fetch_with_retry(
        self,
        fetch: Callable[[str], Awaitable[T]],
        symbol: str,
        kind: str,
    ) -> T:
        """
        Run one upstream call under a deadline, retrying with backoff.

        Raises:
            The last error once attempts are exhausted (TimeoutError on deadline)
        """
        delay = self.backoff_seconds
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await asyncio.wait_for(fetch(symbol), timeout=self.timeout_seconds)
            except Exception as e:
                if attempt >= self.max_attempts:
                    raise
                logger.info(
                    "Retrying market data fetch",
                    symbol=symbol,
                    kind=kind,
                    attempt=attempt,
                    retry_in_seconds=delay,
                    error_type=type(e).__name__,
                )
                await asyncio.sleep(delay)
                delay *= 2

        # Unreachable: the loop either returns or raises
        raise RuntimeError("max_attempts must be at least 1")
