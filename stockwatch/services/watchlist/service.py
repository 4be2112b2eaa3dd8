"""
Watchlist service orchestrating the repository, enricher and view cache.

Caller identity is resolved once at the API boundary and passed in as
``user_id``; ``None`` means unauthenticated. Writes report that as an
UNAUTHORIZED result, reads degrade to empty values.
"""

import structlog

from ...database.repositories.watchlist_repository import (
    WatchlistRepository,
    normalize_symbol,
)
from ...models.watchlist import (
    EnrichedWatchlistRecord,
    SymbolSearchResult,
    WatchlistActionResult,
    WatchlistErrorKind,
)
from ..market_data import FinnhubMarketDataClient
from ..view_cache import ViewInvalidator
from .enrichment import WatchlistEnricher

logger = structlog.get_logger()

UNAUTHORIZED_MESSAGE = "Unauthorized"


class WatchlistService:
    """Add/remove/list/status operations for a user's watchlist."""

    def __init__(
        self,
        repository: WatchlistRepository,
        enricher: WatchlistEnricher,
        invalidator: ViewInvalidator,
        market_data: FinnhubMarketDataClient | None = None,
    ):
        """
        Args:
            repository: Watchlist store
            enricher: Market data enrichment for list requests
            invalidator: Stale-view signal after writes
            market_data: Client used for symbol search (optional)
        """
        self.repository = repository
        self.enricher = enricher
        self.invalidator = invalidator
        self.market_data = market_data

    async def add_to_watchlist(
        self, user_id: str | None, symbol: str, company: str
    ) -> WatchlistActionResult:
        """Add a symbol for the caller and invalidate dependent views."""
        if not user_id:
            return WatchlistActionResult.fail(
                WatchlistErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE
            )

        result = await self.repository.add(user_id, symbol, company)

        if result.success:
            await self.invalidator.invalidate_watchlist_change(
                user_id, normalize_symbol(symbol)
            )

        return result

    async def remove_from_watchlist(
        self, user_id: str | None, symbol: str
    ) -> WatchlistActionResult:
        """Remove a symbol for the caller and invalidate dependent views."""
        if not user_id:
            return WatchlistActionResult.fail(
                WatchlistErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE
            )

        result = await self.repository.remove(user_id, symbol)

        if result.success:
            await self.invalidator.invalidate_watchlist_change(
                user_id, normalize_symbol(symbol)
            )

        return result

    async def get_user_watchlist(
        self, user_id: str | None
    ) -> list[EnrichedWatchlistRecord]:
        """Enriched watchlist, newest first; empty for unauthenticated callers."""
        if not user_id:
            return []

        entries = await self.repository.list_by_user(user_id)
        records = await self.enricher.enrich(entries)

        logger.info("Watchlist retrieved", user_id=user_id, count=len(records))

        return records

    async def check_watchlist_status(
        self, user_id: str | None, symbols: list[str]
    ) -> dict[str, bool]:
        """Membership map for candidate symbols; empty for unauthenticated callers."""
        if not user_id:
            return {}

        return await self.repository.status_for_symbols(user_id, symbols)

    async def is_in_watchlist(self, user_id: str | None, symbol: str) -> bool:
        """Membership check; False for unauthenticated callers."""
        if not user_id:
            return False

        return await self.repository.contains(user_id, symbol)

    async def get_watchlist_symbols_by_email(self, email: str) -> set[str]:
        """Symbols watched by the user registered under ``email``."""
        return await self.repository.list_symbols_by_user_email(email)

    async def search_with_watchlist_status(
        self, user_id: str | None, query: str, limit: int = 10
    ) -> list[SymbolSearchResult]:
        """
        Search symbols and flag the ones already in the caller's watchlist.

        Upstream search failure degrades to an empty result list.
        """
        if self.market_data is None or not query.strip():
            return []

        try:
            matches = await self.market_data.search_symbols(query.strip(), limit=limit)
        except Exception as e:
            logger.warning(
                "Symbol search unavailable",
                query=query,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        status_map: dict[str, bool] = {}
        if user_id and matches:
            status_map = await self.repository.status_for_symbols(
                user_id, [m["symbol"] for m in matches]
            )

        return [
            SymbolSearchResult(
                symbol=m["symbol"],
                description=m.get("description", ""),
                display_symbol=m.get("display_symbol", ""),
                type=m.get("type", ""),
                in_watchlist=status_map.get(normalize_symbol(m["symbol"]), False),
            )
            for m in matches
        ]
