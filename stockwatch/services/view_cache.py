"""
Rendered view invalidation.

The watchlist page and stock detail page keep rendered fragments in Redis.
After a watchlist change those fragments are stale and are deleted so the
next request renders fresh data.
"""

import structlog

from ..database.redis import RedisCache

logger = structlog.get_logger()


def watchlist_view_key(user_id: str) -> str:
    """Cache key for a user's rendered watchlist page."""
    return f"view:watchlist:{user_id}"


def stock_view_key(symbol: str) -> str:
    """Cache key for a symbol's rendered detail page."""
    return f"view:stock:{symbol.upper()}"


class ViewInvalidator:
    """Marks cached views stale after watchlist writes."""

    def __init__(self, redis_cache: RedisCache | None):
        self.redis_cache = redis_cache

    async def invalidate_watchlist_change(self, user_id: str, symbol: str) -> None:
        """
        Invalidate the user's watchlist view and the symbol's detail view.

        Never raises: a failed invalidation only means a view stays stale
        until it expires, so the write that triggered it still succeeds.
        """
        if self.redis_cache is None or self.redis_cache.client is None:
            logger.debug(
                "View cache not configured - skipping invalidation",
                user_id=user_id,
                symbol=symbol,
            )
            return

        keys = [watchlist_view_key(user_id), stock_view_key(symbol)]

        try:
            removed = await self.redis_cache.delete(*keys)
            logger.info("Views invalidated", keys=keys, removed=removed)
        except Exception as e:
            logger.warning(
                "View invalidation failed",
                keys=keys,
                error=str(e),
                error_type=type(e).__name__,
            )
