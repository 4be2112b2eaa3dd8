"""
Shared dependencies for API endpoints: infrastructure handles from app state,
caller identity, and the wired watchlist service.
"""

import structlog
from fastapi import Depends, Header, Request

from ...core.config import Settings, get_settings
from ...database.mongodb import USERS_COLLECTION, WATCHLIST_COLLECTION, MongoDB
from ...database.redis import RedisCache
from ...database.repositories.watchlist_repository import WatchlistRepository
from ...services.auth_service import AuthService
from ...services.market_data import FinnhubMarketDataClient
from ...services.view_cache import ViewInvalidator
from ...services.watchlist import WatchlistEnricher, WatchlistService

logger = structlog.get_logger()


def get_mongodb(request: Request) -> MongoDB:
    """Get MongoDB instance from app state."""
    mongodb: MongoDB = request.app.state.mongodb
    return mongodb


def get_redis_cache(request: Request) -> RedisCache:
    """Get RedisCache instance from app state."""
    redis_cache: RedisCache = request.app.state.redis
    return redis_cache


def get_market_data_client(request: Request) -> FinnhubMarketDataClient:
    """Get the shared Finnhub client from app state."""
    client: FinnhubMarketDataClient = request.app.state.market_data
    return client


def get_auth_service(settings: Settings = Depends(get_settings)) -> AuthService:
    """Get auth service for token verification."""
    return AuthService(settings.secret_key)


async def get_optional_user_id(
    authorization: str | None = Header(None),
    auth_service: AuthService = Depends(get_auth_service),
) -> str | None:
    """
    Resolve the caller's user ID from a Bearer token, if any.

    Missing, malformed, invalid and expired tokens all resolve to None;
    each endpoint decides what an unauthenticated caller gets.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.debug("Ignoring malformed authorization header")
        return None

    return auth_service.verify_token(parts[1])


def get_watchlist_repository(
    mongodb: MongoDB = Depends(get_mongodb),
) -> WatchlistRepository:
    """Get watchlist repository instance."""
    return WatchlistRepository(
        mongodb.get_collection(WATCHLIST_COLLECTION),
        users_collection=mongodb.get_collection(USERS_COLLECTION),
    )


def get_watchlist_service(
    repository: WatchlistRepository = Depends(get_watchlist_repository),
    redis_cache: RedisCache = Depends(get_redis_cache),
    market_data: FinnhubMarketDataClient = Depends(get_market_data_client),
    settings: Settings = Depends(get_settings),
) -> WatchlistService:
    """Wire the watchlist service for one request."""
    return WatchlistService(
        repository=repository,
        enricher=WatchlistEnricher.from_settings(market_data, settings),
        invalidator=ViewInvalidator(redis_cache),
        market_data=market_data,
    )
