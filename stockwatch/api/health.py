"""
Health endpoints for the watchlist service.

The watchlist store is the only hard dependency: the view cache and the
market data provider both degrade to stale views or "N/A" rows, so they
are reported but never block readiness.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from ..core.config import Settings, get_settings
from ..core.utils.date_utils import utcnow
from ..database.mongodb import MongoDB
from ..database.redis import RedisCache
from ..database.repositories.watchlist_repository import WatchlistRepository
from .dependencies.auth import get_mongodb, get_redis_cache, get_watchlist_repository

logger = structlog.get_logger()

router = APIRouter()


async def _store_check(
    mongodb: MongoDB, repository: WatchlistRepository
) -> dict[str, Any]:
    latency_ms = await mongodb.ping()
    reachable = latency_ms is not None
    return {
        "reachable": reachable,
        "latency_ms": latency_ms,
        "unique_index": await repository.has_unique_index() if reachable else False,
    }


@router.get("/health")
async def health_check(
    mongodb: MongoDB = Depends(get_mongodb),
    repository: WatchlistRepository = Depends(get_watchlist_repository),
    redis_cache: RedisCache = Depends(get_redis_cache),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Report the state of everything a watchlist request touches.

    Status is "down" when the watchlist store is unreachable, "degraded"
    when anything else is missing (unique index, view cache, Finnhub key),
    and "ok" otherwise.
    """
    store = await _store_check(mongodb, repository)
    cache_reachable = await redis_cache.ping()
    market_data_configured = bool(settings.finnhub_api_key)

    if not store["reachable"]:
        status = "down"
    elif store["unique_index"] and cache_reachable and market_data_configured:
        status = "ok"
    else:
        status = "degraded"

    checks = {
        "watchlist_store": store,
        "view_cache": {"reachable": cache_reachable},
        "market_data": {
            "provider": "finnhub",
            "configured": market_data_configured,
        },
    }

    if status == "ok":
        logger.info("Health check passed")
    else:
        logger.warning("Health check not ok", status=status, checks=checks)

    return {
        "status": status,
        "environment": settings.environment,
        "timestamp": utcnow().isoformat(),
        "checks": checks,
    }


@router.get("/health/ready")
async def readiness_check(
    mongodb: MongoDB = Depends(get_mongodb),
    repository: WatchlistRepository = Depends(get_watchlist_repository),
) -> dict[str, Any]:
    """Ready once the store answers and duplicate adds are rejected by its index."""
    store = await _store_check(mongodb, repository)
    return {
        "ready": store["reachable"] and store["unique_index"],
        "watchlist_store": store,
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, bool]:
    """The process is serving requests."""
    return {"alive": True}
