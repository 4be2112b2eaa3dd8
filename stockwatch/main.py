"""
FastAPI application entry point for the Stockwatch backend.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .api.dependencies.rate_limit import limiter
from .api.health import router as health_router
from .api.watchlist import router as watchlist_router
from .core.config import get_settings
from .core.exceptions import AppError, AuthenticationError
from .database.mongodb import WATCHLIST_COLLECTION, MongoDB
from .database.redis import RedisCache
from .database.repositories.watchlist_repository import WatchlistRepository
from .services.market_data import FinnhubMarketDataClient

# Set the root logger level to INFO so we can see detailed logs
logging.basicConfig(level=logging.INFO)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management for database and HTTP clients."""
    settings = get_settings()

    logger.info("Starting Stockwatch backend", environment=settings.environment)

    mongodb = MongoDB()
    redis_cache = RedisCache()
    market_data = FinnhubMarketDataClient(settings)

    try:
        await mongodb.connect(settings.mongodb_url)
        await redis_cache.connect(settings.redis_url)

        watchlist_repo = WatchlistRepository(mongodb.get_collection(WATCHLIST_COLLECTION))
        await watchlist_repo.ensure_indexes()
        logger.info("Watchlist indexes created (unique user + symbol)")

        # Store in app state for dependency injection
        app.state.mongodb = mongodb
        app.state.redis = redis_cache
        app.state.market_data = market_data

        logger.info("Service connections started")

        yield

    finally:
        await market_data.close()
        await mongodb.disconnect()
        await redis_cache.disconnect()
        logger.info("Service connections stopped")


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return a 429 with a retry hint."""
    return JSONResponse(
        status_code=429,
        content={"error": f"Rate limit exceeded: {exc.detail}"},
        headers={"Retry-After": str(60)},
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map AppError subclasses to their HTTP status codes."""
    error_dict = exc.to_dict()

    if exc.status_code >= 500:
        logger.error(
            "Application error occurred",
            path=request.url.path,
            method=request.method,
            **error_dict,
        )
    else:
        logger.info(
            "Request rejected",
            path=request.url.path,
            method=request.method,
            **error_dict,
        )

    headers = (
        {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_type": exc.error_type},
        headers=headers,
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Stockwatch API",
        description="Stock watchlist with live market data",
        version="0.1.0",
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
        lifespan=lifespan,
    )

    # Security middleware - only in production
    if settings.environment == "production":
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.allowed_hosts,
        )

    # CORS middleware for frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    # Rate limiting - SlowAPI integration
    app.state.limiter = limiter
    # Middleware breaks FastAPI TestClient
    if settings.environment != "test":
        app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]

    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(watchlist_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint for basic connectivity check."""
        return {
            "message": "Stockwatch API",
            "version": "0.1.0",
            "environment": settings.environment,
        }

    return app


# Create app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "stockwatch.main:app",
        host="0.0.0.0",  # nosec B104 - Required for Docker container
        port=8000,
        reload=settings.environment == "development",
    )
