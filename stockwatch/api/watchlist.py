"""
Watchlist API endpoints for managing watched stocks.
"""

import structlog
from fastapi import APIRouter, Depends, Query, Request

from ..core.exceptions import (
    AppError,
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from ..models.watchlist import (
    EnrichedWatchlistRecord,
    SymbolSearchResult,
    WatchlistActionResult,
    WatchlistEntryCreate,
    WatchlistErrorKind,
    WatchlistStatusRequest,
)
from ..services.watchlist import WatchlistService
from .dependencies.auth import get_optional_user_id, get_watchlist_service
from .dependencies.rate_limit import (
    limiter,
    rate_limit_expensive,
    rate_limit_standard,
    rate_limit_write,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/watchlist", tags=["watchlist"])

_ERRORS: dict[WatchlistErrorKind, type[AppError]] = {
    WatchlistErrorKind.UNAUTHORIZED: AuthenticationError,
    WatchlistErrorKind.INVALID_SYMBOL: ValidationError,
    WatchlistErrorKind.ALREADY_EXISTS: ConflictError,
    WatchlistErrorKind.NOT_FOUND: NotFoundError,
    WatchlistErrorKind.PERSISTENCE_FAILURE: DatabaseError,
}


def _raise_for_result(result: WatchlistActionResult, **context: str | None) -> None:
    """Raise the AppError matching a failed action result."""
    if result.success:
        return

    error_cls = _ERRORS.get(
        result.error or WatchlistErrorKind.PERSISTENCE_FAILURE, DatabaseError
    )
    raise error_cls(result.message, **context)


@router.post("", response_model=WatchlistActionResult, status_code=201)
@rate_limit_write
async def add_to_watchlist(
    request: Request,
    item: WatchlistEntryCreate,
    user_id: str | None = Depends(get_optional_user_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistActionResult:
    """
    Add a symbol to the caller's watchlist.

    Raises:
        AuthenticationError: 401 if unauthenticated
        ValidationError: 400 if the symbol is blank
        ConflictError: 409 if already present
        DatabaseError: 500 if the store is unavailable
    """
    result = await service.add_to_watchlist(user_id, item.symbol, item.company)

    logger.info(
        "Watchlist add requested",
        user_id=user_id,
        symbol=item.symbol.upper(),
        success=result.success,
        error=result.error.value if result.error else None,
    )

    _raise_for_result(result, user_id=user_id, symbol=item.symbol.upper())
    return result


@router.get("", response_model=list[EnrichedWatchlistRecord])
@rate_limit_expensive
async def get_watchlist(
    request: Request,
    user_id: str | None = Depends(get_optional_user_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> list[EnrichedWatchlistRecord]:
    """
    Get the caller's watchlist enriched with live market data.

    Unauthenticated callers receive an empty list. Symbols whose market data
    could not be fetched are still listed, with "N/A" placeholders.
    """
    return await service.get_user_watchlist(user_id)


@router.post("/status", response_model=dict[str, bool])
@rate_limit_standard
async def check_watchlist_status(
    request: Request,
    body: WatchlistStatusRequest,
    user_id: str | None = Depends(get_optional_user_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> dict[str, bool]:
    """
    Report which of the given symbols are in the caller's watchlist.

    Keys are uppercased; unauthenticated callers receive an empty mapping.
    """
    return await service.check_watchlist_status(user_id, body.symbols)


@router.get("/search", response_model=list[SymbolSearchResult])
@limiter.limit("30/minute")
async def search_symbols(
    request: Request,
    q: str = Query(..., min_length=1, max_length=50, description="Symbol or company name"),
    limit: int = Query(10, ge=1, le=50),
    user_id: str | None = Depends(get_optional_user_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> list[SymbolSearchResult]:
    """Search symbols, flagging the ones already in the caller's watchlist."""
    return await service.search_with_watchlist_status(user_id, q, limit=limit)


@router.get("/{symbol}/status")
@rate_limit_standard
async def is_in_watchlist(
    request: Request,
    symbol: str,
    user_id: str | None = Depends(get_optional_user_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> dict[str, str | bool]:
    """Check whether a single symbol is in the caller's watchlist."""
    in_watchlist = await service.is_in_watchlist(user_id, symbol)
    return {"symbol": symbol.upper(), "in_watchlist": in_watchlist}


@router.delete("/{symbol}", response_model=WatchlistActionResult)
@rate_limit_write
async def remove_from_watchlist(
    request: Request,
    symbol: str,
    user_id: str | None = Depends(get_optional_user_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistActionResult:
    """
    Remove a symbol from the caller's watchlist.

    Raises:
        AuthenticationError: 401 if unauthenticated
        NotFoundError: 404 if not in watchlist
        DatabaseError: 500 if the store is unavailable
    """
    result = await service.remove_from_watchlist(user_id, symbol)

    logger.info(
        "Watchlist remove requested",
        user_id=user_id,
        symbol=symbol.upper(),
        success=result.success,
        error=result.error.value if result.error else None,
    )

    _raise_for_result(result, user_id=user_id, symbol=symbol.upper())
    return result
