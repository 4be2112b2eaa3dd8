"""
Watchlist repository for managing watched stocks.
Handles CRUD operations for the watchlist collection.

Persistence errors never propagate out of this layer: they are logged and
degraded to conservative defaults (empty list, False, failure result).
"""

from collections.abc import Iterable
from typing import Any

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from ...core.utils.date_utils import ensure_utc, utcnow
from ...models.watchlist import (
    WatchlistActionResult,
    WatchlistEntry,
    WatchlistErrorKind,
)

logger = structlog.get_logger()

UNIQUE_INDEX_NAME = "idx_user_symbol"


def normalize_symbol(symbol: str) -> str:
    """Uppercase and trim a ticker symbol for storage and lookup."""
    return symbol.strip().upper()


class WatchlistRepository:
    """Repository for watchlist data access operations."""

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        users_collection: AsyncIOMotorCollection | None = None,
    ):
        """
        Initialize watchlist repository.

        Args:
            collection: MongoDB collection for watchlist entries
            users_collection: MongoDB collection for user identities (email lookup)
        """
        self.collection = collection
        self.users_collection = users_collection

    async def ensure_indexes(self) -> None:
        """
        Create indexes for watchlist queries.
        Called during application startup.
        """
        # Uniqueness of (user_id, symbol) is enforced here, not by a pre-check
        await self.collection.create_index(
            [("user_id", 1), ("symbol", 1)], unique=True, name=UNIQUE_INDEX_NAME
        )
        await self.collection.create_index(
            [("user_id", 1), ("added_at", -1)], name="idx_user_added_at"
        )

        logger.info("Watchlist indexes ensured")

    async def add(self, user_id: str, symbol: str, company: str) -> WatchlistActionResult:
        """
        Add a symbol to a user's watchlist.

        Args:
            user_id: User identifier
            symbol: Ticker symbol (any case)
            company: Company display name

        Returns:
            Success result, or failure with INVALID_SYMBOL / ALREADY_EXISTS /
            PERSISTENCE_FAILURE
        """
        upper_symbol = normalize_symbol(symbol)
        if not upper_symbol:
            return WatchlistActionResult.fail(
                WatchlistErrorKind.INVALID_SYMBOL, "Symbol is required"
            )

        entry = WatchlistEntry(
            user_id=user_id,
            symbol=upper_symbol,
            company=company,
            added_at=utcnow(),
        )

        try:
            await self.collection.insert_one(entry.model_dump())
        except DuplicateKeyError:
            logger.info(
                "Watchlist entry already exists",
                user_id=user_id,
                symbol=upper_symbol,
            )
            return WatchlistActionResult.fail(
                WatchlistErrorKind.ALREADY_EXISTS, "Already in watchlist"
            )
        except Exception as e:
            logger.error(
                "Failed to add watchlist entry",
                user_id=user_id,
                symbol=upper_symbol,
                error=str(e),
                error_type=type(e).__name__,
            )
            return WatchlistActionResult.fail(
                WatchlistErrorKind.PERSISTENCE_FAILURE, "Failed to add to watchlist"
            )

        logger.info(
            "Watchlist entry created",
            user_id=user_id,
            symbol=upper_symbol,
        )

        return WatchlistActionResult.ok("Added to watchlist")

    async def remove(self, user_id: str, symbol: str) -> WatchlistActionResult:
        """
        Remove a symbol from a user's watchlist.

        Returns:
            Success result, or failure with NOT_FOUND / PERSISTENCE_FAILURE
        """
        upper_symbol = normalize_symbol(symbol)
        if not upper_symbol:
            return WatchlistActionResult.fail(
                WatchlistErrorKind.NOT_FOUND, "Not found in watchlist"
            )

        try:
            result = await self.collection.delete_one(
                {"user_id": user_id, "symbol": upper_symbol}
            )
        except Exception as e:
            logger.error(
                "Failed to remove watchlist entry",
                user_id=user_id,
                symbol=upper_symbol,
                error=str(e),
                error_type=type(e).__name__,
            )
            return WatchlistActionResult.fail(
                WatchlistErrorKind.PERSISTENCE_FAILURE,
                "Failed to remove from watchlist",
            )

        if result.deleted_count == 0:
            return WatchlistActionResult.fail(
                WatchlistErrorKind.NOT_FOUND, "Not found in watchlist"
            )

        logger.info("Watchlist entry deleted", user_id=user_id, symbol=upper_symbol)

        return WatchlistActionResult.ok("Removed from watchlist")

    async def list_by_user(self, user_id: str) -> list[WatchlistEntry]:
        """
        Get all watchlist entries for a user.

        Returns:
            Entries sorted by added_at descending (newest first); empty on error.
            Documents that fail validation are skipped.
        """
        try:
            cursor = self.collection.find({"user_id": user_id}).sort("added_at", -1)

            entries = []
            async for item_dict in cursor:
                item_dict.pop("_id", None)
                if item_dict.get("added_at") is not None:
                    item_dict["added_at"] = ensure_utc(item_dict["added_at"])
                try:
                    entries.append(WatchlistEntry(**item_dict))
                except ValidationError as e:
                    logger.warning(
                        "Skipping malformed watchlist entry",
                        user_id=user_id,
                        symbol=item_dict.get("symbol"),
                        error_count=e.error_count(),
                    )

            return entries

        except Exception as e:
            logger.error(
                "Failed to list watchlist entries",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

    async def list_symbols_by_user_email(self, email: str) -> set[str]:
        """
        Resolve a user by email and return their watched symbols.

        Never raises: a blank email, unknown user, missing users collection,
        or any database error yields an empty set.
        """
        if not email or self.users_collection is None:
            return set()

        try:
            user = await self.users_collection.find_one({"email": email})
            if not user:
                return set()

            user_id = _resolve_user_id(user)
            if not user_id:
                return set()

            cursor = self.collection.find(
                {"user_id": user_id}, {"symbol": 1, "_id": 0}
            )
            return {str(item["symbol"]) async for item in cursor}

        except Exception as e:
            logger.error(
                "Failed to list watchlist symbols by email",
                error=str(e),
                error_type=type(e).__name__,
            )
            return set()

    async def status_for_symbols(
        self, user_id: str, symbols: Iterable[str]
    ) -> dict[str, bool]:
        """
        Report which of the candidate symbols are in the user's watchlist.

        Every requested symbol (uppercased) appears as a key; symbols not in
        the watchlist, or all of them on database error, map to False.
        """
        upper_symbols = [normalize_symbol(s) for s in symbols]
        status_map = dict.fromkeys(upper_symbols, False)

        if not upper_symbols:
            return status_map

        try:
            cursor = self.collection.find(
                {"user_id": user_id, "symbol": {"$in": upper_symbols}},
                {"symbol": 1, "_id": 0},
            )
            async for item in cursor:
                if item["symbol"] in status_map:
                    status_map[item["symbol"]] = True

        except Exception as e:
            logger.error(
                "Failed to check watchlist status",
                user_id=user_id,
                symbol_count=len(upper_symbols),
                error=str(e),
                error_type=type(e).__name__,
            )
            return dict.fromkeys(upper_symbols, False)

        return status_map

    async def contains(self, user_id: str, symbol: str) -> bool:
        """Check whether a symbol is in the user's watchlist (False on error)."""
        upper_symbol = normalize_symbol(symbol)

        try:
            item = await self.collection.find_one(
                {"user_id": user_id, "symbol": upper_symbol}, {"_id": 1}
            )
            return item is not None

        except Exception as e:
            logger.error(
                "Failed to check watchlist membership",
                user_id=user_id,
                symbol=upper_symbol,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def has_unique_index(self) -> bool:
        """Whether the (user_id, symbol) unique index exists (False on error)."""
        try:
            indexes = await self.collection.index_information()
        except Exception as e:
            logger.warning(
                "Failed to read watchlist indexes",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        index = indexes.get(UNIQUE_INDEX_NAME)
        return bool(index and index.get("unique"))


def _resolve_user_id(user: dict[str, Any]) -> str:
    """Pick the identity field from a user document."""
    for field in ("user_id", "id", "_id"):
        value = user.get(field)
        if value:
            return str(value)
    return ""
