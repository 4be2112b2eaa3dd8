"""
MongoDB connection and operations.
"""

import time

import structlog
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from ..core.exceptions import ConfigurationError, DatabaseError

logger = structlog.get_logger()

WATCHLIST_COLLECTION = "watchlist"
USERS_COLLECTION = "users"


def parse_database_name(mongodb_url: str) -> str:
    """Extract the database name from a MongoDB URL, dropping query parameters."""
    db_with_params = mongodb_url.split("/")[-1]
    return db_with_params.split("?")[0] if "?" in db_with_params else db_with_params


class MongoDB:
    """MongoDB connection manager with async support."""

    def __init__(self) -> None:
        self.client: AsyncIOMotorClient | None = None
        self.database: AsyncIOMotorDatabase | None = None

    async def connect(self, mongodb_url: str) -> None:
        """Establish connection to MongoDB."""
        try:
            database_name = parse_database_name(mongodb_url)

            if not database_name or any(char in database_name for char in ["?", "&", "="]):
                logger.error(
                    "Invalid database name in MongoDB URL",
                    parsed_value=database_name,
                )
                raise ConfigurationError(
                    f"Database name '{database_name}' is invalid. "
                    f"Check MONGODB_URL format: should be mongodb://host/dbname?params",
                    parsed_db_name=database_name,
                )

            # tz_aware so added_at round-trips as an aware UTC datetime
            self.client = AsyncIOMotorClient(mongodb_url, tz_aware=True)
            self.database = self.client[database_name]

            await self.client.admin.command("ping")

            logger.info(
                "MongoDB connection established",
                database=database_name,
                connection_verified=True,
            )

        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(
                "Failed to connect to MongoDB",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DatabaseError(
                f"MongoDB connection failed: {str(e)}",
                original_error=type(e).__name__,
            ) from e

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    async def ping(self) -> float | None:
        """
        Round-trip a ping to the server.

        Returns:
            Latency in milliseconds, or None when unreachable
        """
        if not self.client:
            return None

        started = time.perf_counter()
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            logger.warning("MongoDB ping failed", error=str(e), error_type=type(e).__name__)
            return None

        return round((time.perf_counter() - started) * 1000, 2)

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """Get a MongoDB collection."""
        if self.database is None:
            raise DatabaseError(
                "Cannot get collection: database connection not established",
                collection_name=collection_name,
            )
        return self.database[collection_name]
