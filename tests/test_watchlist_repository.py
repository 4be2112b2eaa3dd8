"""
Unit tests for WatchlistRepository.

Tests watchlist data access operations including:
- Adding entries with symbol normalization and uniqueness
- Removing entries (found / not found)
- Listing entries newest first
- Email-based symbol lookup
- Batch membership status and single membership checks
- Degradation to safe defaults on database errors
- Index creation
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock, patch

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from stockwatch.database.repositories.watchlist_repository import (
    WatchlistRepository,
    normalize_symbol,
)
from stockwatch.models.watchlist import WatchlistErrorKind


def make_cursor(docs):
    """Mock motor cursor supporting .sort() and async iteration."""

    async def mock_async_iter():
        for doc in docs:
            yield doc

    mock_cursor = Mock()
    mock_cursor.sort = Mock(return_value=mock_cursor)
    mock_cursor.__aiter__ = lambda self: mock_async_iter()
    return mock_cursor


class InMemoryCollection:
    """Minimal motor-like collection enforcing the (user_id, symbol) unique index."""

    def __init__(self):
        self.docs: list[dict] = []

    @staticmethod
    def _matches(doc, query):
        for key, expected in query.items():
            if isinstance(expected, dict) and "$in" in expected:
                if doc.get(key) not in expected["$in"]:
                    return False
            elif doc.get(key) != expected:
                return False
        return True

    async def insert_one(self, doc):
        for existing in self.docs:
            if (existing["user_id"], existing["symbol"]) == (doc["user_id"], doc["symbol"]):
                raise DuplicateKeyError("E11000 duplicate key error idx_user_symbol")
        self.docs.append(dict(doc))
        return Mock(inserted_id=len(self.docs))

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[i]
                return Mock(deleted_count=1)
        return Mock(deleted_count=0)

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    def find(self, query, projection=None):
        matched = [dict(doc) for doc in self.docs if self._matches(doc, query)]
        cursor = make_cursor(matched)

        def sort(key, direction):
            matched.sort(key=lambda d: d[key], reverse=direction == -1)
            return cursor

        cursor.sort = Mock(side_effect=sort)
        return cursor


# ===== Fixtures =====


@pytest.fixture
def mock_collection():
    """Mock MongoDB collection"""
    collection = Mock()
    collection.create_index = AsyncMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock()
    collection.find = Mock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def mock_users_collection():
    """Mock MongoDB users collection"""
    collection = Mock()
    collection.find_one = AsyncMock()
    return collection


@pytest.fixture
def repository(mock_collection, mock_users_collection):
    """Create WatchlistRepository instance"""
    return WatchlistRepository(mock_collection, users_collection=mock_users_collection)


@pytest.fixture
def store():
    """Repository backed by an in-memory collection"""
    return WatchlistRepository(InMemoryCollection())


# ===== normalize_symbol Tests =====


class TestNormalizeSymbol:
    """Test symbol normalization"""

    def test_uppercases(self):
        assert normalize_symbol("aapl") == "AAPL"

    def test_strips_whitespace(self):
        assert normalize_symbol("  msft ") == "MSFT"


# ===== add Tests =====


class TestAdd:
    """Test adding watchlist entries"""

    @pytest.mark.asyncio
    async def test_add_success_normalizes_symbol(self, repository, mock_collection):
        """Symbol is stored uppercase with an added_at timestamp"""
        result = await repository.add("user_123", "aapl", "Apple Inc")

        assert result.success is True
        assert result.message == "Added to watchlist"
        assert result.error is None

        inserted = mock_collection.insert_one.call_args[0][0]
        assert inserted["user_id"] == "user_123"
        assert inserted["symbol"] == "AAPL"
        assert inserted["company"] == "Apple Inc"
        assert isinstance(inserted["added_at"], datetime)

    @pytest.mark.asyncio
    async def test_add_duplicate_returns_already_exists(self, repository, mock_collection):
        """Unique index violation maps to ALREADY_EXISTS"""
        mock_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        result = await repository.add("user_123", "AAPL", "Apple Inc")

        assert result.success is False
        assert result.error == WatchlistErrorKind.ALREADY_EXISTS
        assert result.message == "Already in watchlist"

    @pytest.mark.asyncio
    async def test_add_database_error_returns_failure(self, repository, mock_collection):
        """Connectivity errors degrade to a generic failure result"""
        mock_collection.insert_one.side_effect = ServerSelectionTimeoutError("timeout")

        result = await repository.add("user_123", "AAPL", "Apple Inc")

        assert result.success is False
        assert result.error == WatchlistErrorKind.PERSISTENCE_FAILURE
        assert result.message == "Failed to add to watchlist"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("symbol", ["", "   ", "\t\n"])
    async def test_add_blank_symbol_rejected(self, repository, mock_collection, symbol):
        result = await repository.add("user_123", symbol, "Nothing")

        assert result.success is False
        assert result.error == WatchlistErrorKind.INVALID_SYMBOL
        mock_collection.insert_one.assert_not_called()


# ===== remove Tests =====


class TestRemove:
    """Test removing watchlist entries"""

    @pytest.mark.asyncio
    async def test_remove_success(self, repository, mock_collection):
        mock_collection.delete_one.return_value = Mock(deleted_count=1)

        result = await repository.remove("user_123", "tsla")

        assert result.success is True
        assert result.message == "Removed from watchlist"
        mock_collection.delete_one.assert_called_once_with(
            {"user_id": "user_123", "symbol": "TSLA"}
        )

    @pytest.mark.asyncio
    async def test_remove_not_found(self, repository, mock_collection):
        mock_collection.delete_one.return_value = Mock(deleted_count=0)

        result = await repository.remove("user_123", "TSLA")

        assert result.success is False
        assert result.error == WatchlistErrorKind.NOT_FOUND
        assert result.message == "Not found in watchlist"

    @pytest.mark.asyncio
    async def test_remove_database_error(self, repository, mock_collection):
        mock_collection.delete_one.side_effect = Exception("connection reset")

        result = await repository.remove("user_123", "TSLA")

        assert result.success is False
        assert result.error == WatchlistErrorKind.PERSISTENCE_FAILURE
        assert result.message == "Failed to remove from watchlist"

    @pytest.mark.asyncio
    async def test_remove_blank_symbol_not_found(self, repository, mock_collection):
        result = await repository.remove("user_123", "   ")

        assert result.error == WatchlistErrorKind.NOT_FOUND
        mock_collection.delete_one.assert_not_called()


# ===== list_by_user Tests =====


class TestListByUser:
    """Test listing a user's entries"""

    @pytest.mark.asyncio
    async def test_list_by_user_sorted_newest_first(self, repository, mock_collection):
        now = datetime.now(UTC)
        docs = [
            {"_id": "id2", "user_id": "user_123", "symbol": "MSFT", "company": "Microsoft", "added_at": now},
            {"_id": "id1", "user_id": "user_123", "symbol": "AAPL", "company": "Apple", "added_at": now - timedelta(days=1)},
        ]
        mock_cursor = make_cursor(docs)
        mock_collection.find.return_value = mock_cursor

        result = await repository.list_by_user("user_123")

        assert [e.symbol for e in result] == ["MSFT", "AAPL"]
        mock_collection.find.assert_called_once_with({"user_id": "user_123"})
        mock_cursor.sort.assert_called_once_with("added_at", -1)

    @pytest.mark.asyncio
    async def test_list_by_user_naive_datetime_normalized(self, repository, mock_collection):
        """Naive datetimes from MongoDB come back as UTC-aware"""
        docs = [
            {"user_id": "user_123", "symbol": "AAPL", "company": "Apple", "added_at": datetime(2025, 1, 1, 12, 0)},
        ]
        mock_collection.find.return_value = make_cursor(docs)

        result = await repository.list_by_user("user_123")

        assert result[0].added_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_list_by_user_empty(self, repository, mock_collection):
        mock_collection.find.return_value = make_cursor([])

        assert await repository.list_by_user("user_empty") == []

    @pytest.mark.asyncio
    async def test_list_by_user_database_error_returns_empty(self, repository, mock_collection):
        mock_collection.find.side_effect = ServerSelectionTimeoutError("timeout")

        assert await repository.list_by_user("user_123") == []

    @pytest.mark.asyncio
    async def test_list_by_user_skips_malformed_document(self, repository, mock_collection):
        """One bad row does not hide the rest of the list"""
        now = datetime.now(UTC)
        docs = [
            {"user_id": "user_123", "symbol": "BAD", "company": None, "added_at": now},
            {"user_id": "user_123", "symbol": "AAPL", "company": "Apple", "added_at": now - timedelta(days=1)},
        ]
        mock_collection.find.return_value = make_cursor(docs)

        result = await repository.list_by_user("user_123")

        assert [e.symbol for e in result] == ["AAPL"]


# ===== list_symbols_by_user_email Tests =====


class TestListSymbolsByUserEmail:
    """Test email-based symbol lookup"""

    @pytest.mark.asyncio
    async def test_returns_symbols_for_known_email(
        self, repository, mock_collection, mock_users_collection
    ):
        mock_users_collection.find_one.return_value = {"_id": "oid", "user_id": "user_123", "email": "a@b.com"}
        mock_collection.find.return_value = make_cursor([{"symbol": "AAPL"}, {"symbol": "NVDA"}])

        result = await repository.list_symbols_by_user_email("a@b.com")

        assert result == {"AAPL", "NVDA"}
        mock_users_collection.find_one.assert_called_once_with({"email": "a@b.com"})
        mock_collection.find.assert_called_once_with(
            {"user_id": "user_123"}, {"symbol": 1, "_id": 0}
        )

    @pytest.mark.asyncio
    async def test_falls_back_to_object_id(
        self, repository, mock_collection, mock_users_collection
    ):
        """Users without user_id/id fields are identified by _id"""
        mock_users_collection.find_one.return_value = {"_id": "abc123", "email": "a@b.com"}
        mock_collection.find.return_value = make_cursor([{"symbol": "AAPL"}])

        result = await repository.list_symbols_by_user_email("a@b.com")

        assert result == {"AAPL"}
        mock_collection.find.assert_called_once_with(
            {"user_id": "abc123"}, {"symbol": 1, "_id": 0}
        )

    @pytest.mark.asyncio
    async def test_blank_email_returns_empty(self, repository, mock_users_collection):
        assert await repository.list_symbols_by_user_email("") == set()
        mock_users_collection.find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_email_returns_empty(self, repository, mock_users_collection):
        mock_users_collection.find_one.return_value = None

        assert await repository.list_symbols_by_user_email("nobody@b.com") == set()

    @pytest.mark.asyncio
    async def test_database_error_returns_empty(self, repository, mock_users_collection):
        mock_users_collection.find_one.side_effect = Exception("boom")

        assert await repository.list_symbols_by_user_email("a@b.com") == set()

    @pytest.mark.asyncio
    async def test_no_users_collection_returns_empty(self, mock_collection):
        repo = WatchlistRepository(mock_collection)

        assert await repo.list_symbols_by_user_email("a@b.com") == set()


# ===== status_for_symbols Tests =====


class TestStatusForSymbols:
    """Test batch membership status"""

    @pytest.mark.asyncio
    async def test_every_requested_symbol_is_a_key(self, repository, mock_collection):
        mock_collection.find.return_value = make_cursor([{"symbol": "B"}])

        result = await repository.status_for_symbols("user_123", ["a", "b", "c"])

        assert result == {"A": False, "B": True, "C": False}
        mock_collection.find.assert_called_once_with(
            {"user_id": "user_123", "symbol": {"$in": ["A", "B", "C"]}},
            {"symbol": 1, "_id": 0},
        )

    @pytest.mark.asyncio
    async def test_empty_input_skips_query(self, repository, mock_collection):
        assert await repository.status_for_symbols("user_123", []) == {}
        mock_collection.find.assert_not_called()

    @pytest.mark.asyncio
    async def test_database_error_defaults_all_false(self, repository, mock_collection):
        mock_collection.find.side_effect = Exception("boom")

        result = await repository.status_for_symbols("user_123", ["AAPL", "msft"])

        assert result == {"AAPL": False, "MSFT": False}


# ===== contains Tests =====


class TestContains:
    """Test single membership check"""

    @pytest.mark.asyncio
    async def test_contains_true(self, repository, mock_collection):
        mock_collection.find_one.return_value = {"_id": "id1"}

        assert await repository.contains("user_123", "aapl") is True
        mock_collection.find_one.assert_called_once_with(
            {"user_id": "user_123", "symbol": "AAPL"}, {"_id": 1}
        )

    @pytest.mark.asyncio
    async def test_contains_false(self, repository, mock_collection):
        mock_collection.find_one.return_value = None

        assert await repository.contains("user_123", "AAPL") is False

    @pytest.mark.asyncio
    async def test_contains_database_error_returns_false(self, repository, mock_collection):
        mock_collection.find_one.side_effect = Exception("boom")

        assert await repository.contains("user_123", "AAPL") is False


# ===== ensure_indexes Tests =====


class TestEnsureIndexes:
    """Test index creation"""

    @pytest.mark.asyncio
    async def test_creates_unique_user_symbol_index(self, repository, mock_collection):
        await repository.ensure_indexes()

        mock_collection.create_index.assert_any_call(
            [("user_id", 1), ("symbol", 1)], unique=True, name="idx_user_symbol"
        )
        assert mock_collection.create_index.call_count == 2

    @pytest.mark.asyncio
    async def test_has_unique_index_true(self, repository, mock_collection):
        mock_collection.index_information = AsyncMock(
            return_value={
                "_id_": {"key": [("_id", 1)]},
                "idx_user_symbol": {"key": [("user_id", 1), ("symbol", 1)], "unique": True},
            }
        )

        assert await repository.has_unique_index() is True

    @pytest.mark.asyncio
    async def test_has_unique_index_missing(self, repository, mock_collection):
        mock_collection.index_information = AsyncMock(
            return_value={"_id_": {"key": [("_id", 1)]}}
        )

        assert await repository.has_unique_index() is False

    @pytest.mark.asyncio
    async def test_has_unique_index_not_unique(self, repository, mock_collection):
        mock_collection.index_information = AsyncMock(
            return_value={"idx_user_symbol": {"key": [("user_id", 1), ("symbol", 1)]}}
        )

        assert await repository.has_unique_index() is False

    @pytest.mark.asyncio
    async def test_has_unique_index_database_error(self, repository, mock_collection):
        mock_collection.index_information = AsyncMock(
            side_effect=ServerSelectionTimeoutError("timeout")
        )

        assert await repository.has_unique_index() is False


# ===== Behavioural Tests (in-memory store) =====


class TestWatchlistLifecycle:
    """End-to-end store behaviour against an in-memory collection"""

    @pytest.mark.asyncio
    async def test_add_then_contains(self, store):
        await store.add("user_1", "aapl", "Apple")

        assert await store.contains("user_1", "AAPL") is True
        assert await store.contains("user_2", "AAPL") is False

    @pytest.mark.asyncio
    async def test_remove_then_contains(self, store):
        await store.add("user_1", "AAPL", "Apple")
        result = await store.remove("user_1", "aapl")

        assert result.success is True
        assert await store.contains("user_1", "AAPL") is False

    @pytest.mark.asyncio
    async def test_duplicate_add_keeps_single_entry(self, store):
        first = await store.add("user_1", "AAPL", "Apple")
        second = await store.add("user_1", "aapl", "Apple")

        assert first.success is True
        assert second.success is False
        assert second.error == WatchlistErrorKind.ALREADY_EXISTS
        assert len(await store.list_by_user("user_1")) == 1

    @pytest.mark.asyncio
    async def test_remove_never_added(self, store):
        result = await store.remove("user_1", "ZZZZ")

        assert result.error == WatchlistErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_blank_symbol_never_stored(self, store):
        result = await store.add("user_1", "   ", "Nothing")

        assert result.error == WatchlistErrorKind.INVALID_SYMBOL
        assert await store.list_by_user("user_1") == []

    @pytest.mark.asyncio
    async def test_list_order_is_reverse_insertion(self, store):
        base = datetime(2025, 1, 1, tzinfo=UTC)
        timestamps = [base, base + timedelta(minutes=1), base + timedelta(minutes=2)]

        with patch(
            "stockwatch.database.repositories.watchlist_repository.utcnow",
            side_effect=timestamps,
        ):
            for symbol in ("X", "Y", "Z"):
                await store.add("user_1", symbol, symbol)

        entries = await store.list_by_user("user_1")

        assert [e.symbol for e in entries] == ["Z", "Y", "X"]

    @pytest.mark.asyncio
    async def test_status_for_symbols_after_adds(self, store):
        await store.add("user_1", "B", "Bravo")

        result = await store.status_for_symbols("user_1", ["A", "B", "C"])

        assert result == {"A": False, "B": True, "C": False}
