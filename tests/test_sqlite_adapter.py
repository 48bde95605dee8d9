"""
Tests for the SQLite durable tier.
"""
import math
import sqlite3

import pytest

from tiercache.adapters.sqlite import SQLiteCacheAdapter
from tiercache.core import CacheEntry
from tiercache.errors import AdapterError

from conftest import make_entry


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database path."""
    return tmp_path / "nested" / "cache.db"


@pytest.fixture
def durable(temp_db):
    return SQLiteCacheAdapter(name="durable", db_path=temp_db)


class TestSQLiteCacheAdapter:

    def test_creates_parent_directory(self, durable, temp_db):
        assert temp_db.exists()

    def test_set_and_get(self, durable):
        entry = make_entry({"slug": "hello", "tags": ["a", "b"]}, created_at=1000, ttl=500)
        assert durable.set("k", entry) == entry.value

        loaded = durable.get("k")
        assert loaded.value == {"slug": "hello", "tags": ["a", "b"]}
        assert loaded.metadata.created_at == 1000
        assert loaded.metadata.ttl == 500
        assert loaded.metadata.last_accessed_at == 1000

    def test_get_missing_returns_none(self, durable):
        assert durable.get("missing") is None

    def test_unbounded_ttl_round_trips(self, durable):
        durable.set("k", make_entry("v", created_at=1000, ttl=math.inf))
        assert durable.get("k").metadata.ttl == math.inf

    def test_entry_without_metadata(self, durable):
        durable.set("k", CacheEntry(value="external"))
        loaded = durable.get("k")
        assert loaded.value == "external"
        assert loaded.metadata is None

    def test_set_overwrites(self, durable):
        durable.set("k", make_entry("one", created_at=1000, ttl=500))
        durable.set("k", make_entry("two", created_at=2000, ttl=500))
        assert durable.get("k").value == "two"
        assert len(durable) == 1

    def test_evict_is_idempotent(self, durable):
        durable.set("k", make_entry("v", created_at=1000, ttl=500))
        durable.evict("k")
        durable.evict("k")
        assert durable.get("k") is None

    def test_survives_new_instance(self, temp_db):
        SQLiteCacheAdapter(db_path=temp_db).set("k", make_entry("v", created_at=1, ttl=2))
        assert SQLiteCacheAdapter(db_path=temp_db).get("k").value == "v"

    def test_clear(self, durable):
        durable.set("a", make_entry(1, created_at=1, ttl=2))
        durable.set("b", make_entry(2, created_at=1, ttl=2))
        assert durable.clear() == 2
        assert len(durable) == 0

    def test_tables_are_isolated(self, temp_db):
        posts = SQLiteCacheAdapter(db_path=temp_db, table="posts")
        users = SQLiteCacheAdapter(db_path=temp_db, table="users")
        posts.set("k", make_entry("post", created_at=1, ttl=2))
        assert users.get("k") is None

    def test_rejects_unsafe_table_name(self, temp_db):
        with pytest.raises(ValueError):
            SQLiteCacheAdapter(db_path=temp_db, table="cache; DROP TABLE x")

    def test_ttl_override(self, temp_db):
        assert SQLiteCacheAdapter(db_path=temp_db).ttl is None
        assert SQLiteCacheAdapter(db_path=temp_db, ttl=1000).ttl == 1000

    def test_database_errors_raise_adapter_error(self, durable, temp_db):
        with sqlite3.connect(str(temp_db)) as conn:
            conn.execute("DROP TABLE cache_entries")

        with pytest.raises(AdapterError) as exc_info:
            durable.get("k")
        assert exc_info.value.adapter == "durable"
        assert exc_info.value.operation == "get"
