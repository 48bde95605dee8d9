"""
SQLite-backed durable tier.

Entries survive process restarts, which makes this the natural last tier
behind an ``LRUCacheAdapter``. Values are serialized to text (JSON by
default); an unbounded TTL is stored as NULL.
"""
import json
import logging
import math
import re
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from config.settings import settings

from ..core import CacheEntry, CacheMetadata
from ..errors import AdapterError
from .base import CacheAdapter

logger = logging.getLogger("tiercache.adapters.sqlite")

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SCHEMA = """
CREATE TABLE IF NOT EXISTS {table} (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    created_at REAL,
    ttl REAL,
    last_accessed_at REAL,
    updated_at TEXT NOT NULL
);
"""


class SQLiteCacheAdapter(CacheAdapter):
    """
    SQLite storage for cache entries.

    Opens a connection per operation, so one instance can be shared across
    threads.
    """

    def __init__(
        self,
        name: str = "sqlite",
        db_path: Optional[Path] = None,
        table: str = "cache_entries",
        serializer: Callable[[Any], str] = json.dumps,
        deserializer: Callable[[str], Any] = json.loads,
        ttl: Optional[float] = None,
    ):
        if not _TABLE_NAME.match(table):
            raise ValueError(f"Invalid table name: {table!r}")

        self.name = name or "sqlite"
        self.db_path = Path(db_path or settings.sqlite_path)
        self.table = table
        self._serialize = serializer
        self._deserialize = deserializer
        self._ttl = ttl
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @property
    def ttl(self) -> Optional[float]:
        return self._ttl

    def _init_db(self):
        """Initialize database with schema."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA.format(table=self.table))
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get a database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    f"SELECT * FROM {self.table} WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise AdapterError(self.name, "get", key, e) from e

        if row is None:
            return None
        return self._row_to_entry(row)

    def set(self, key: str, entry: CacheEntry) -> Any:
        metadata = entry.metadata
        if metadata is not None:
            created_at = metadata.created_at
            ttl = None if math.isinf(metadata.ttl) else metadata.ttl
            last_accessed_at = metadata.last_accessed_at
        else:
            created_at = ttl = last_accessed_at = None

        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"""
                    INSERT OR REPLACE INTO {self.table} (
                        key, value, created_at, ttl, last_accessed_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        key,
                        self._serialize(entry.value),
                        created_at,
                        ttl,
                        last_accessed_at,
                        datetime.utcnow().isoformat() + "Z",
                    ),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise AdapterError(self.name, "set", key, e) from e

        return entry.value

    def evict(self, key: str) -> None:
        try:
            with self._get_connection() as conn:
                conn.execute(f"DELETE FROM {self.table} WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise AdapterError(self.name, "evict", key, e) from e

    def _row_to_entry(self, row: sqlite3.Row) -> CacheEntry:
        value = self._deserialize(row["value"])
        if row["created_at"] is None:
            return CacheEntry(value=value)

        ttl = row["ttl"] if row["ttl"] is not None else math.inf
        return CacheEntry(
            value=value,
            metadata=CacheMetadata(
                created_at=row["created_at"],
                ttl=ttl,
                last_accessed_at=row["last_accessed_at"] or row["created_at"],
            ),
        )

    def clear(self) -> int:
        """
        Delete every entry in the table.

        Returns:
            Number of entries deleted
        """
        with self._get_connection() as conn:
            cursor = conn.execute(f"DELETE FROM {self.table}")
            conn.commit()
            count = cursor.rowcount
        logger.info(f"{self.name}: cleared {count} entries")
        return count

    def __len__(self) -> int:
        with self._get_connection() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]
