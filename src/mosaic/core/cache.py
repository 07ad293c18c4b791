"""Key-value cache stores with per-entry expiry.

The query engine caches whole result pages and facet term lists.  Entries
expire lazily: nothing sweeps the store in the background, an entry whose
``expires_at`` has passed is simply treated as absent the next time it is
read (and dropped at that point).

Two implementations are provided:

- :class:`MemoryCacheStore` keeps entries in a process-local dictionary.
- :class:`SqliteCacheStore` persists entries in a single SQLite file so that
  warm caches survive restarts and can be shared by several worker processes.

Stored values are treated as immutable once cached.  Concurrent writers of
the same key race harmlessly because values for a key are derived from the
same deterministic input, so no locking is attempted.
"""

from __future__ import annotations

import logging
import pickle
import sqlite3
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import CacheUnavailableError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the wall-clock time after which it is stale."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class CacheStore(ABC):
    """Abstract key-value store with per-entry TTL."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Drop a single entry if present."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class MemoryCacheStore(CacheStore):
    """Process-local cache backed by a dictionary."""

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class SqliteCacheStore(CacheStore):
    """Persistent cache stored in a single SQLite file.

    Values are pickled.  Any SQLite failure surfaces as
    :class:`CacheUnavailableError` so the caller can fall back to the
    repository.
    """

    def __init__(self, db_path: Path, clock: Clock = time.time):
        """Initialize the cache database.

        Args:
            db_path: Path to SQLite database file
            clock: Wall-clock source, injectable for tests
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._initialize_db()
        logger.info(f"Initialized cache database at {self.db_path}")

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cache_entries (
                    cache_key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    expires_at REAL NOT NULL
                )
                """)
            conn.commit()

    def get(self, key: str) -> Any | None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value, expires_at FROM cache_entries WHERE cache_key = ?",
                    (key,),
                ).fetchone()
                if row is None:
                    return None
                if CacheEntry(value=None, expires_at=row[1]).is_expired(self._clock()):
                    conn.execute("DELETE FROM cache_entries WHERE cache_key = ?", (key,))
                    conn.commit()
                    return None
        except sqlite3.Error as e:
            raise CacheUnavailableError(f"Cache read failed for {key}: {e}") from e
        return pickle.loads(row[0])

    def set(self, key: str, value: Any, ttl: float) -> None:
        payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        try:
            with sqlite3.connect(self.db_path) as conn:
                # Last write wins for concurrent writers of the same key.
                conn.execute(
                    """
                    INSERT OR REPLACE INTO cache_entries (cache_key, value, expires_at)
                    VALUES (?, ?, ?)
                    """,
                    (key, payload, self._clock() + ttl),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise CacheUnavailableError(f"Cache write failed for {key}: {e}") from e

    def invalidate(self, key: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM cache_entries WHERE cache_key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise CacheUnavailableError(f"Cache invalidate failed for {key}: {e}") from e

    def clear(self) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM cache_entries")
                conn.commit()
        except sqlite3.Error as e:
            raise CacheUnavailableError(f"Cache clear failed: {e}") from e


def create_cache_store(backend: str, db_path: Path | None = None) -> CacheStore:
    """Build the cache store named by ``backend``.

    Args:
        backend: ``"memory"`` or ``"sqlite"``.
        db_path: SQLite file location (required for the sqlite backend).

    Returns:
        A ready-to-use cache store.

    Raises:
        ValueError: If the backend is unknown or the sqlite path is missing.
    """
    if backend == "memory":
        return MemoryCacheStore()
    if backend == "sqlite":
        if db_path is None:
            raise ValueError("sqlite cache backend requires a db_path")
        return SqliteCacheStore(db_path)
    raise ValueError(f"Unknown cache backend: {backend}")
