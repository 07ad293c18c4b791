"""Tests for mosaic.core.cache — cache stores with lazy expiry."""

from __future__ import annotations

import pytest

from mosaic.core.cache import (
    MemoryCacheStore,
    SqliteCacheStore,
    create_cache_store,
)
from mosaic.core.errors import CacheUnavailableError
from mosaic.core.models import Item, LayoutSize, PageResult


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _result() -> PageResult:
    item = Item(
        id=1,
        permalink_url="/a/",
        title="A",
        layout_size=LayoutSize.WIDE,
        thumbnail_url="/a-768.jpg",
        full_image_url="/a-1024.jpg",
        alt_text="A",
        caption_text="A",
    )
    return PageResult(items=(item,), has_more=True, page=1)


@pytest.fixture(params=["memory", "sqlite"])
def store_and_clock(request, temp_dir):
    """Run the shared behaviour tests against both implementations."""
    clock = FakeClock()
    if request.param == "memory":
        return MemoryCacheStore(clock=clock), clock
    return SqliteCacheStore(temp_dir / "cache.sqlite3", clock=clock), clock


class TestCacheStoreBehaviour:
    """Contract shared by every CacheStore."""

    def test_get_missing_returns_none(self, store_and_clock):
        store, _ = store_and_clock
        assert store.get("nope") is None

    def test_get_after_set_returns_value(self, store_and_clock):
        """A get within the TTL returns the stored value unchanged."""
        store, clock = store_and_clock
        store.set("k", _result(), ttl=60)
        clock.advance(59)
        assert store.get("k") == _result()

    def test_entry_expires_lazily(self, store_and_clock):
        """Once now > expires_at the entry behaves as absent."""
        store, clock = store_and_clock
        store.set("k", _result(), ttl=60)
        clock.advance(61)
        assert store.get("k") is None
        # Still absent on a second read.
        assert store.get("k") is None

    def test_entry_alive_exactly_at_expiry(self, store_and_clock):
        store, clock = store_and_clock
        store.set("k", "v", ttl=60)
        clock.advance(60)
        assert store.get("k") == "v"

    def test_set_overwrites(self, store_and_clock):
        store, _ = store_and_clock
        store.set("k", "first", ttl=60)
        store.set("k", "second", ttl=60)
        assert store.get("k") == "second"

    def test_invalidate(self, store_and_clock):
        store, _ = store_and_clock
        store.set("k", "v", ttl=60)
        store.invalidate("k")
        assert store.get("k") is None
        store.invalidate("never-set")

    def test_clear(self, store_and_clock):
        store, _ = store_and_clock
        store.set("a", 1, ttl=60)
        store.set("b", 2, ttl=60)
        store.clear()
        assert store.get("a") is None
        assert store.get("b") is None


class TestMemoryCacheStore:
    def test_expired_entry_is_dropped_on_read(self):
        clock = FakeClock()
        store = MemoryCacheStore(clock=clock)
        store.set("k", "v", ttl=1)
        assert len(store) == 1
        clock.advance(2)
        store.get("k")
        assert len(store) == 0


class TestSqliteCacheStore:
    def test_entries_survive_new_instance(self, temp_dir):
        """A second store on the same file sees entries written by the first."""
        clock = FakeClock()
        SqliteCacheStore(temp_dir / "c.db", clock=clock).set("k", _result(), ttl=60)
        assert SqliteCacheStore(temp_dir / "c.db", clock=clock).get("k") == _result()

    def test_creates_parent_directory(self, temp_dir):
        store = SqliteCacheStore(temp_dir / "nested" / "dir" / "c.db")
        assert store.db_path.parent.is_dir()

    def test_unavailable_database_raises(self, temp_dir):
        """SQLite errors surface as CacheUnavailableError."""
        store = SqliteCacheStore(temp_dir / "c.db")
        store.db_path.unlink()
        store.db_path.mkdir()  # a directory cannot be opened as a database
        with pytest.raises(CacheUnavailableError):
            store.get("k")
        with pytest.raises(CacheUnavailableError):
            store.set("k", "v", ttl=60)


class TestCreateCacheStore:
    def test_memory(self):
        assert isinstance(create_cache_store("memory"), MemoryCacheStore)

    def test_sqlite(self, temp_dir):
        store = create_cache_store("sqlite", temp_dir / "c.db")
        assert isinstance(store, SqliteCacheStore)

    def test_sqlite_requires_path(self):
        with pytest.raises(ValueError):
            create_cache_store("sqlite")

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_cache_store("redis")
