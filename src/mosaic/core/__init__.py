"""Server-side core of Gallery Mosaic.

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with MOSAIC_ in .env files

2. **Domain Models** (models.py):
   - Filter sets, sort keys, page requests, items and result pages

3. **Storage Layer** (repository.py, cache.py):
   - Read-only item repository (file-backed catalogue by default)
   - Key-value cache stores with lazy per-entry expiry

4. **Query Layer** (query_engine.py):
   - Cache-key derivation, fail-open caching, image resolution and
     alt-text derivation

Usage Example
-------------
    >>> from mosaic.core import MemoryCacheStore, JsonItemRepository, QueryEngine
    >>> from mosaic.core.models import PageRequest
    >>> engine = QueryEngine(JsonItemRepository("data/catalog.json"), MemoryCacheStore())
    >>> result = engine.resolve(PageRequest(page=1, page_size=24))
"""

from .cache import CacheStore, MemoryCacheStore, SqliteCacheStore, create_cache_store
from .config import MosaicConfig, config
from .errors import (
    CacheUnavailableError,
    MosaicError,
    QueryEngineError,
    RepositoryError,
    TransportError,
)
from .query_engine import QueryEngine, cache_key
from .repository import ItemRepository, JsonItemRepository

__all__ = [
    "CacheStore",
    "CacheUnavailableError",
    "ItemRepository",
    "JsonItemRepository",
    "MemoryCacheStore",
    "MosaicConfig",
    "MosaicError",
    "QueryEngine",
    "QueryEngineError",
    "RepositoryError",
    "SqliteCacheStore",
    "TransportError",
    "cache_key",
    "config",
    "create_cache_store",
]
