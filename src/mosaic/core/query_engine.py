"""Cached, paginated gallery queries.

The :class:`QueryEngine` sits between the API layer and the item repository:

1. The incoming :class:`~mosaic.core.models.PageRequest` is canonicalized and
   hashed into a cache key.
2. On a cache hit the stored :class:`~mosaic.core.models.PageResult` is
   returned unchanged.
3. On a miss the repository is queried, each candidate's image is resolved,
   candidates without a usable image are dropped, and the resulting page is
   cached with the query TTL.

Caching happens at page granularity because filter combinations, not single
items, are what users repeat.  A page may therefore hold fewer than
``page_size`` items while ``has_more`` is still true: ``has_more`` always
reflects the repository cursor, not the post-filtering count.

The cache is fail-open.  Any error raised by the store is logged and treated
as a miss, so a broken cache only costs performance.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from .cache import CacheStore
from .errors import QueryEngineError
from .models import (
    ALT_TEXT_FACET_ORDER,
    CandidateItem,
    FacetName,
    FacetTerm,
    ImageRef,
    Item,
    LayoutSize,
    PageRequest,
    PageResult,
)
from .repository import ItemRepository

logger = logging.getLogger(__name__)

CACHE_PREFIX = "mosaic:"
ALT_TEXT_SEPARATOR = " – "
ALT_TERMS_SEPARATOR = ", "


def canonicalize(request: PageRequest) -> str:
    """Serialize a request to a stable JSON string (sorted keys, no whitespace)."""
    return json.dumps(request.canonical(), sort_keys=True, separators=(",", ":"))


def cache_key(request: PageRequest) -> str:
    """Return the cache key identifying ``request``.

    Two requests with equal canonical forms always map to the same key.
    """
    digest = hashlib.md5(canonicalize(request).encode("utf-8")).hexdigest()
    return f"{CACHE_PREFIX}items:{digest}"


def terms_cache_key(facet: FacetName) -> str:
    return f"{CACHE_PREFIX}terms:{facet.value}"


def build_alt_text(candidate: CandidateItem, image: ImageRef) -> str:
    """Pick the alt text for an item.

    Attachment alt text wins.  Otherwise the title is extended with the first
    assigned term of project, market and product (in that order); a title
    without terms is used as-is.
    """
    if image.alt_text.strip():
        return image.alt_text.strip()

    names = []
    for facet in ALT_TEXT_FACET_ORDER:
        terms = candidate.terms.get(facet) or ()
        if terms:
            names.append(terms[0].name)

    if names:
        return f"{candidate.title}{ALT_TEXT_SEPARATOR}{ALT_TERMS_SEPARATOR.join(names)}"
    return candidate.title


def build_caption(candidate: CandidateItem) -> str:
    return candidate.description if candidate.description.strip() else candidate.title


class QueryEngine:
    """Resolve page requests through the cache and the item repository."""

    def __init__(
        self,
        repository: ItemRepository,
        cache: CacheStore,
        query_ttl: float = 6 * 60 * 60,
        terms_ttl: float = 12 * 60 * 60,
    ):
        self.repository = repository
        self.cache = cache
        self.query_ttl = query_ttl
        self.terms_ttl = terms_ttl

    # ------------------------------------------------------------------
    # Fail-open cache access
    # ------------------------------------------------------------------

    def _cache_get(self, key: str) -> Any | None:
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache unavailable on read ({key}), falling back to repository: {e}")
            return None

    def _cache_set(self, key: str, value: Any, ttl: float) -> None:
        try:
            self.cache.set(key, value, ttl)
        except Exception as e:
            logger.warning(f"Cache unavailable on write ({key}), result not cached: {e}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolve(self, request: PageRequest) -> PageResult:
        """Return the result page for ``request``.

        Args:
            request: The page to resolve.

        Returns:
            The cached or freshly built page.

        Raises:
            QueryEngineError: If the repository fails.
        """
        key = cache_key(request)
        cached = self._cache_get(key)
        if isinstance(cached, PageResult):
            logger.debug(f"Cache hit {key} (page {request.page})")
            return cached

        logger.debug(f"Cache miss {key} (page {request.page})")
        try:
            candidates, has_more = self.repository.find(
                request.filters,
                request.sort_key,
                request.page,
                request.page_size,
            )
            items = tuple(
                item for item in (self._resolve_item(c) for c in candidates) if item is not None
            )
        except Exception as e:
            logger.error(f"Repository failed for {canonicalize(request)}: {e}", exc_info=True)
            raise QueryEngineError("Gallery query failed") from e

        dropped = len(candidates) - len(items)
        if dropped:
            logger.debug(f"Dropped {dropped} item(s) without a resolvable image")

        result = PageResult(items=items, has_more=bool(has_more), page=request.page)
        self._cache_set(key, result, self.query_ttl)
        return result

    def _resolve_item(self, candidate: CandidateItem) -> Item | None:
        image = self.repository.resolve_image(candidate.image_ref)
        if image is None:
            return None
        return Item(
            id=candidate.id,
            permalink_url=candidate.permalink_url,
            title=candidate.title,
            layout_size=LayoutSize.normalize(candidate.layout_size),
            thumbnail_url=image.thumbnail_url,
            thumbnail_srcset=image.srcset,
            thumbnail_sizes=image.sizes,
            full_image_url=image.full_image_url,
            alt_text=build_alt_text(candidate, image),
            caption_text=build_caption(candidate),
        )

    def facet_terms(self, facet: FacetName) -> tuple[FacetTerm, ...]:
        """Return the terms with at least one item for ``facet``, sorted by name.

        Raises:
            QueryEngineError: If the repository fails.
        """
        key = terms_cache_key(facet)
        cached = self._cache_get(key)
        if isinstance(cached, tuple):
            return cached

        try:
            terms = tuple(self.repository.facet_terms(facet))
        except Exception as e:
            logger.error(f"Repository failed listing {facet.value} terms: {e}", exc_info=True)
            raise QueryEngineError(f"Listing {facet.value} terms failed") from e

        self._cache_set(key, terms, self.terms_ttl)
        return terms
