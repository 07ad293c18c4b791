"""Domain models for the gallery query protocol.

Everything in this module is an immutable value: filter sets, page requests,
resolved items, and result pages are created once and shared freely between
the cache, the query engine, and the API layer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def coerce_int(value: Any) -> int:
    """Coerce loosely typed client input into a non-negative integer.

    Mirrors the forgiving parsing used by the gallery endpoint: the leading
    integer of a string is used (``"12abc"`` -> 12), the sign is dropped, and
    anything unparseable becomes ``0``.

    Args:
        value: Raw value from a request body or query string.

    Returns:
        A non-negative integer, ``0`` when nothing usable was supplied.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return abs(int(value))
    match = _LEADING_INT.match(str(value))
    if match is None:
        return 0
    return abs(int(match.group(0)))


class FacetName(str, Enum):
    """The three independent classification dimensions."""

    MARKET = "market"
    PRODUCT = "product"
    PROJECT = "project"


# Priority used when building fallback alt text from assigned terms.
ALT_TEXT_FACET_ORDER = (FacetName.PROJECT, FacetName.MARKET, FacetName.PRODUCT)


class SortKey(str, Enum):
    """Result ordering. Unknown values fall back to newest first."""

    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"

    @classmethod
    def parse(cls, value: Any) -> SortKey:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DATE_DESC


class LayoutSize(str, Enum):
    """Mosaic tile footprint."""

    REGULAR = "Regular"
    TALL = "Tall"
    WIDE = "Wide"
    WIDE_TALL = "WideTall"

    @classmethod
    def normalize(cls, value: Any) -> LayoutSize:
        """Map free-form editor input onto a layout size.

        Matching ignores case, spaces, dashes and underscores, so
        ``"wide-tall"`` and ``" Wide Tall "`` both resolve to ``WideTall``.
        Empty or unrecognized input yields ``Regular``.
        """
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        for char in (" ", "-", "_"):
            key = key.replace(char, "")
        return _LAYOUT_LOOKUP.get(key, cls.REGULAR)


_LAYOUT_LOOKUP = {size.value.lower(): size for size in LayoutSize}


@dataclass(frozen=True)
class FilterSet:
    """Facet selections combined with AND semantics; ``0`` means unset."""

    market: int = 0
    product: int = 0
    project: int = 0

    @classmethod
    def from_values(cls, market: Any = 0, product: Any = 0, project: Any = 0) -> FilterSet:
        return cls(
            market=coerce_int(market),
            product=coerce_int(product),
            project=coerce_int(project),
        )

    def get(self, facet: FacetName) -> int:
        return getattr(self, facet.value)

    def active_facets(self) -> dict[FacetName, int]:
        """Return only the facets that constrain the result."""
        return {facet: self.get(facet) for facet in FacetName if self.get(facet)}

    def has_active_filter(self) -> bool:
        return bool(self.active_facets())


@dataclass(frozen=True)
class PageRequest:
    """Fully determines the identity of one gallery query."""

    filters: FilterSet = field(default_factory=FilterSet)
    sort_key: SortKey = SortKey.DATE_DESC
    page: int = 1
    page_size: int = 24

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    def canonical(self) -> dict[str, Any]:
        """Return a plain, order-independent representation for hashing."""
        return {
            "market": int(self.filters.market),
            "product": int(self.filters.product),
            "project": int(self.filters.project),
            "sort_key": SortKey.parse(self.sort_key).value,
            "page": int(self.page),
            "page_size": int(self.page_size),
        }


@dataclass(frozen=True)
class FacetTerm:
    """One selectable value of a facet."""

    id: int
    name: str


@dataclass(frozen=True)
class ImageRef:
    """Concrete URLs for an item's image, as resolved by the repository."""

    thumbnail_url: str
    full_image_url: str
    srcset: str | None = None
    sizes: str | None = None
    alt_text: str = ""


@dataclass(frozen=True)
class CandidateItem:
    """An item as returned by the repository, before image resolution."""

    id: int
    title: str
    permalink_url: str
    image_ref: Any = None
    layout_size: str = ""
    description: str = ""
    terms: dict[FacetName, tuple[FacetTerm, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class Item:
    """A renderable gallery item."""

    id: int
    permalink_url: str
    title: str
    layout_size: LayoutSize
    thumbnail_url: str
    full_image_url: str
    alt_text: str
    caption_text: str
    thumbnail_srcset: str | None = None
    thumbnail_sizes: str | None = None


@dataclass(frozen=True)
class PageResult:
    """One resolved page. ``has_more`` follows the repository cursor."""

    items: tuple[Item, ...]
    has_more: bool
    page: int

    @property
    def count(self) -> int:
        return len(self.items)
