"""Pydantic request and response models for the Gallery Mosaic API.

These models define the JSON schema of every endpoint and double as the wire
contract for the client package, which validates responses with the same
classes.

Responses are serialised with camelCase keys (``hasMore``, ``fullImageURL``)
because the consumers are browser-style gallery widgets.

Models
------
QueryRequest
    Payload for ``POST /api/gallery/query``.  Numeric fields are coerced
    rather than validated: malformed ids become "unset", malformed page
    numbers become 1.  The endpoint favours availability over strictness
    since facet ids come from a constrained dropdown.
ItemPayload
    One rendered gallery item.
QueryResponse
    One page of items plus the pagination cursor.
FacetTermsResponse
    The selectable terms of one facet.
InitialGalleryResponse
    First page and all facet term lists, used to bootstrap a widget.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from mosaic.core.models import FacetTerm, FilterSet, Item, PageRequest, PageResult, SortKey, coerce_int


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QueryRequest(BaseModel):
    """Request body for the ``POST /api/gallery/query`` endpoint.

    Attributes:
        market: Market term id, ``0`` for unset.
        product: Product term id, ``0`` for unset.
        project: Project term id, ``0`` for unset.
        sort_key: Result ordering (``sortKey`` or ``orderBy`` on the wire).
            Unknown values fall back to ``date_desc``.
        page: One-based page number; anything below 1 becomes 1.
        page_size: Items per page (``pageSize`` or ``perPage`` on the
            wire).  ``None`` means the server default.
        token: Request token, required only when the server has one configured.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    market: int = Field(default=0, description="Market term id (0 = unset).")
    product: int = Field(default=0, description="Product term id (0 = unset).")
    project: int = Field(default=0, description="Project term id (0 = unset).")
    sort_key: SortKey = Field(
        default=SortKey.DATE_DESC,
        validation_alias=AliasChoices("sortKey", "orderBy", "sort_key"),
        description="date_desc, date_asc, title_asc or title_desc.",
    )
    page: int = Field(default=1, description="One-based page number.")
    page_size: int | None = Field(
        default=None,
        validation_alias=AliasChoices("pageSize", "perPage", "page_size"),
        description="Items per page; server default when omitted.",
    )
    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("token", "nonce"),
        description="Request token issued through /api/config.",
    )

    @field_validator("market", "product", "project", mode="before")
    @classmethod
    def _coerce_facet(cls, value: Any) -> int:
        return coerce_int(value)

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any) -> int:
        return max(1, coerce_int(value))

    @field_validator("page_size", mode="before")
    @classmethod
    def _coerce_page_size(cls, value: Any) -> int | None:
        if value is None or value == "":
            return None
        return max(1, coerce_int(value))

    @field_validator("sort_key", mode="before")
    @classmethod
    def _coerce_sort_key(cls, value: Any) -> SortKey:
        return SortKey.parse(value)

    @field_validator("token", mode="before")
    @classmethod
    def _coerce_token(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    def to_page_request(self, default_page_size: int) -> PageRequest:
        """Build the domain request, filling in the server page size."""
        return PageRequest(
            filters=FilterSet(market=self.market, product=self.product, project=self.project),
            sort_key=self.sort_key,
            page=self.page,
            page_size=self.page_size or default_page_size,
        )


class ItemPayload(_CamelModel):
    """One gallery item in rendered form.

    URL fields keep an upper-case ``URL`` suffix on the wire
    (``permalinkURL``, ``thumbnailSrcSet``) instead of plain camelCase.
    """

    id: int
    permalink_url: str = Field(alias="permalinkURL")
    title: str
    layout_size: str
    thumbnail_url: str = Field(alias="thumbnailURL")
    thumbnail_srcset: str | None = Field(default=None, alias="thumbnailSrcSet")
    thumbnail_sizes: str | None = None
    full_image_url: str = Field(alias="fullImageURL")
    alt_text: str
    caption_text: str

    @classmethod
    def from_item(cls, item: Item) -> ItemPayload:
        return cls(
            id=item.id,
            permalink_url=item.permalink_url,
            title=item.title,
            layout_size=item.layout_size.value,
            thumbnail_url=item.thumbnail_url,
            thumbnail_srcset=item.thumbnail_srcset,
            thumbnail_sizes=item.thumbnail_sizes,
            full_image_url=item.full_image_url,
            alt_text=item.alt_text,
            caption_text=item.caption_text,
        )


class QueryResponse(_CamelModel):
    """Response body of ``POST /api/gallery/query``.

    Attributes:
        success: Always ``True``; failures are reported with an HTTP error.
        items: Items of the page, in sort order.
        has_more: Whether the repository holds further pages.
        page: The page that was resolved.
        count: Number of items on this page.
    """

    success: bool = True
    items: list[ItemPayload] = Field(default_factory=list)
    has_more: bool = False
    page: int = 1
    count: int = 0

    @classmethod
    def from_result(cls, result: PageResult) -> QueryResponse:
        return cls(
            items=[ItemPayload.from_item(item) for item in result.items],
            has_more=result.has_more,
            page=result.page,
            count=result.count,
        )


class FacetTermPayload(_CamelModel):
    id: int
    name: str

    @classmethod
    def from_term(cls, term: FacetTerm) -> FacetTermPayload:
        return cls(id=term.id, name=term.name)


class FacetTermsResponse(_CamelModel):
    """Selectable terms for one facet, sorted by name."""

    facet: str
    terms: list[FacetTermPayload] = Field(default_factory=list)


class InitialGalleryResponse(_CamelModel):
    """Bootstrap data: first unfiltered page plus every facet's terms."""

    page: QueryResponse
    facets: dict[str, list[FacetTermPayload]] = Field(default_factory=dict)
