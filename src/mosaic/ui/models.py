"""Data models for the gallery widget: client configuration and widget state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mosaic.api.models import ItemPayload
from mosaic.core.models import FilterSet, SortKey

if TYPE_CHECKING:
    from .fetch import RequestHandle
    from .focus import Element


class LocalizedStrings(BaseModel):
    """User-facing strings handed to the widget."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    no_results: str = "No images found for those filters."
    loading: str = "Loading images…"
    close: str = "Close image viewer"
    prev: str = "Previous image"
    next: str = "Next image"


class GalleryClientConfig(BaseModel):
    """Typed configuration a gallery widget is initialized with.

    Served by ``GET /api/config`` and validated on the client with the same
    model, so both sides agree on field names.

    Attributes:
        ajax_endpoint: Absolute URL of the query endpoint; a relative path
            only works with a client that carries a ``base_url``.
        auth_token: Request token echoed back with every query, if any.
        sort_key: Sort order used for every request of this widget.
        eager_image_count: Leading grid positions whose images load eagerly.
        page_size: Items requested per page.
        infinite_scroll_enabled: Whether scroll watchers are wired up.
        localized_strings: User-facing messages.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ajax_endpoint: str = "/api/gallery/query"
    auth_token: str | None = None
    sort_key: SortKey = SortKey.DATE_DESC
    eager_image_count: int = Field(default=2, ge=0)
    page_size: int = Field(default=24, ge=1)
    infinite_scroll_enabled: bool = True
    localized_strings: LocalizedStrings = Field(default_factory=LocalizedStrings)


@dataclass
class RenderedTile:
    """One tile in the grid.

    ``index`` is the tile's position in the grid and is rewritten after every
    grid mutation; the lightbox addresses tiles purely by this index.
    """

    item: ItemPayload
    index: int
    loading: str = "lazy"  # "eager" or "lazy"


@dataclass
class LightboxState:
    """State of the full-screen viewer.

    ``last_focused`` is a non-owning reference to whatever had focus when the
    viewer opened; focus returns there on close.
    """

    is_open: bool = False
    active_index: int = 0
    last_focused: Element | None = None
    image_src: str = ""
    image_alt: str = ""
    caption: str = ""


@dataclass
class ClientGalleryState:
    """Mutable state of one gallery widget.

    One instance per widget, created when the widget is initialized and
    released by its teardown.  Never shared between widgets.
    """

    filters: FilterSet = field(default_factory=FilterSet)
    current_page: int = 1
    has_more: bool = True
    is_loading: bool = False
    inflight: RequestHandle | None = None
    rendered: list[RenderedTile] = field(default_factory=list)
    show_empty_placeholder: bool = False
    status_message: str = ""
    lightbox: LightboxState = field(default_factory=LightboxState)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"ClientGalleryState(filters={self.filters}, page={self.current_page}, "
            f"has_more={self.has_more}, loading={self.is_loading}, "
            f"tiles={len(self.rendered)}, lightbox_open={self.lightbox.is_open})"
        )
