"""Gallery widget: wires the client components around one state instance.

A page may host several widgets.  Each owns its own
:class:`~mosaic.ui.models.ClientGalleryState`, created here and released by
:meth:`GalleryWidget.teardown`; the only shared object is the page-level
:class:`~mosaic.ui.lightbox.KeyboardDemux`.

Usage
-----
::

    config = GalleryClientConfig.model_validate(httpx.get(".../api/config").json())
    widget = GalleryWidget(config, document=Document())
    widget.load_initial(initial_page)
    widget.set_filter(FacetName.MARKET, 3)   # from inside the event loop
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from mosaic.api.models import QueryResponse
from mosaic.core.models import FacetName, FilterSet, coerce_int

from .fetch import FetchCoordinator, RequestHandle
from .focus import Document
from .grid import GridRenderer
from .lightbox import ClickEvent, KeyboardDemux, KeyEvent, LightboxController, LightboxViewer
from .models import ClientGalleryState, GalleryClientConfig
from .pagination import PaginationController
from .scroll import ScrollWatcher, create_scroll_watcher
from .transport import GalleryTransport, HttpGalleryTransport

logger = logging.getLogger(__name__)


class GalleryWidget:
    """One filterable, infinitely scrolling gallery on a page.

    Args:
        config: Typed widget configuration.
        transport: Page transport; defaults to HTTP against ``config.ajax_endpoint``.
        document: Focus model of the hosting page.
        demux: Page-level keyboard dispatcher (defaults to the shared one).
        supports_intersection: Whether sentinel observation is available;
            otherwise the scroll-position fallback is used.
    """

    def __init__(
        self,
        config: GalleryClientConfig,
        transport: GalleryTransport | None = None,
        *,
        document: Document | None = None,
        demux: KeyboardDemux | None = None,
        supports_intersection: bool = True,
    ):
        self.config = config
        self.state = ClientGalleryState()
        self.document = document if document is not None else Document()
        strings = config.localized_strings

        self.grid = GridRenderer(self.state, config.eager_image_count, strings)
        self.transport = transport if transport is not None else HttpGalleryTransport(config)
        self.fetcher = FetchCoordinator(self.state, self.transport, self.grid, strings)
        self.pagination = PaginationController(self.state, self.fetcher)
        self.viewer = LightboxViewer(self.document, strings)
        self.lightbox = LightboxController(self.state.lightbox, self.grid, self.viewer, demux)

        self.watcher: ScrollWatcher | None = None
        if config.infinite_scroll_enabled:
            self.watcher = create_scroll_watcher(self.pagination.load_next, supports_intersection)

        self._torn_down = False
        logger.info(f"Gallery widget initialized: {self.state!r}")

    # ------------------------------------------------------------------
    # Initial content
    # ------------------------------------------------------------------

    def load_initial(self, response: QueryResponse) -> None:
        """Install the first page delivered with the page itself."""
        self.grid.replace(response.items)
        self.state.current_page = response.page
        self.state.has_more = response.has_more

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def set_filter(self, facet: FacetName | str, value: Any) -> RequestHandle:
        """Change one facet selection and reload from page 1."""
        facet = FacetName(facet)
        filters = replace(self.state.filters, **{facet.value: coerce_int(value)})
        return self.pagination.filters_changed(filters)

    def clear_filters(self) -> RequestHandle:
        return self.pagination.filters_changed(FilterSet())

    @property
    def show_clear_button(self) -> bool:
        return self.state.filters.has_active_filter()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def load_next_page(self) -> RequestHandle | None:
        return self.pagination.load_next()

    def click_tile(self, index: int, event: ClickEvent | None = None) -> bool:
        """Returns ``True`` when link navigation should be suppressed."""
        return self.lightbox.handle_tile_click(index, event or ClickEvent())

    def key_down(self, event: KeyEvent) -> bool:
        return self.lightbox.demux.dispatch(event)

    async def settle(self) -> None:
        """Wait for the in-flight request, if any, to complete."""
        await self.fetcher.wait()

    def teardown(self) -> None:
        """Release the widget: abort fetching, close the viewer, stop watching."""
        if self._torn_down:
            return
        self.fetcher.cancel()
        self.lightbox.close()
        self.lightbox.demux.deactivate(self.lightbox)
        if self.watcher is not None:
            self.watcher.disconnect()
        self.state.rendered.clear()
        self._torn_down = True
        logger.info("Gallery widget torn down")
