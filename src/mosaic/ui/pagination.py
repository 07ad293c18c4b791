"""Pagination controller: decides when a page may be requested.

States are ``idle`` and ``loading``:

- ``idle --(filters changed)--> loading``: page 1 is requested in replace
  mode.  A filter change while ``loading`` also restarts from page 1; the
  fetch coordinator aborts the outdated request.
- ``idle --(scroll near end, has_more)--> loading``: the next page is
  requested in append mode.
- ``loading --(response)--> idle``: handled by the fetch coordinator, which
  updates ``current_page`` and ``has_more``.

A scroll trigger while loading, or once ``has_more`` is false, is a no-op,
so watchers may fire as often as they like.
"""

from __future__ import annotations

import logging

from mosaic.core.models import FilterSet

from .fetch import FetchCoordinator, RequestHandle
from .models import ClientGalleryState

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"


class PaginationController:
    """Track the page cursor of one widget and guard page requests."""

    def __init__(self, state: ClientGalleryState, coordinator: FetchCoordinator):
        self.state = state
        self.coordinator = coordinator

    @property
    def phase(self) -> str:
        return LOADING if self.state.is_loading else IDLE

    def filters_changed(self, filters: FilterSet) -> RequestHandle:
        """Reset the cursor and request page 1 for ``filters``."""
        self.state.filters = filters
        self.state.current_page = 1
        self.state.has_more = True
        logger.info(f"Filters changed to {filters}; reloading from page 1")
        return self.coordinator.request_page(filters, 1, append=False)

    def load_next(self) -> RequestHandle | None:
        """Request the next page unless loading or exhausted.

        Returns:
            The new request handle, or ``None`` when the trigger was ignored.
        """
        if self.state.is_loading:
            logger.debug("Next page ignored: a request is already in flight")
            return None
        if not self.state.has_more:
            logger.debug("Next page ignored: no more pages")
            return None
        return self.coordinator.request_page(
            self.state.filters, self.state.current_page + 1, append=True
        )
