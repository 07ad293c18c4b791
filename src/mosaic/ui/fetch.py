"""Fetch coordinator: at most one honored page request per widget.

All widget state changes happen on the asyncio event loop, one callback at a
time, but network completions can arrive in any order.  Each request is
therefore tagged with a ticket.  Issuing a new request aborts the previous
one, and a completion whose ticket is no longer current is ignored even if
the transport delivered a response despite the abort.  Without this guard a
slow page-1 response could overwrite the results of a newer filter choice.

Failures are logged and swallowed here: the loading indicator clears and the
tiles already on screen stay as they were.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from mosaic.core.models import FilterSet

from .grid import GridRenderer
from .models import ClientGalleryState, LocalizedStrings
from .transport import GalleryTransport

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class RequestHandle:
    """Identity of one issued page request."""

    ticket: int
    filters: FilterSet
    page: int
    append: bool
    task: asyncio.Task | None = field(default=None, repr=False)
    aborted: bool = False

    def abort(self) -> None:
        """Cancel the request; a late response will still be discarded."""
        self.aborted = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


class FetchCoordinator:
    """Issue page requests and apply only the most recent one's result.

    Args:
        state: Widget state to update.
        transport: Network transport.
        grid: Renderer that receives the fetched items.
        strings: Localized messages (loading indicator text).
    """

    def __init__(
        self,
        state: ClientGalleryState,
        transport: GalleryTransport,
        grid: GridRenderer,
        strings: LocalizedStrings | None = None,
    ):
        self.state = state
        self.transport = transport
        self.grid = grid
        self.strings = strings or LocalizedStrings()
        self._ticket = 0

    def is_current(self, handle: RequestHandle) -> bool:
        return self.state.inflight is handle and handle.ticket == self._ticket

    def request_page(self, filters: FilterSet, page: int, append: bool) -> RequestHandle:
        """Abort any in-flight request and start fetching ``page``.

        Must be called from a running event loop.

        Args:
            filters: Facet selections to query.
            page: One-based page number.
            append: ``True`` to extend the grid, ``False`` to replace it.

        Returns:
            The handle of the new request.
        """
        previous = self.state.inflight
        if previous is not None:
            logger.debug(f"Aborting request #{previous.ticket} (page {previous.page})")
            previous.abort()

        self._ticket += 1
        handle = RequestHandle(ticket=self._ticket, filters=filters, page=page, append=append)
        self.state.inflight = handle
        self.state.is_loading = True
        self.state.status_message = self.strings.loading

        handle.task = asyncio.get_running_loop().create_task(self._run(handle))
        logger.debug(f"Issued request #{handle.ticket}: page {page}, append={append}")
        return handle

    async def _run(self, handle: RequestHandle) -> None:
        try:
            response = await self.transport.fetch_page(handle.filters, handle.page)
        except asyncio.CancelledError:
            logger.debug(f"Request #{handle.ticket} cancelled")
            self._finish(handle)
            raise
        except Exception as e:
            if self.is_current(handle):
                logger.warning(f"Page {handle.page} fetch failed, keeping current tiles: {e}")
                self._finish(handle)
            return

        if not self.is_current(handle):
            logger.debug(f"Discarding stale response for request #{handle.ticket}")
            return

        self.state.has_more = response.has_more
        self.state.current_page = response.page or handle.page
        if handle.append:
            self.grid.append(response.items)
        else:
            self.grid.replace(response.items)
        self._finish(handle)

    def _finish(self, handle: RequestHandle) -> None:
        if not self.is_current(handle):
            return
        self.state.inflight = None
        self.state.is_loading = False
        self.state.status_message = ""

    def cancel(self) -> None:
        """Abort the in-flight request, if any, and clear the loading state."""
        handle = self.state.inflight
        if handle is None:
            return
        handle.abort()
        self.state.inflight = None
        self.state.is_loading = False
        self.state.status_message = ""

    async def wait(self) -> None:
        """Wait until no request is in flight."""
        while True:
            handle = self.state.inflight
            if handle is None or handle.task is None:
                return
            await asyncio.wait({handle.task})
            if self.state.inflight is handle:
                return
