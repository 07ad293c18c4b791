"""Scroll watchers that trigger loading of the next page.

The primary :class:`IntersectionWatcher` observes a sentinel placed after the
grid and fires when it comes within ``root_margin`` pixels of the viewport, so
loading starts before the user reaches the true bottom.  Where intersection
observation is unavailable, :class:`ScrollPollWatcher` checks the scroll
position on every scroll event instead.

Both call the same callback (normally
:meth:`~mosaic.ui.pagination.PaginationController.load_next`), whose guard
makes repeated firing while a page is loading harmless.
"""

from __future__ import annotations

import logging
from abc import ABC
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

INTERSECTION_ROOT_MARGIN = 600
SCROLL_BOTTOM_THRESHOLD = 800


class ScrollWatcher(ABC):
    """Base class: holds the callback and the connected flag."""

    def __init__(self, callback: Callable[[], Any]):
        self.callback = callback
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def _fire(self) -> bool:
        if not self.connected:
            return False
        self.callback()
        return True


class IntersectionWatcher(ScrollWatcher):
    """Fire when the sentinel intersects the viewport grown by ``root_margin``."""

    def __init__(self, callback: Callable[[], Any], root_margin: int = INTERSECTION_ROOT_MARGIN):
        super().__init__(callback)
        self.root_margin = root_margin

    def observe(self, sentinel_top: float, viewport_top: float, viewport_height: float) -> bool:
        """Report the sentinel's position (document coordinates).

        Returns:
            ``True`` if the callback fired.
        """
        top = viewport_top - self.root_margin
        bottom = viewport_top + viewport_height + self.root_margin
        if top <= sentinel_top <= bottom:
            return self._fire()
        return False


class ScrollPollWatcher(ScrollWatcher):
    """Fire when the scroll position is within ``threshold`` of the bottom."""

    def __init__(self, callback: Callable[[], Any], threshold: int = SCROLL_BOTTOM_THRESHOLD):
        super().__init__(callback)
        self.threshold = threshold

    def on_scroll(self, viewport_height: float, scroll_y: float, document_height: float) -> bool:
        """Handle one scroll event.

        Returns:
            ``True`` if the callback fired.
        """
        if viewport_height + scroll_y >= document_height - self.threshold:
            return self._fire()
        return False


def create_scroll_watcher(
    callback: Callable[[], Any],
    supports_intersection: bool = True,
) -> ScrollWatcher:
    """Pick the intersection watcher, or the scroll poll fallback."""
    if supports_intersection:
        return IntersectionWatcher(callback)
    logger.info("Intersection observation unavailable; falling back to scroll polling")
    return ScrollPollWatcher(callback)
