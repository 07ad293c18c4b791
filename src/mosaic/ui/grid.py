"""Grid renderer: the ordered list of tiles shown by a gallery widget."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from mosaic.api.models import ItemPayload

from .models import ClientGalleryState, LocalizedStrings, RenderedTile

logger = logging.getLogger(__name__)


class GridRenderer:
    """Replace or extend the rendered tiles of one widget.

    After every mutation each tile is re-assigned a dense zero-based index
    matching its position, so the lightbox can address tiles by index alone.

    Args:
        state: Widget state holding the rendered tiles.
        eager_image_count: Leading grid positions whose images load eagerly.
        strings: Localized messages (used for the empty placeholder).
    """

    def __init__(
        self,
        state: ClientGalleryState,
        eager_image_count: int = 2,
        strings: LocalizedStrings | None = None,
    ):
        self.state = state
        self.eager_image_count = max(0, eager_image_count)
        self.strings = strings or LocalizedStrings()
        self._listeners: list[Callable[[], None]] = []

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` after every replace or append."""
        self._listeners.append(callback)

    @property
    def tiles(self) -> list[RenderedTile]:
        return self.state.rendered

    def __len__(self) -> int:
        return len(self.state.rendered)

    def replace(self, items: Iterable[ItemPayload]) -> None:
        """Discard the current tiles and install ``items``."""
        self.state.rendered = [RenderedTile(item=item, index=0) for item in items]
        self._reindex()
        logger.debug(f"Grid replaced with {len(self.state.rendered)} tiles")

    def append(self, items: Iterable[ItemPayload]) -> None:
        """Add ``items`` after the current tiles."""
        before = len(self.state.rendered)
        self.state.rendered.extend(RenderedTile(item=item, index=0) for item in items)
        self._reindex()
        logger.debug(f"Grid appended {len(self.state.rendered) - before} tiles")

    def tile_at(self, index: int) -> RenderedTile | None:
        if 0 <= index < len(self.state.rendered):
            return self.state.rendered[index]
        return None

    @property
    def placeholder_message(self) -> str | None:
        """The "no items" message when the grid is empty, else ``None``."""
        return self.strings.no_results if self.state.show_empty_placeholder else None

    def _reindex(self) -> None:
        for position, tile in enumerate(self.state.rendered):
            tile.index = position
            tile.loading = "eager" if position < self.eager_image_count else "lazy"
        self.state.show_empty_placeholder = not self.state.rendered
        for listener in list(self._listeners):
            listener()
