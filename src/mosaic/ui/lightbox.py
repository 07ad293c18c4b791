"""Accessible full-screen viewer for gallery tiles.

The :class:`LightboxController` is a two-state machine (``closed``/``open``)
that addresses tiles purely by their grid index.

Keyboard contract while open:

- ``Escape`` closes the viewer.
- ``ArrowLeft`` / ``ArrowRight`` move to the previous / next tile, wrapping
  around both ends.
- ``Tab`` / ``Shift+Tab`` cycle focus among the visible controls of the
  viewer only (focus trap).
- Every other key passes through unhandled.

Tiles are real links as well as viewer triggers.  A plain primary click opens
the viewer and suppresses navigation; a click with a modifier key or a
non-primary button is left alone so the link behaves normally.

Keyboard events are delivered through one :class:`KeyboardDemux` per page,
which forwards each key only to the viewer that is currently open.

When the grid is replaced while the viewer is open, the active index is
clamped to the new tiles; an emptied grid closes the viewer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .focus import Document, Element
from .grid import GridRenderer
from .models import LightboxState, LocalizedStrings

logger = logging.getLogger(__name__)

PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class KeyEvent:
    key: str
    shift: bool = False


@dataclass(frozen=True)
class ClickEvent:
    """A pointer click on a tile."""

    button: int = PRIMARY_BUTTON
    meta: bool = False
    ctrl: bool = False
    shift: bool = False
    alt: bool = False

    @property
    def is_modified(self) -> bool:
        """Whether the click should keep its default link behaviour."""
        return (
            self.meta or self.ctrl or self.shift or self.alt or self.button != PRIMARY_BUTTON
        )


class LightboxViewer:
    """The viewer's focusable parts, in document order.

    The dialog and backdrop only take focus programmatically; the three
    buttons form the focus-trap cycle.
    """

    def __init__(self, document: Document, strings: LocalizedStrings | None = None):
        strings = strings or LocalizedStrings()
        self.document = document
        self.backdrop = document.create_element("backdrop", tab_stop=False)
        self.dialog = document.create_element("dialog", tab_stop=False)
        self.close_button = document.create_element(strings.close)
        self.prev_button = document.create_element(strings.prev)
        self.next_button = document.create_element(strings.next)

    @property
    def controls(self) -> list[Element]:
        return [self.close_button, self.prev_button, self.next_button]

    def focusable_controls(self) -> list[Element]:
        return [
            element
            for element in self.controls
            if element.visible and element.tab_stop and element.can_focus
        ]


class KeyboardDemux:
    """Single page-level keyboard listener forwarding to the open viewer."""

    def __init__(self) -> None:
        self._active: LightboxController | None = None

    @property
    def active(self) -> LightboxController | None:
        return self._active

    def activate(self, controller: LightboxController) -> None:
        if self._active is not None and self._active is not controller:
            logger.debug("Another lightbox opened; previous one no longer receives keys")
        self._active = controller

    def deactivate(self, controller: LightboxController) -> None:
        if self._active is controller:
            self._active = None

    def dispatch(self, event: KeyEvent) -> bool:
        """Forward ``event`` to the open viewer.

        Returns:
            ``True`` if the viewer handled the key (default prevented).
        """
        if self._active is None or not self._active.is_open:
            return False
        return self._active.handle_key(event)


# Page-wide dispatcher used when a widget is not given its own.
keyboard_demux = KeyboardDemux()


class LightboxController:
    """Open, navigate and close the viewer over the tiles of one grid.

    Args:
        state: Lightbox part of the widget state.
        grid: Grid whose tiles are shown.
        viewer: The viewer's focusable elements.
        demux: Keyboard dispatcher to register with while open.
    """

    def __init__(
        self,
        state: LightboxState,
        grid: GridRenderer,
        viewer: LightboxViewer,
        demux: KeyboardDemux | None = None,
    ):
        self.state = state
        self.grid = grid
        self.viewer = viewer
        self.demux = demux if demux is not None else keyboard_demux
        grid.add_listener(self._grid_changed)

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    def open(self, index: int) -> bool:
        """Show the tile at ``index`` (clamped into range).

        Returns:
            ``False`` if the grid is empty and the viewer stayed closed.
        """
        if not self.grid.tiles:
            return False

        # Only the element focused before the viewer opened is worth restoring;
        # navigating inside the viewer must not overwrite it.
        if not self.state.is_open:
            self.state.last_focused = self.viewer.document.active_element

        self._show(index)
        self.state.is_open = True
        self.demux.activate(self)
        self.viewer.dialog.focus()
        logger.debug(f"Lightbox showing tile {self.state.active_index} of {len(self.grid)}")
        return True

    def _show(self, index: int) -> None:
        tiles = self.grid.tiles
        index = max(0, min(index, len(tiles) - 1))
        item = tiles[index].item
        self.state.active_index = index
        self.state.image_src = item.full_image_url
        self.state.image_alt = item.title
        self.state.caption = item.caption_text

    def _grid_changed(self) -> None:
        """Keep an open viewer on a tile that still exists."""
        if not self.state.is_open:
            return
        if not self.grid.tiles:
            logger.debug("Grid emptied while the lightbox was open; closing it")
            self.close()
            return
        self._show(self.state.active_index)

    def close(self) -> None:
        if not self.state.is_open:
            return
        self.state.is_open = False
        self.demux.deactivate(self)

        previous = self.state.last_focused
        self.state.last_focused = None
        if previous is not None and previous.can_focus:
            previous.focus()

    def next(self) -> None:
        count = len(self.grid)
        if not count:
            return
        self.open((self.state.active_index + 1) % count)

    def prev(self) -> None:
        count = len(self.grid)
        if not count:
            return
        self.open((self.state.active_index - 1 + count) % count)

    def handle_key(self, event: KeyEvent) -> bool:
        """Apply the keyboard contract.

        Returns:
            ``True`` if the key was handled (default prevented).
        """
        if not self.state.is_open:
            return False
        if event.key == "Escape":
            self.close()
            return True
        if event.key == "ArrowLeft":
            self.prev()
            return True
        if event.key == "ArrowRight":
            self.next()
            return True
        if event.key == "Tab":
            return self._trap_focus(backwards=event.shift)
        return False

    def _trap_focus(self, backwards: bool) -> bool:
        focusable = self.viewer.focusable_controls()
        if not focusable:
            return False

        active = self.viewer.document.active_element
        if active not in focusable:
            target = focusable[-1] if backwards else focusable[0]
        else:
            position = focusable.index(active)
            step = -1 if backwards else 1
            target = focusable[(position + step) % len(focusable)]
        target.focus()
        return True

    def handle_tile_click(self, index: int, event: ClickEvent) -> bool:
        """Open the viewer on a plain primary click.

        Returns:
            ``True`` if the click was consumed (link navigation suppressed),
            ``False`` if the link should behave normally.
        """
        if event.is_modified:
            return False
        self.open(index)
        return True

    def handle_viewer_click(self, target: Element) -> bool:
        """Route a click on one of the viewer's controls."""
        if target is self.viewer.close_button or target is self.viewer.backdrop:
            self.close()
        elif target is self.viewer.prev_button:
            self.prev()
        elif target is self.viewer.next_button:
            self.next()
        else:
            return False
        return True
