"""Minimal focus model: which element of a page currently has keyboard focus."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(eq=False)
class Element:
    """A page element that may receive focus.

    Attributes:
        name: Identifier used in logs and tests.
        document: Owning document.
        visible: Hidden elements are skipped by the focus trap.
        focusable: Whether the element accepts focus at all.
        tab_stop: ``False`` for elements reachable only programmatically
            (``tabindex="-1"``).
        connected: ``False`` once the element has been removed from the page.
    """

    name: str
    document: Document = field(repr=False)
    visible: bool = True
    focusable: bool = True
    tab_stop: bool = True
    connected: bool = True

    @property
    def can_focus(self) -> bool:
        return self.focusable and self.connected

    def focus(self) -> bool:
        """Move focus here. Returns ``False`` if the element cannot take focus."""
        if not self.can_focus:
            return False
        self.document.active_element = self
        return True

    def remove(self) -> None:
        self.connected = False
        if self.document.active_element is self:
            self.document.active_element = None


@dataclass
class Document:
    """Tracks the focused element of one page."""

    active_element: Element | None = None

    def create_element(self, name: str, **kwargs) -> Element:
        return Element(name=name, document=self, **kwargs)
