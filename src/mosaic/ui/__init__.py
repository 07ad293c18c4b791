"""Client-side gallery widget.

The widget state machines are transport-agnostic and run on an asyncio event
loop: the fetch coordinator and pagination controller page through the API,
the grid renderer keeps tiles densely indexed, scroll watchers trigger
infinite loading, and the lightbox controller provides the accessible viewer.
"""

from .fetch import FetchCoordinator, RequestHandle
from .focus import Document, Element
from .grid import GridRenderer
from .lightbox import (
    ClickEvent,
    KeyboardDemux,
    KeyEvent,
    LightboxController,
    LightboxViewer,
    keyboard_demux,
)
from .models import ClientGalleryState, GalleryClientConfig, LightboxState, LocalizedStrings
from .pagination import PaginationController
from .scroll import IntersectionWatcher, ScrollPollWatcher, create_scroll_watcher
from .transport import GalleryTransport, HttpGalleryTransport
from .widget import GalleryWidget

__all__ = [
    "ClickEvent",
    "ClientGalleryState",
    "Document",
    "Element",
    "FetchCoordinator",
    "GalleryClientConfig",
    "GalleryTransport",
    "GalleryWidget",
    "GridRenderer",
    "HttpGalleryTransport",
    "IntersectionWatcher",
    "KeyEvent",
    "KeyboardDemux",
    "LightboxController",
    "LightboxState",
    "LightboxViewer",
    "LocalizedStrings",
    "PaginationController",
    "RequestHandle",
    "ScrollPollWatcher",
    "create_scroll_watcher",
    "keyboard_demux",
]
