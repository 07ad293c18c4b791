"""Item repository: the read-only source of tagged gallery items.

The query engine only depends on the :class:`ItemRepository` interface.  The
bundled :class:`JsonItemRepository` reads a single ``catalog.json`` file:

.. code-block:: json

    {
      "items": [
        {
          "id": 7,
          "title": "Harbour Pavilion",
          "permalink": "/gallery-items/harbour-pavilion/",
          "date": "2024-05-01T09:30:00",
          "status": "publish",
          "image": 101,
          "mosaic_size": "wide tall",
          "description": "Timber canopy at dusk.",
          "terms": {"market": [{"id": 3, "name": "Hospitality"}]}
        }
      ],
      "attachments": {
        "101": {
          "url": "/media/harbour.jpg",
          "alt": "",
          "renditions": {
            "medium_large": {"url": "/media/harbour-768.jpg", "width": 768},
            "large": {"url": "/media/harbour-1024.jpg", "width": 1024}
          }
        }
      }
    }

The ``image`` field is tolerant: an attachment id (number or numeric string),
an object carrying ``ID``/``id``, or the URL of an attachment are all
accepted.  Items whose image cannot be resolved are still returned by
:meth:`find`; dropping them is the query engine's decision.

The catalogue is re-read whenever the file's modification time changes, so
editors can update it without restarting the server.
"""

from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from .errors import RepositoryError
from .models import (
    CandidateItem,
    FacetName,
    FacetTerm,
    FilterSet,
    ImageRef,
    SortKey,
    coerce_int,
)

logger = logging.getLogger(__name__)

THUMBNAIL_RENDITION = "medium_large"
FULL_RENDITION = "large"


class ItemRepository(ABC):
    """Read-only source of gallery items."""

    @abstractmethod
    def find(
        self,
        filters: FilterSet,
        sort_key: SortKey,
        page: int,
        page_size: int,
    ) -> tuple[list[CandidateItem], bool]:
        """Return one page of candidate items and whether more pages exist.

        Raises:
            RepositoryError: If the backing store cannot be queried.
        """

    @abstractmethod
    def resolve_image(self, image_ref: Any) -> ImageRef | None:
        """Resolve an item's image reference to concrete URLs, or ``None``."""

    @abstractmethod
    def facet_terms(self, facet: FacetName) -> list[FacetTerm]:
        """Return the terms of ``facet`` that have at least one item, sorted by name."""


def resolve_attachment_id(value: Any, url_index: dict[str, int] | None = None) -> int:
    """Resolve a loosely typed image field into an attachment id.

    Args:
        value: Attachment id, ``{"ID": ...}``/``{"id": ...}`` object, or URL.
        url_index: Mapping of known attachment URLs to their ids.

    Returns:
        The attachment id, or ``0`` when nothing could be resolved.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return coerce_int(value)
    if isinstance(value, dict):
        for key in ("ID", "id"):
            if value.get(key):
                return coerce_int(value[key])
        return 0
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return int(text)
        return (url_index or {}).get(text, 0)
    return 0


def _parse_date(raw: Any) -> float:
    """Return a sortable timestamp; unparseable dates sort as oldest."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, str) and raw:
        try:
            return datetime.fromisoformat(raw).timestamp()
        except ValueError:
            pass
    return 0.0


class JsonItemRepository(ItemRepository):
    """Item repository backed by a ``catalog.json`` file."""

    def __init__(self, catalog_path: Path):
        self.catalog_path = Path(catalog_path)
        self._mtime: float | None = None
        self._items: list[dict] = []
        self._attachments: dict[int, dict] = {}
        self._url_index: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> None:
        """(Re)load the catalogue when the file changed on disk.

        A missing file is an empty gallery.  An unreadable or malformed file
        is a repository failure.
        """
        if not self.catalog_path.exists():
            if self._mtime is not None:
                logger.info(f"Catalogue {self.catalog_path} removed; gallery is now empty")
            self._mtime = None
            self._items, self._attachments, self._url_index = [], {}, {}
            return

        mtime = self.catalog_path.stat().st_mtime
        if mtime == self._mtime:
            return

        try:
            with open(self.catalog_path, encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError) as e:
            raise RepositoryError(f"Cannot read catalogue {self.catalog_path}: {e}") from e

        if not isinstance(raw, dict):
            raise RepositoryError(f"Catalogue {self.catalog_path} must be a JSON object")

        items = [entry for entry in raw.get("items", []) if isinstance(entry, dict)]
        attachments: dict[int, dict] = {}
        for key, attachment in (raw.get("attachments") or {}).items():
            attachment_id = coerce_int(key)
            if attachment_id and isinstance(attachment, dict):
                attachments[attachment_id] = attachment

        self._items = [entry for entry in items if entry.get("status", "publish") == "publish"]
        self._attachments = attachments
        self._url_index = self._build_url_index(attachments)
        self._mtime = mtime
        logger.info(
            f"Loaded catalogue: {len(self._items)} published items, "
            f"{len(self._attachments)} attachments"
        )

    @staticmethod
    def _build_url_index(attachments: dict[int, dict]) -> dict[str, int]:
        index: dict[str, int] = {}
        for attachment_id, attachment in attachments.items():
            if attachment.get("url"):
                index[attachment["url"]] = attachment_id
            for rendition in (attachment.get("renditions") or {}).values():
                if isinstance(rendition, dict) and rendition.get("url"):
                    index.setdefault(rendition["url"], attachment_id)
        return index

    # ------------------------------------------------------------------
    # ItemRepository interface
    # ------------------------------------------------------------------

    def find(
        self,
        filters: FilterSet,
        sort_key: SortKey,
        page: int,
        page_size: int,
    ) -> tuple[list[CandidateItem], bool]:
        self._load()

        active = filters.active_facets()
        matched = [
            entry
            for entry in self._items
            if all(term_id in self._term_ids(entry, facet) for facet, term_id in active.items())
        ]
        matched = self._sort(matched, SortKey.parse(sort_key))

        max_pages = math.ceil(len(matched) / page_size) if matched else 0
        start = (page - 1) * page_size
        window = matched[start : start + page_size]
        if not window:
            return [], False

        return [self._to_candidate(entry) for entry in window], page < max_pages

    def resolve_image(self, image_ref: Any) -> ImageRef | None:
        self._load()

        attachment_id = resolve_attachment_id(image_ref, self._url_index)
        if not attachment_id:
            return None
        attachment = self._attachments.get(attachment_id)
        if attachment is None:
            return None

        renditions = {
            name: rendition
            for name, rendition in (attachment.get("renditions") or {}).items()
            if isinstance(rendition, dict) and rendition.get("url")
        }
        original_url = attachment.get("url") or ""

        thumb = renditions.get(THUMBNAIL_RENDITION)
        full = renditions.get(FULL_RENDITION)
        thumbnail_url = thumb["url"] if thumb else original_url
        full_image_url = full["url"] if full else original_url
        if not thumbnail_url or not full_image_url:
            return None

        return ImageRef(
            thumbnail_url=thumbnail_url,
            full_image_url=full_image_url,
            srcset=attachment.get("srcset") or self._build_srcset(renditions),
            sizes=attachment.get("sizes") or self._build_sizes(thumb),
            alt_text=str(attachment.get("alt") or "").strip(),
        )

    def facet_terms(self, facet: FacetName) -> list[FacetTerm]:
        self._load()

        names: dict[int, str] = {}
        for entry in self._items:
            for term in self._terms(entry, facet):
                names.setdefault(term.id, term.name)
        terms = [FacetTerm(id=term_id, name=name) for term_id, name in names.items()]
        return sorted(terms, key=lambda term: (term.name.casefold(), term.id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _terms(entry: dict, facet: FacetName) -> tuple[FacetTerm, ...]:
        raw_terms = (entry.get("terms") or {}).get(facet.value) or []
        terms = []
        for raw in raw_terms:
            if not isinstance(raw, dict):
                continue
            term_id = coerce_int(raw.get("id"))
            if term_id:
                terms.append(FacetTerm(id=term_id, name=str(raw.get("name") or "")))
        return tuple(terms)

    def _term_ids(self, entry: dict, facet: FacetName) -> set[int]:
        return {term.id for term in self._terms(entry, facet)}

    @staticmethod
    def _sort(entries: list[dict], sort_key: SortKey) -> list[dict]:
        if sort_key in (SortKey.TITLE_ASC, SortKey.TITLE_DESC):
            return sorted(
                entries,
                key=lambda e: (str(e.get("title") or "").casefold(), coerce_int(e.get("id"))),
                reverse=sort_key is SortKey.TITLE_DESC,
            )
        return sorted(
            entries,
            key=lambda e: (_parse_date(e.get("date")), coerce_int(e.get("id"))),
            reverse=sort_key is SortKey.DATE_DESC,
        )

    def _to_candidate(self, entry: dict) -> CandidateItem:
        return CandidateItem(
            id=coerce_int(entry.get("id")),
            title=str(entry.get("title") or ""),
            permalink_url=str(entry.get("permalink") or ""),
            image_ref=entry.get("image"),
            layout_size=str(entry.get("mosaic_size") or ""),
            description=str(entry.get("description") or ""),
            terms={facet: self._terms(entry, facet) for facet in FacetName},
        )

    @staticmethod
    def _build_srcset(renditions: dict[str, dict]) -> str | None:
        parts = [
            f"{rendition['url']} {coerce_int(rendition.get('width'))}w"
            for rendition in sorted(renditions.values(), key=lambda r: coerce_int(r.get("width")))
            if coerce_int(rendition.get("width"))
        ]
        return ", ".join(parts) if len(parts) > 1 else None

    @staticmethod
    def _build_sizes(thumb: dict | None) -> str | None:
        width = coerce_int((thumb or {}).get("width"))
        if not width:
            return None
        return f"(max-width: {width}px) 100vw, {width}px"
