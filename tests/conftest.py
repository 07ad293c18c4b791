"""Shared pytest fixtures for Gallery Mosaic tests."""

import asyncio
import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from mosaic.api.main import create_app
from mosaic.api.models import ItemPayload, QueryResponse
from mosaic.core.cache import MemoryCacheStore
from mosaic.core.config import MosaicConfig
from mosaic.core.models import FilterSet
from mosaic.core.query_engine import QueryEngine
from mosaic.core.repository import JsonItemRepository
from mosaic.ui.transport import GalleryTransport


# ============================================================================
# Helpers
# ============================================================================


def _payload(item_id: int, title: str | None = None) -> ItemPayload:
    """Build a rendered item with predictable URLs."""
    title = title or f"Item {item_id}"
    return ItemPayload(
        id=item_id,
        permalink_url=f"/gallery-items/{item_id}/",
        title=title,
        layout_size="Regular",
        thumbnail_url=f"/media/{item_id}-768.jpg",
        full_image_url=f"/media/{item_id}-1024.jpg",
        alt_text=title,
        caption_text=f"Caption {item_id}",
    )


def _response(ids: list[int], has_more: bool = True, page: int = 1) -> QueryResponse:
    items = [_payload(i) for i in ids]
    return QueryResponse(items=items, has_more=has_more, page=page, count=len(items))


class ControlledTransport(GalleryTransport):
    """Transport whose responses are released by the test.

    Every call parks on a future; ``resolve``/``fail`` complete the n-th call.
    """

    def __init__(self):
        self.calls: list[tuple[FilterSet, int, asyncio.Future]] = []

    async def fetch_page(self, filters: FilterSet, page: int) -> QueryResponse:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((filters, page, future))
        return await future

    def resolve(self, call_index: int, response: QueryResponse) -> None:
        future = self.calls[call_index][2]
        if not future.done():
            future.set_result(response)

    def fail(self, call_index: int, error: Exception) -> None:
        future = self.calls[call_index][2]
        if not future.done():
            future.set_exception(error)

    @property
    def pages(self) -> list[int]:
        return [page for _, page, _ in self.calls]


class StubbornTransport(ControlledTransport):
    """Like ControlledTransport, but responses still arrive after an abort."""

    async def fetch_page(self, filters: FilterSet, page: int) -> QueryResponse:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((filters, page, future))
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            return await future


async def _settle() -> None:
    """Let pending callbacks and tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


# ============================================================================
# Client fixtures
# ============================================================================


@pytest.fixture
def make_payload():
    """Factory for rendered items: ``make_payload(7)``."""
    return _payload


@pytest.fixture
def make_response():
    """Factory for query responses: ``make_response([1, 2], has_more=False)``."""
    return _response


@pytest.fixture
def make_transport():
    """Factory for test transports.

    ``make_transport()`` parks every call until the test releases it;
    ``make_transport(stubborn=True)`` additionally delivers responses for
    requests that were aborted.
    """

    def factory(stubborn: bool = False) -> ControlledTransport:
        return StubbornTransport() if stubborn else ControlledTransport()

    return factory


@pytest.fixture
def settle():
    """Awaitable that lets pending callbacks and tasks run."""
    return _settle


# ============================================================================
# Catalogue fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> MosaicConfig:
    """Create a test configuration rooted in a temporary directory."""
    return MosaicConfig(
        data_dir=str(temp_dir / "data"),
        cache_backend="memory",
        default_page_size=2,
        _env_file=None,
    )


@pytest.fixture
def sample_catalog() -> dict:
    """Three published items, A (newest) to C (oldest), plus one draft.

    Each item references its image differently: by id, by ``{"ID": ...}``
    object, and by URL.
    """
    return {
        "items": [
            {
                "id": 1,
                "title": "Alpha Atrium",
                "permalink": "/gallery-items/alpha-atrium/",
                "date": "2024-03-01T10:00:00",
                "image": 101,
                "mosaic_size": "wide tall",
                "description": "Glass atrium at dawn.",
                "terms": {
                    "market": [{"id": 3, "name": "Hospitality"}],
                    "project": [{"id": 20, "name": "Harbour Hotel"}],
                },
            },
            {
                "id": 2,
                "title": "Birch Lobby",
                "permalink": "/gallery-items/birch-lobby/",
                "date": "2024-02-01T10:00:00",
                "image": {"ID": 102},
                "mosaic_size": "Tall",
                "description": "",
                "terms": {
                    "market": [{"id": 4, "name": "Retail"}],
                    "product": [{"id": 10, "name": "Acoustic Panels"}],
                },
            },
            {
                "id": 3,
                "title": "Cedar Hall",
                "permalink": "/gallery-items/cedar-hall/",
                "date": "2024-01-01T10:00:00",
                "image": "/media/cedar.jpg",
                "mosaic_size": "",
                "description": "",
                "terms": {
                    "market": [{"id": 3, "name": "Hospitality"}],
                    "product": [{"id": 10, "name": "Acoustic Panels"}],
                },
            },
            {
                "id": 9,
                "title": "Draft Dome",
                "permalink": "/gallery-items/draft-dome/",
                "date": "2025-01-01T10:00:00",
                "status": "draft",
                "image": 101,
                "terms": {"market": [{"id": 99, "name": "Unpublished"}]},
            },
        ],
        "attachments": {
            "101": {
                "url": "/media/alpha.jpg",
                "alt": "",
                "renditions": {
                    "medium_large": {"url": "/media/alpha-768.jpg", "width": 768},
                    "large": {"url": "/media/alpha-1024.jpg", "width": 1024},
                },
            },
            "102": {"url": "/media/birch.jpg", "alt": "Birch lobby with reception desk"},
            "103": {"url": "/media/cedar.jpg", "alt": ""},
        },
    }


@pytest.fixture
def catalog_path(test_config: MosaicConfig, sample_catalog: dict) -> Path:
    path = test_config.catalog_path
    path.write_text(json.dumps(sample_catalog), encoding="utf-8")
    return path


@pytest.fixture
def repository(catalog_path: Path) -> JsonItemRepository:
    return JsonItemRepository(catalog_path)


@pytest.fixture
def engine(repository: JsonItemRepository) -> QueryEngine:
    return QueryEngine(repository, MemoryCacheStore(), query_ttl=60, terms_ttl=120)


@pytest.fixture
def test_client(test_config: MosaicConfig, engine: QueryEngine) -> Generator[TestClient, None, None]:
    """FastAPI TestClient backed by the sample catalogue."""
    app = create_app(test_config, engine)
    with TestClient(app) as client:
        yield client
