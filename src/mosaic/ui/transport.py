"""Network transport used by the gallery widget to fetch result pages."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx
from pydantic import ValidationError

from mosaic.api.models import QueryResponse
from mosaic.core.errors import TransportError
from mosaic.core.models import FilterSet

from .models import GalleryClientConfig

logger = logging.getLogger(__name__)


class GalleryTransport(ABC):
    """Fetches one page of gallery items."""

    @abstractmethod
    async def fetch_page(self, filters: FilterSet, page: int) -> QueryResponse:
        """Return the requested page.

        Raises:
            TransportError: On network failure or an unsuccessful response.
        """


class HttpGalleryTransport(GalleryTransport):
    """POST page queries to the gallery API with httpx.

    No timeout or retry is layered on top of httpx's own defaults; the fetch
    coordinator guarantees a request is never duplicated while one is
    outstanding.

    Args:
        config: Widget configuration (endpoint, token, sort, page size).
        client: Shared ``httpx.AsyncClient``.  When omitted a client is
            created per request.
    """

    def __init__(self, config: GalleryClientConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client

    def build_payload(self, filters: FilterSet, page: int) -> dict:
        payload = {
            "market": filters.market,
            "product": filters.product,
            "project": filters.project,
            "sortKey": self.config.sort_key.value,
            "page": page,
            "pageSize": self.config.page_size,
        }
        if self.config.auth_token:
            payload["token"] = self.config.auth_token
        return payload

    async def _post(self, payload: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.config.ajax_endpoint, json=payload)
        async with httpx.AsyncClient() as client:
            return await client.post(self.config.ajax_endpoint, json=payload)

    async def fetch_page(self, filters: FilterSet, page: int) -> QueryResponse:
        payload = self.build_payload(filters, page)
        logger.debug(f"POST {self.config.ajax_endpoint} page={page} filters={filters}")
        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            raise TransportError(f"Gallery request failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(f"Gallery request failed with status {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError("Gallery response is not JSON") from e

        if not isinstance(body, dict) or not body.get("success"):
            raise TransportError("Gallery response reported failure")

        try:
            return QueryResponse.model_validate(body)
        except ValidationError as e:
            raise TransportError(f"Gallery response is malformed: {e}") from e
