"""Gallery Mosaic — FastAPI Application.

This module defines the application factory, the gallery routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :class:`~mosaic.core.config.MosaicConfig`
  (``MOSAIC_*`` environment variables).
- **Queries** are answered by a :class:`~mosaic.core.query_engine.QueryEngine`
  that fronts the item repository with a cache store.
- **Clients** bootstrap from ``GET /api/config`` and ``GET /api/gallery/initial``
  and then page through ``POST /api/gallery/query``.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/config``               Typed widget configuration
GET       ``/api/gallery/initial``      First page plus all facet terms
POST      ``/api/gallery/query``        One filtered, sorted result page
GET       ``/api/facets/{facet}``       Terms of one facet, sorted by name
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    mosaic

Direct invocation::

    python -m mosaic.api.main
"""

from __future__ import annotations

import json
import logging
import secrets
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from mosaic import __version__
from mosaic.api.models import (
    FacetTermPayload,
    FacetTermsResponse,
    InitialGalleryResponse,
    QueryRequest,
    QueryResponse,
)
from mosaic.core.cache import create_cache_store
from mosaic.core.config import MosaicConfig, config
from mosaic.core.errors import QueryEngineError
from mosaic.core.models import FacetName, PageRequest
from mosaic.core.query_engine import QueryEngine
from mosaic.core.repository import JsonItemRepository
from mosaic.ui.models import GalleryClientConfig

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/gallery/query"


def build_query_engine(settings: MosaicConfig) -> QueryEngine:
    """Assemble the repository, cache store and query engine from config."""
    repository = JsonItemRepository(settings.catalog_path)
    cache = create_cache_store(settings.cache_backend, settings.cache_path)
    logger.info(
        f"Query engine ready: catalogue={settings.catalog_path}, cache={settings.cache_backend}"
    )
    return QueryEngine(
        repository,
        cache,
        query_ttl=settings.query_cache_ttl,
        terms_ttl=settings.terms_cache_ttl,
    )


_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_query_request(request: Request) -> QueryRequest:
    """Parse a query body sent as JSON or as form fields.

    A missing, malformed or non-object body counts as an empty request, so
    every field takes its fallback instead of failing validation.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    raw: Any = {}
    if content_type in _FORM_TYPES:
        form = await request.form()
        raw = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        body = await request.body()
        if body.strip():
            try:
                raw = json.loads(body)
            except ValueError:
                logger.debug("Query body is not valid JSON; using defaults")
                raw = {}
    if not isinstance(raw, dict):
        raw = {}
    return QueryRequest.model_validate(raw)


def _failure(message: str) -> HTTPException:
    # The body never carries repository details.
    return HTTPException(status_code=500, detail={"success": False, "error": message})


def build_gallery_router(engine: QueryEngine, settings: MosaicConfig) -> APIRouter:
    """Create the gallery routes bound to ``engine`` and ``settings``."""
    router = APIRouter(tags=["gallery"])

    def _check_token(token: str | None) -> None:
        if not settings.api_token:
            return
        if token is None or not secrets.compare_digest(
            token.encode("utf-8"), settings.api_token.encode("utf-8")
        ):
            raise HTTPException(
                status_code=403,
                detail={"success": False, "error": "invalid_token"},
            )

    @router.get("/api/config", response_model=GalleryClientConfig)
    def get_client_config(request: Request) -> GalleryClientConfig:
        """Return the configuration a gallery widget is initialized with.

        The query endpoint is an absolute URL so clients need no base URL.
        """
        return GalleryClientConfig(
            ajax_endpoint=str(request.url_for("query_gallery")),
            auth_token=settings.api_token,
            sort_key=settings.default_sort,
            eager_image_count=settings.eager_first,
            page_size=settings.default_page_size,
            infinite_scroll_enabled=settings.infinite_scroll,
        )

    @router.post(QUERY_PATH, response_model=QueryResponse, name="query_gallery")
    def query_gallery(req: QueryRequest = Depends(read_query_request)) -> QueryResponse:
        """Return one page of items for the requested filters.

        The body may be JSON or form fields.  Malformed numbers are coerced
        rather than rejected: unset facets, page 1, and the configured page
        size are the fallbacks.

        Raises:
            HTTPException: 403 for a bad token when one is configured,
                500 if the repository fails.
        """
        _check_token(req.token)

        page_request = req.to_page_request(settings.default_page_size)
        try:
            result = engine.resolve(page_request)
        except QueryEngineError as e:
            raise _failure(str(e)) from e
        return QueryResponse.from_result(result)

    @router.get("/api/facets/{facet}", response_model=FacetTermsResponse)
    def get_facet_terms(facet: str) -> FacetTermsResponse:
        """Return the terms of ``facet`` that have at least one item.

        Raises:
            HTTPException: 404 for an unknown facet, 500 if the repository fails.
        """
        try:
            facet_name = FacetName(facet)
        except ValueError:
            raise HTTPException(status_code=404, detail=f"Unknown facet: {facet}") from None

        try:
            terms = engine.facet_terms(facet_name)
        except QueryEngineError as e:
            raise _failure(str(e)) from e
        return FacetTermsResponse(
            facet=facet_name.value,
            terms=[FacetTermPayload.from_term(term) for term in terms],
        )

    @router.get("/api/gallery/initial", response_model=InitialGalleryResponse)
    def get_initial_gallery() -> InitialGalleryResponse:
        """Return the unfiltered first page and every facet's terms."""
        request = PageRequest(
            sort_key=settings.default_sort,
            page=1,
            page_size=settings.default_page_size,
        )
        try:
            result = engine.resolve(request)
            facets = {
                facet.value: [FacetTermPayload.from_term(t) for t in engine.facet_terms(facet)]
                for facet in FacetName
            }
        except QueryEngineError as e:
            raise _failure(str(e)) from e
        return InitialGalleryResponse(page=QueryResponse.from_result(result), facets=facets)

    return router


def create_app(
    settings: MosaicConfig | None = None,
    engine: QueryEngine | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration; defaults to the global ``config``.
        engine: Pre-built query engine (tests inject one); built from
            ``settings`` when omitted.

    Returns:
        The configured application.
    """
    settings = settings or config
    engine = engine or build_query_engine(settings)

    app = FastAPI(
        title="Gallery Mosaic",
        description="Filterable, cached, paginated image gallery API.",
        version=__version__,
    )
    app.state.engine = engine
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(build_gallery_router(engine, settings))
    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~mosaic.core.config.config`
    (``MOSAIC_SERVER_HOST`` and ``MOSAIC_SERVER_PORT``).  Defaults to
    ``0.0.0.0:8080``.

    Registered as the ``mosaic`` console script in ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "mosaic.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
