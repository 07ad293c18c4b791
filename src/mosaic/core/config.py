"""Configuration management for Gallery Mosaic.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the MOSAIC_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (MOSAIC_* prefix)
2. .env file in the project root
3. Default values defined in MosaicConfig

Example .env file:
    MOSAIC_DATA_DIR=data
    MOSAIC_CACHE_BACKEND=sqlite
    MOSAIC_DEFAULT_PAGE_SIZE=24
    MOSAIC_API_TOKEN=change-me

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The API layer reads it when the application starts; tests build their own
instances pointing at temporary directories.

Cache Lifetimes
---------------
Two TTL classes exist:
- query_cache_ttl: resolved result pages (default 6 hours)
- terms_cache_ttl: facet term lists used to populate the filter dropdowns
  (default 12 hours)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import SortKey


class MosaicConfig(BaseSettings):
    """Main configuration for Gallery Mosaic.

    Attributes
    ----------
    Storage:
        data_dir : Path
            Directory holding the item catalogue and the SQLite cache file
        catalog_file : str
            Catalogue filename inside data_dir

    Cache:
        cache_backend : Literal["memory", "sqlite"]
            Which CacheStore implementation to use
        cache_db : str
            SQLite cache filename inside data_dir (sqlite backend only)
        query_cache_ttl : int
            Lifetime of cached result pages in seconds
        terms_cache_ttl : int
            Lifetime of cached facet term lists in seconds

    Gallery defaults:
        default_page_size : int
            Page size used when the client does not send one
        default_sort : SortKey
            Initial sort order handed to clients
        eager_first : int
            Number of leading grid images that should load eagerly
        infinite_scroll : bool
            Whether clients should append pages on scroll

    Server:
        api_token : str | None
            Shared request token; when set, query requests must carry it
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        cors_origins : list[str]
            Allowed CORS origins
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MOSAIC_",
        case_sensitive=False,
    )

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding catalog.json and the cache database",
    )
    catalog_file: str = Field(
        default="catalog.json",
        description="Catalogue filename inside data_dir",
    )

    # Cache
    cache_backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Cache store implementation",
    )
    cache_db: str = Field(
        default="cache.sqlite3",
        description="SQLite cache filename inside data_dir",
    )
    query_cache_ttl: int = Field(
        default=6 * 60 * 60,
        description="Seconds a resolved result page stays cached",
        ge=1,
    )
    terms_cache_ttl: int = Field(
        default=12 * 60 * 60,
        description="Seconds a facet term list stays cached",
        ge=1,
    )

    # Gallery defaults
    default_page_size: int = Field(default=24, ge=1, le=500)
    default_sort: SortKey = Field(default=SortKey.DATE_DESC)
    eager_first: int = Field(
        default=2,
        description="Leading grid images that load eagerly (helps LCP)",
        ge=0,
    )
    infinite_scroll: bool = Field(
        default=True,
        description="Append pages when the grid sentinel nears the viewport",
    )

    # Server
    api_token: str | None = Field(
        default=None,
        description="Shared request token; disabled when unset",
    )
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8080, ge=1024, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def catalog_path(self) -> Path:
        """Absolute location of the item catalogue."""
        return self.data_dir / self.catalog_file

    @property
    def cache_path(self) -> Path:
        """Absolute location of the SQLite cache file."""
        return self.data_dir / self.cache_db


# Global configuration instance
# Loaded from MOSAIC_* environment variables and the .env file.
config = MosaicConfig()
