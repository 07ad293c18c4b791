"""Unit tests for configuration management."""

import pytest
from pydantic import ValidationError

from mosaic.core.config import MosaicConfig
from mosaic.core.models import SortKey


class TestMosaicConfig:
    """Test MosaicConfig class."""

    def test_default_values(self, temp_dir, monkeypatch):
        """Test default configuration values."""
        monkeypatch.chdir(temp_dir)
        cfg = MosaicConfig(_env_file=None)

        assert cfg.catalog_file == "catalog.json"
        assert cfg.cache_backend == "memory"
        assert cfg.query_cache_ttl == 21600
        assert cfg.terms_cache_ttl == 43200
        assert cfg.default_page_size == 24
        assert cfg.default_sort is SortKey.DATE_DESC
        assert cfg.eager_first == 2
        assert cfg.infinite_scroll is True
        assert cfg.api_token is None
        assert cfg.server_port == 8080

    def test_data_dir_created(self, temp_dir):
        """Test that the data directory is created on initialization."""
        data_dir = temp_dir / "nested" / "data"
        assert not data_dir.exists()

        cfg = MosaicConfig(data_dir=str(data_dir), _env_file=None)

        assert data_dir.is_dir()
        assert cfg.catalog_path == data_dir / "catalog.json"
        assert cfg.cache_path == data_dir / "cache.sqlite3"

    def test_environment_overrides(self, temp_dir, monkeypatch):
        """Test that MOSAIC_* environment variables are read."""
        monkeypatch.setenv("MOSAIC_DATA_DIR", str(temp_dir / "env"))
        monkeypatch.setenv("MOSAIC_CACHE_BACKEND", "sqlite")
        monkeypatch.setenv("MOSAIC_DEFAULT_PAGE_SIZE", "12")
        monkeypatch.setenv("MOSAIC_DEFAULT_SORT", "title_asc")
        monkeypatch.setenv("MOSAIC_API_TOKEN", "s3cret")

        cfg = MosaicConfig(_env_file=None)

        assert cfg.data_dir == temp_dir / "env"
        assert cfg.cache_backend == "sqlite"
        assert cfg.default_page_size == 12
        assert cfg.default_sort is SortKey.TITLE_ASC
        assert cfg.api_token == "s3cret"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"default_page_size": 0},
            {"default_page_size": 501},
            {"server_port": 80},
            {"cache_backend": "redis"},
            {"eager_first": -1},
        ],
    )
    def test_invalid_values_rejected(self, temp_dir, overrides):
        """Test that out-of-range settings fail validation."""
        with pytest.raises(ValidationError):
            MosaicConfig(data_dir=str(temp_dir), _env_file=None, **overrides)
