"""Gallery Mosaic - filterable, cached, infinitely scrolling image gallery."""

__version__ = "0.1.0"

from mosaic.core.config import MosaicConfig, config
from mosaic.core.query_engine import QueryEngine

__all__ = [
    "MosaicConfig",
    "QueryEngine",
    "config",
]
