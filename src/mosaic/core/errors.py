"""Exception hierarchy shared by the server and client packages."""


class MosaicError(Exception):
    """Base class for all Gallery Mosaic errors."""


class CacheUnavailableError(MosaicError):
    """The cache store could not be read or written.

    Callers treat this exactly like a cache miss.
    """


class RepositoryError(MosaicError):
    """The item repository failed to answer a query."""


class QueryEngineError(MosaicError):
    """A page could not be resolved because the repository failed."""


class TransportError(MosaicError):
    """A client page fetch failed (network error, non-2xx, or unsuccessful body)."""
