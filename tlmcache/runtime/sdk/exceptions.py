"""Custom exception types raised by the telemetry cache."""

import sqlite3

__all__ = [
    "TelemetryCacheError",
    "TimeParseError",
    "InvalidIntervalError",
    "CacheStoreError",
    "DuplicateSampleError",
    "SourceConfigurationError",
]


class TelemetryCacheError(Exception):
    """Base class for all telemetry cache errors."""
    pass


class TimeParseError(TelemetryCacheError, ValueError):
    """Raised when a timestamp or time code string cannot be converted."""
    pass


class InvalidIntervalError(TelemetryCacheError, ValueError):
    """Raised when an interval does not satisfy ``start < stop``."""
    pass


class CacheStoreError(TelemetryCacheError):
    """Raised when the cache file cannot be opened, created or written."""
    pass


class DuplicateSampleError(CacheStoreError, sqlite3.IntegrityError):
    """Raised when a written sample collides with one already in the cache.

    Two fetches returning samples with the same ERT means the upstream source
    broke its contract; the cache never merges or overwrites such rows.
    """
    pass


class SourceConfigurationError(TelemetryCacheError):
    """Raised when an upstream telemetry source cannot be resolved."""
    pass
