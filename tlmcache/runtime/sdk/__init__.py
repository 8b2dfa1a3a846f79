"""Telemetry range cache SDK.

Primary API:
  TelemetryCache          Durable ERT-range cache in front of an upstream source
  CachingTelemetrySource  Source decorator routing range queries through the cache
  FrameSample             One frame's timekeeping fields
  TimeInterval            Half-open UTC range ``[start, stop)``

Example:
    from tlmcache.runtime.sdk import TelemetryCache

    with TelemetryCache(source, "tlm-cache.sqlite") as cache:
        samples = cache.get_samples_in_range(
            "2024-100T00:00:00Z", "2024-101T00:00:00Z"
        )
"""

from __future__ import annotations

from .cache_facade import TelemetryCache
from .caching_source import CachingTelemetrySource
from .coverage import CoverageIndex, merge_intervals, subtract_intervals
from .data_io import ConnectableTelemetrySource, SampleStore, TelemetrySource
from .exceptions import (
    CacheStoreError,
    DuplicateSampleError,
    InvalidIntervalError,
    SourceConfigurationError,
    TelemetryCacheError,
    TimeParseError,
)
from .frame_sample import FrameSample, ValidState
from .range_cache import RangeCache
from .time_codes import CdsTimeCode, format_iso_doy, parse_utc
from .time_interval import TimeInterval

__all__ = [
    "CacheStoreError",
    "CachingTelemetrySource",
    "CdsTimeCode",
    "ConnectableTelemetrySource",
    "CoverageIndex",
    "DuplicateSampleError",
    "FrameSample",
    "InvalidIntervalError",
    "RangeCache",
    "SampleStore",
    "SourceConfigurationError",
    "TelemetryCache",
    "TelemetryCacheError",
    "TelemetrySource",
    "TimeInterval",
    "TimeParseError",
    "ValidState",
    "format_iso_doy",
    "merge_intervals",
    "parse_utc",
    "subtract_intervals",
]
