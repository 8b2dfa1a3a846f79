"""Public API surface for the tlmcache package."""

from __future__ import annotations

from tlmcache._version import __version__
from tlmcache.runtime.sdk import (
    CachingTelemetrySource,
    FrameSample,
    TelemetryCache,
    TimeInterval,
    ValidState,
)

__all__ = [
    "CachingTelemetrySource",
    "FrameSample",
    "TelemetryCache",
    "TimeInterval",
    "ValidState",
    "__version__",
]
