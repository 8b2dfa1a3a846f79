from __future__ import annotations

"""Interfaces between the cache and its collaborators.

Concrete implementations live under ``tlmcache.runtime.io``.
"""

from typing import Protocol, runtime_checkable

import pandas as pd

from .frame_sample import FrameSample
from .time_interval import TimeInterval


@runtime_checkable
class TelemetrySource(Protocol):
    """Upstream archive queried for frame samples by ERT."""

    def get_samples_in_range(
        self, start: pd.Timestamp, stop: pd.Timestamp
    ) -> list[FrameSample]:
        """Return samples with ``start <= ERT < stop``."""
        ...


@runtime_checkable
class ConnectableTelemetrySource(TelemetrySource, Protocol):
    """A source with an explicit session lifecycle."""

    def connect(self) -> None:
        ...

    def disconnect(self) -> None:
        ...


@runtime_checkable
class SampleStore(Protocol):
    """Durable storage used by :class:`~tlmcache.runtime.sdk.range_cache.RangeCache`."""

    def write_samples(self, samples: list[FrameSample]) -> int:
        """Insert ``samples``; fail on any ERT collision."""
        ...

    def read_samples(self, interval: TimeInterval) -> list[FrameSample]:
        """Return samples in ``interval`` ordered by ERT."""
        ...

    def read_coverage(self) -> list[TimeInterval]:
        ...

    def write_coverage(self, intervals: list[TimeInterval]) -> None:
        """Replace the persisted coverage snapshot with ``intervals``."""
        ...

    def count(self) -> int:
        ...


__all__ = ["ConnectableTelemetrySource", "SampleStore", "TelemetrySource"]
