from __future__ import annotations

"""Telemetry source decorator that answers range queries from the cache."""

from pathlib import Path

import pandas as pd

from .cache_facade import TelemetryCache
from .data_io import TelemetrySource
from .frame_sample import FrameSample


class CachingTelemetrySource:
    """Wrap ``upstream`` so ``get_samples_in_range`` goes through a cache.

    Session methods (``connect``/``disconnect``) and ``name`` are forwarded to
    the wrapped source when it provides them.
    """

    def __init__(
        self,
        upstream: TelemetrySource,
        cache_path: str | Path | None = None,
        *,
        cache: TelemetryCache | None = None,
    ) -> None:
        if cache is None:
            if cache_path is None:
                raise ValueError("either cache_path or cache must be provided")
            cache = TelemetryCache(upstream, cache_path)
        self.upstream = upstream
        self.cache = cache

    @property
    def name(self) -> str:
        upstream_name = getattr(self.upstream, "name", type(self.upstream).__name__)
        return f"cached({upstream_name})"

    # ------------------------------------------------------------------
    def connect(self) -> None:
        if hasattr(self.upstream, "connect"):
            self.upstream.connect()  # type: ignore[attr-defined]

    def disconnect(self) -> None:
        if hasattr(self.upstream, "disconnect"):
            self.upstream.disconnect()  # type: ignore[attr-defined]

    # ------------------------------------------------------------------
    def get_samples_in_range(
        self, start: pd.Timestamp, stop: pd.Timestamp
    ) -> list[FrameSample]:
        return self.cache.get_samples_in_range(start, stop)

    def get_cache_statistics(self) -> dict[str, str]:
        return self.cache.get_cache_statistics()

    def close(self) -> None:
        self.cache.close()


__all__ = ["CachingTelemetrySource"]
