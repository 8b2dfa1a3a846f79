from __future__ import annotations

"""Thread-safe facade over the telemetry range cache."""

import logging
import sqlite3
import threading
from pathlib import Path

from .exceptions import CacheStoreError
from .frame_sample import FrameSample
from .data_io import TelemetrySource
from .range_cache import RangeCache
from .time_interval import TimeInterval
from . import metrics

logger = logging.getLogger(__name__)

STAT_CACHED_SAMPLES = "Number of cached FrameSamples"
STAT_COVERED_RANGES = "Queried time ranges (ERT) contained in cache"
STAT_SIZE_ON_DISK_KB = "Cache size on disk (kB)"


class TelemetryCache:
    """Durable ERT-range cache of frame samples from ``source``.

    Opens (creating if needed) the SQLite cache at ``cache_path`` and seeds
    coverage from it. Every public method runs under one lock, held for the
    whole call including any upstream fetches. Pass ``lock`` to share it with
    other objects.

    Raises :class:`CacheStoreError` if the cache file cannot be opened,
    created or read.
    """

    def __init__(
        self,
        source: TelemetrySource,
        cache_path: str | Path,
        *,
        lock: threading.Lock | None = None,
    ) -> None:
        # imported here so the sdk layer does not depend on io at import time
        from tlmcache.runtime.io.sqlite_store import SqliteSampleStore

        self.source = source
        self.cache_path = Path(cache_path)
        self._lock = lock if lock is not None else threading.Lock()
        self._store = SqliteSampleStore(self.cache_path)
        try:
            if self._store.create_schema_if_absent():
                logger.info("Initialized new telemetry cache at %s", self.cache_path)
            self._cache = RangeCache(source, self._store)
            covered = self._cache.load_coverage()
        except sqlite3.DatabaseError as exc:
            self._store.close()
            raise CacheStoreError(
                f"Unable to read telemetry cache {self.cache_path}: {exc}"
            ) from exc
        except Exception:
            self._store.close()
            raise
        logger.info(
            "Opened telemetry cache %s with %d covered ERT range(s)",
            self.cache_path,
            len(covered),
        )

    # ------------------------------------------------------------------
    def get_samples_in_range(self, start: object, stop: object) -> list[FrameSample]:
        """Return cached samples with ``start <= ERT < stop``, fetching gaps first.

        ``start`` and ``stop`` may be timestamps, datetimes or ISO strings.
        """

        interval = TimeInterval(start, stop)
        with self._lock:
            return self._cache.get_samples_in_range(interval)

    def get_cache_statistics(self) -> dict[str, str]:
        with self._lock:
            count = self._store.count()
            covered = self._cache.index.all_covered()
            size_kb = self._store.file_size_bytes() // 1024
        metrics.samples_cached.set(count)
        ranges = "\n" + "".join(f"\t- {interval}\n" for interval in covered)
        stats = {
            STAT_CACHED_SAMPLES: str(count),
            STAT_COVERED_RANGES: ranges,
            STAT_SIZE_ON_DISK_KB: str(size_kb),
        }
        return dict(sorted(stats.items()))

    def covered_ranges(self) -> list[TimeInterval]:
        with self._lock:
            return self._cache.index.all_covered()

    def metadata(self) -> dict[str, str]:
        with self._lock:
            return self._store.read_metadata()

    # ------------------------------------------------------------------
    def close(self) -> None:
        with self._lock:
            self._store.close()

    def __enter__(self) -> "TelemetryCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "STAT_CACHED_SAMPLES",
    "STAT_COVERED_RANGES",
    "STAT_SIZE_ON_DISK_KB",
    "TelemetryCache",
]
