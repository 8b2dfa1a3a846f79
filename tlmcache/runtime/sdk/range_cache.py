from __future__ import annotations

"""Range-coverage caching in front of an upstream telemetry source."""

import logging
import time

from .coverage import CoverageIndex
from .data_io import SampleStore, TelemetrySource
from .frame_sample import FrameSample
from .time_interval import TimeInterval
from . import metrics

logger = logging.getLogger(__name__)


class RangeCache:
    """Serve ERT range queries from ``store``, fetching only uncovered gaps.

    Parameters
    ----------
    source : TelemetrySource
        Upstream archive. Queried once per gap, in ascending gap order.
    store : SampleStore
        Durable sample and coverage storage.
    index : CoverageIndex, optional
        In-memory coverage; call :meth:`load_coverage` to seed it from
        ``store``.

    The cache does no locking of its own beyond the index; callers needing
    per-call atomicity wrap it (see
    :class:`~tlmcache.runtime.sdk.cache_facade.TelemetryCache`).
    """

    def __init__(
        self,
        source: TelemetrySource,
        store: SampleStore,
        *,
        index: CoverageIndex | None = None,
    ) -> None:
        self.source = source
        self.store = store
        self.index = index if index is not None else CoverageIndex()

    def load_coverage(self) -> list[TimeInterval]:
        persisted = self.store.read_coverage()
        self.index.add_all(persisted)
        logger.debug("Loaded %d covered ERT ranges from store", len(persisted))
        return self.index.all_covered()

    # ------------------------------------------------------------------
    def get_samples_in_range(self, interval: TimeInterval) -> list[FrameSample]:
        """Return every sample with ``interval.start <= ERT < interval.stop``.

        Gaps are filled in order. If filling a gap fails, the gaps already
        filled stay covered (and are persisted) before the error propagates.
        """

        metrics.cache_requests_total.inc()
        gaps = self.index.uncovered_within(interval)
        if gaps:
            metrics.cache_gaps_total.inc(len(gaps))
            logger.info(
                "Fetching %d uncovered ERT range(s) within %s from upstream",
                len(gaps),
                interval,
            )
        else:
            logger.debug("ERT range %s already covered by cache", interval)

        try:
            for gap in gaps:
                self._fill_gap(gap)
        finally:
            self.store.write_coverage(self.index.all_covered())

        return self.store.read_samples(interval)

    # ------------------------------------------------------------------
    def _fill_gap(self, gap: TimeInterval) -> None:
        metrics.upstream_fetch_total.inc()
        started_at = time.perf_counter()
        try:
            samples = list(self.source.get_samples_in_range(gap.start, gap.stop))
            self._warn_outside(gap, samples)
            written = self.store.write_samples(samples)
        except Exception:
            metrics.upstream_fetch_errors_total.inc()
            logger.warning("Failed to fill ERT range %s", gap)
            raise
        finally:
            metrics.observe_fetch_duration((time.perf_counter() - started_at) * 1000.0)

        metrics.samples_written_total.inc(written)
        self.index.add(gap)
        logger.info("Cached %d frame sample(s) for ERT range %s", written, gap)

    @staticmethod
    def _warn_outside(gap: TimeInterval, samples: list[FrameSample]) -> None:
        outside = 0
        for sample in samples:
            if sample.has_ert and not gap.contains(sample.ert_time):
                outside += 1
        if outside:
            logger.warning(
                "Upstream returned %d sample(s) outside requested ERT range %s",
                outside,
                gap,
            )


__all__ = ["RangeCache"]
