from __future__ import annotations

"""Prometheus metrics for the telemetry cache."""

from prometheus_client import generate_latest, REGISTRY as global_registry

from tlmcache.foundation.common.metrics_factory import (
    get_metric_value,
    get_or_create_counter,
    get_or_create_gauge,
    get_or_create_histogram,
    reset_metrics as reset_registered_metrics,
)

_REGISTERED_METRICS: set[str] = set()


def _counter(name: str, documentation: str):
    metric = get_or_create_counter(name, documentation)
    _REGISTERED_METRICS.add(name)
    return metric


def _gauge(name: str, documentation: str):
    metric = get_or_create_gauge(name, documentation)
    _REGISTERED_METRICS.add(name)
    return metric


def _histogram(name: str, documentation: str, buckets):
    metric = get_or_create_histogram(name, documentation, buckets=buckets)
    _REGISTERED_METRICS.add(name)
    return metric


# ---------------------------------------------------------------------------
# Cache metrics
# ---------------------------------------------------------------------------
cache_requests_total = _counter(
    "tlm_cache_requests_total",
    "Total number of range requests served by the telemetry cache",
)

cache_gaps_total = _counter(
    "tlm_cache_gaps_total",
    "Total number of uncovered gaps detected across range requests",
)

upstream_fetch_total = _counter(
    "tlm_cache_upstream_fetch_total",
    "Total number of upstream telemetry source queries issued for gaps",
)

upstream_fetch_errors_total = _counter(
    "tlm_cache_upstream_fetch_errors_total",
    "Total number of gap fills that failed during fetch or write",
)

samples_written_total = _counter(
    "tlm_cache_samples_written_total",
    "Total number of frame samples written to the cache file",
)

upstream_fetch_duration_ms = _histogram(
    "tlm_cache_upstream_fetch_duration_ms",
    "Duration of a single upstream gap fetch in milliseconds",
    buckets=(10, 50, 100, 500, 1_000, 5_000, 30_000, 120_000, 600_000),
)

samples_cached = _gauge(
    "tlm_cache_samples_cached",
    "Number of frame samples stored in the cache file",
)


def observe_fetch_duration(duration_ms: float) -> None:
    upstream_fetch_duration_ms.observe(duration_ms)


def reset_metrics() -> None:
    """Zero every cache metric; used by tests."""
    reset_registered_metrics(_REGISTERED_METRICS)


def collect_metrics() -> str:
    return generate_latest(global_registry).decode()


__all__ = [
    "cache_gaps_total",
    "cache_requests_total",
    "collect_metrics",
    "get_metric_value",
    "observe_fetch_duration",
    "reset_metrics",
    "samples_cached",
    "samples_written_total",
    "upstream_fetch_duration_ms",
    "upstream_fetch_errors_total",
    "upstream_fetch_total",
]
