from __future__ import annotations

"""Idempotent Prometheus metric registration.

Modules may be imported more than once (test reloads, plugin discovery); the
helpers here return the already-registered collector instead of tripping the
registry's duplicate-name check, and keep a reset hook per metric so tests can
zero values without reaching into Prometheus internals themselves.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Dict, Tuple, TypeVar

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    REGISTRY as global_registry,
)
from prometheus_client.metrics import MetricWrapperBase

__all__ = [
    "get_or_create_counter",
    "get_or_create_gauge",
    "get_or_create_histogram",
    "get_metric_value",
    "reset_metrics",
]

MetricT = TypeVar("MetricT", bound=MetricWrapperBase)
RegistryKey = Tuple[CollectorRegistry, str]

_METRIC_CACHE: Dict[RegistryKey, MetricWrapperBase] = {}
_RESET_CALLBACKS: Dict[RegistryKey, Callable[[], None]] = {}


def get_or_create_counter(
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
) -> Counter:
    """Return an existing counter or register a new one."""

    return _get_or_create_metric(Counter, name, documentation, labelnames, registry=registry)


def get_or_create_gauge(
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
) -> Gauge:
    """Return an existing gauge or register a new one."""

    return _get_or_create_metric(Gauge, name, documentation, labelnames, registry=registry)


def get_or_create_histogram(
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
    buckets: Sequence[float] | None = None,
) -> Histogram:
    """Return an existing histogram or register a new one."""

    extra = {"buckets": tuple(buckets)} if buckets else {}
    return _get_or_create_metric(
        Histogram, name, documentation, labelnames, registry=registry, **extra
    )


def reset_metrics(
    names: Iterable[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
) -> None:
    """Reset metrics registered through this module.

    When ``names`` is ``None`` every metric known for ``registry`` is reset.
    """

    reg = registry or global_registry
    if names is None:
        keys = [key for key in _RESET_CALLBACKS if key[0] is reg]
    else:
        requested = set(names)
        keys = [key for key in _RESET_CALLBACKS if key[0] is reg and key[1] in requested]
    for key in keys:
        _RESET_CALLBACKS[key]()


def get_metric_value(
    metric: MetricWrapperBase, labels: Mapping[str, str] | None = None
) -> float:
    """Return the current value of ``metric``.

    Counters report their ``_total`` sample and histograms their ``_count``.
    """

    for family in metric.collect():
        for sample in family.samples:
            if sample.name.endswith("_created") or sample.name.endswith("_bucket"):
                continue
            if family.type == "histogram" and not sample.name.endswith("_count"):
                continue
            if labels is None and sample.labels:
                continue
            if labels is not None and sample.labels != dict(labels):
                continue
            return float(sample.value)
    return 0.0


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _get_or_create_metric(
    metric_cls: type[MetricT],
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None,
    *,
    registry: CollectorRegistry | None,
    **kwargs,
) -> MetricT:
    reg = registry or global_registry
    labels = tuple(labelnames or ())
    cache_key = (reg, name)
    cached = _METRIC_CACHE.get(cache_key)
    if cached is not None and isinstance(cached, metric_cls) and _labels_match(cached, labels):
        return cached  # type: ignore[return-value]

    existing = _lookup_metric(reg, name)
    if existing is not None and not isinstance(existing, metric_cls):
        raise TypeError(
            f"Metric '{name}' already registered with incompatible type {type(existing)!r}"
        )
    if existing is not None and not _labels_match(existing, labels):
        reg.unregister(existing)
        existing = None
    metric = existing or metric_cls(name, documentation, labels, registry=reg, **kwargs)
    _METRIC_CACHE[cache_key] = metric
    _RESET_CALLBACKS[cache_key] = lambda: _default_reset(metric)
    return metric  # type: ignore[return-value]


def _default_reset(metric: MetricWrapperBase) -> None:
    if tuple(getattr(metric, "_labelnames", ())):
        metric.clear()
        return
    if isinstance(metric, Counter):
        metric._value.set(0)  # type: ignore[attr-defined]
    elif isinstance(metric, Gauge):
        metric.set(0)
    elif isinstance(metric, Histogram):
        metric._sum.set(0)  # type: ignore[attr-defined]
        for bucket in getattr(metric, "_buckets", ()):
            bucket.set(0)


def _lookup_metric(registry: CollectorRegistry, name: str) -> MetricWrapperBase | None:
    collectors = getattr(registry, "_names_to_collectors", {})
    # counters register under both ``name`` and ``name_total``
    return collectors.get(name) or collectors.get(f"{name}_total")


def _labels_match(metric: MetricWrapperBase, expected: Sequence[str]) -> bool:
    return tuple(getattr(metric, "_labelnames", ())) == tuple(expected)
