from __future__ import annotations

"""Interval-set bookkeeping for ERT ranges already fetched from upstream."""

import threading
from collections.abc import Iterable, Sequence

from .time_interval import TimeInterval


def merge_intervals(intervals: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Return the minimal sorted cover of ``intervals``.

    Overlapping and adjacent (``a.stop == b.start``) intervals coalesce, so no
    two results overlap or touch.
    """

    ordered = sorted(intervals)
    if not ordered:
        return []
    merged: list[TimeInterval] = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.stop:
            if current.stop > last.stop:
                merged[-1] = TimeInterval(last.start, current.stop)
        else:
            merged.append(current)
    return merged


def subtract_intervals(
    query: TimeInterval, covered: Sequence[TimeInterval]
) -> list[TimeInterval]:
    """Return the parts of ``query`` not in ``covered``.

    ``covered`` must already be minimal and sorted (see :func:`merge_intervals`).
    The result is sorted by start and disjoint from ``covered``.
    """

    gaps: list[TimeInterval] = []
    cursor = query.start
    for rng in covered:
        if rng.stop <= cursor:
            continue
        if rng.start >= query.stop:
            break
        if rng.start > cursor:
            gaps.append(TimeInterval(cursor, rng.start))
        cursor = max(cursor, rng.stop)
        if cursor >= query.stop:
            break
    if cursor < query.stop:
        gaps.append(TimeInterval(cursor, query.stop))
    return gaps


class CoverageIndex:
    """Minimal disjoint set of covered intervals guarded by a single lock."""

    def __init__(self, intervals: Iterable[TimeInterval] = ()) -> None:
        self._lock = threading.Lock()
        self._covered: list[TimeInterval] = []
        self.add_all(intervals)

    # ------------------------------------------------------------------
    def add(self, interval: TimeInterval) -> None:
        with self._lock:
            self._add_locked(interval)

    def add_all(self, intervals: Iterable[TimeInterval]) -> None:
        with self._lock:
            for interval in intervals:
                self._add_locked(interval)

    # ------------------------------------------------------------------
    def uncovered_within(self, query: TimeInterval) -> list[TimeInterval]:
        with self._lock:
            return subtract_intervals(query, self._covered)

    def is_covered(self, query: TimeInterval) -> bool:
        return not self.uncovered_within(query)

    def all_covered(self) -> list[TimeInterval]:
        with self._lock:
            return list(self._covered)

    def __len__(self) -> int:
        with self._lock:
            return len(self._covered)

    # ------------------------------------------------------------------
    def _add_locked(self, interval: TimeInterval) -> None:
        self._covered = merge_intervals([*self._covered, interval])


__all__ = ["CoverageIndex", "merge_intervals", "subtract_intervals"]
