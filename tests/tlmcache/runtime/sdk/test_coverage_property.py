from __future__ import annotations

from typing import List, Tuple

from hypothesis import given, settings
from hypothesis import strategies as st

from tlmcache.runtime.sdk.coverage import CoverageIndex
from tlmcache.runtime.sdk.time_codes import from_epoch_ns
from tlmcache.runtime.sdk.time_interval import TimeInterval

_BASE_NS = 1_700_000_000 * 1_000_000_000


def _interval(bounds: Tuple[int, int]) -> TimeInterval:
    start, stop = bounds
    return TimeInterval(from_epoch_ns(_BASE_NS + start), from_epoch_ns(_BASE_NS + stop))


def _bounds_strategy() -> st.SearchStrategy[Tuple[int, int]]:
    return st.builds(
        lambda start, width: (start, start + width),
        st.integers(min_value=0, max_value=500),
        st.integers(min_value=1, max_value=120),
    )


def _points(intervals: List[TimeInterval]) -> set[int]:
    points: set[int] = set()
    for interval in intervals:
        points.update(range(interval.start.value - _BASE_NS, interval.stop.value - _BASE_NS))
    return points


@settings(deadline=None, max_examples=200)
@given(added=st.lists(_bounds_strategy(), max_size=10))
def test_all_covered_is_sorted_disjoint_and_non_adjacent(
    added: list[tuple[int, int]]
) -> None:
    index = CoverageIndex()
    for bounds in added:
        index.add(_interval(bounds))
    covered = index.all_covered()

    for prev, cur in zip(covered, covered[1:]):
        assert prev.stop < cur.start

    # the union of everything added is preserved exactly
    expected: set[int] = set()
    for start, stop in added:
        expected.update(range(start, stop))
    assert _points(covered) == expected


@settings(deadline=None, max_examples=200)
@given(added=st.lists(_bounds_strategy(), max_size=10), query=_bounds_strategy())
def test_uncovered_within_partitions_query(
    added: list[tuple[int, int]], query: tuple[int, int]
) -> None:
    index = CoverageIndex(_interval(bounds) for bounds in added)
    covered = index.all_covered()
    query_interval = _interval(query)
    gaps = index.uncovered_within(query_interval)

    for prev, cur in zip(gaps, gaps[1:]):
        assert prev.stop <= cur.start
    for gap in gaps:
        assert query_interval.start <= gap.start < gap.stop <= query_interval.stop
        for rng in covered:
            assert gap.intersection(rng) is None

    query_points = set(range(*query))
    assert _points(gaps) | (_points(covered) & query_points) == query_points
    assert _points(gaps) & _points(covered) == set()
    assert index.is_covered(query_interval) == (not gaps)
