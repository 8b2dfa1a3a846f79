from tlmcache.runtime.sdk.coverage import CoverageIndex, merge_intervals, subtract_intervals
from tlmcache.runtime.sdk.time_interval import TimeInterval


def d(n: int) -> str:
    return f"2024-{n:03d}T00:00:00Z"


def iv(a: int, b: int) -> TimeInterval:
    return TimeInterval(d(a), d(b))


def test_uncovered_within_reports_interior_gaps() -> None:
    index = CoverageIndex([iv(1, 3), iv(4, 6), iv(7, 9)])
    assert index.uncovered_within(iv(2, 8)) == [iv(3, 4), iv(6, 7)]


def test_appending_adjacent_ranges_coalesces() -> None:
    index = CoverageIndex()
    index.add(iv(1, 3))
    index.add(iv(3, 4))
    index.add(iv(4, 5))
    assert index.all_covered() == [iv(1, 5)]
    assert len(index) == 1


def test_add_bridges_several_ranges() -> None:
    index = CoverageIndex([iv(1, 2), iv(3, 4), iv(6, 7), iv(9, 10)])
    index.add(iv(2, 6))
    assert index.all_covered() == [iv(1, 7), iv(9, 10)]


def test_uncovered_on_empty_index_is_whole_query() -> None:
    index = CoverageIndex()
    assert index.uncovered_within(iv(1, 8)) == [iv(1, 8)]
    assert not index.is_covered(iv(1, 8))


def test_query_inside_coverage_has_no_gaps() -> None:
    index = CoverageIndex([iv(1, 10)])
    assert index.uncovered_within(iv(2, 3)) == []
    assert index.is_covered(iv(1, 10))


def test_two_sided_extension_gaps() -> None:
    index = CoverageIndex([iv(2, 3)])
    assert index.uncovered_within(iv(1, 8)) == [iv(1, 2), iv(3, 8)]


def test_merge_intervals_sorts_and_coalesces() -> None:
    merged = merge_intervals([iv(5, 6), iv(1, 3), iv(2, 4), iv(4, 5), iv(8, 9)])
    assert merged == [iv(1, 6), iv(8, 9)]
    assert merge_intervals([]) == []


def test_add_matches_merge_intervals() -> None:
    ranges = [iv(5, 6), iv(1, 3), iv(8, 9), iv(3, 5)]
    index = CoverageIndex()
    for rng in ranges:
        index.add(rng)
    assert index.all_covered() == merge_intervals(ranges) == [iv(1, 6), iv(8, 9)]


def test_subtract_intervals_ignores_ranges_outside_query() -> None:
    covered = [iv(1, 2), iv(4, 5), iv(20, 30)]
    assert subtract_intervals(iv(3, 10), covered) == [iv(3, 4), iv(5, 10)]
    assert subtract_intervals(iv(4, 5), covered) == []
