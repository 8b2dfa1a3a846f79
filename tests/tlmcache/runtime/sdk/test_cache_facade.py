import datetime as dt
import threading

import pytest

from tlmcache.runtime.sdk import metrics
from tlmcache.runtime.sdk.cache_facade import (
    STAT_CACHED_SAMPLES,
    STAT_COVERED_RANGES,
    STAT_SIZE_ON_DISK_KB,
    TelemetryCache,
)
from tlmcache.runtime.sdk.exceptions import CacheStoreError, InvalidIntervalError
from tlmcache.runtime.sdk.time_interval import TimeInterval


class CountingLock:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.entered = 0

    def __enter__(self):
        self._lock.acquire()
        self.entered += 1
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._lock.release()


@pytest.fixture
def samples(make_sample):
    return [
        make_sample("2024-001T06:00:00"),
        make_sample("2024-001T18:00:00.000000001"),
        make_sample("2024-002T06:00:00"),
        make_sample("2024-005T06:00:00"),
    ]


def test_statistics_report_count_ranges_and_size(tmp_path, make_source, samples) -> None:
    with TelemetryCache(make_source(samples), tmp_path / "tlm.sqlite") as cache:
        cache.get_samples_in_range("2024-001T00:00:00", "2024-003T00:00:00")
        stats = cache.get_cache_statistics()

    assert list(stats) == sorted(
        [STAT_CACHED_SAMPLES, STAT_COVERED_RANGES, STAT_SIZE_ON_DISK_KB]
    )
    assert stats["Number of cached FrameSamples"] == "3"
    assert stats["Queried time ranges (ERT) contained in cache"] == (
        "\n\t- [2024-001T00:00:00.000000000, 2024-003T00:00:00.000000000)\n"
    )
    assert int(stats["Cache size on disk (kB)"]) >= 0
    assert metrics.get_metric_value(metrics.samples_cached) == 3


def test_empty_cache_statistics(tmp_path, make_source) -> None:
    with TelemetryCache(make_source(), tmp_path / "tlm.sqlite") as cache:
        stats = cache.get_cache_statistics()
    assert stats[STAT_CACHED_SAMPLES] == "0"
    assert stats[STAT_COVERED_RANGES] == "\n"


def test_cache_survives_reopen(tmp_path, make_source, samples) -> None:
    path = tmp_path / "tlm.sqlite"
    with TelemetryCache(make_source(samples), path) as cache:
        first = cache.get_samples_in_range("2024-001T00:00:00", "2024-006T00:00:00")
        covered = cache.covered_ranges()
        metadata = cache.metadata()

    source = make_source(samples)
    with TelemetryCache(source, path) as reopened:
        assert reopened.covered_ranges() == covered
        assert reopened.metadata() == metadata
        again = reopened.get_samples_in_range(
            "2024-001T00:00:00", "2024-006T00:00:00"
        )
    assert source.calls == []
    assert again == first
    assert len(first) == 4


def test_accepts_datetimes(tmp_path, make_source, samples) -> None:
    with TelemetryCache(make_source(samples), tmp_path / "tlm.sqlite") as cache:
        result = cache.get_samples_in_range(dt.datetime(2024, 1, 1), dt.datetime(2024, 1, 2))
        assert cache.covered_ranges() == [
            TimeInterval("2024-001T00:00:00", "2024-002T00:00:00")
        ]
    assert len(result) == 2


def test_invalid_range_does_not_reach_upstream(tmp_path, make_source) -> None:
    source = make_source()
    with TelemetryCache(source, tmp_path / "tlm.sqlite") as cache:
        with pytest.raises(InvalidIntervalError):
            cache.get_samples_in_range("2024-002T00:00:00", "2024-001T00:00:00")
    assert source.calls == []


def test_cache_usable_after_upstream_failure(tmp_path, make_source, samples) -> None:
    source = make_source(samples)
    source.fail_when = lambda start, stop: ConnectionError("down")
    with TelemetryCache(source, tmp_path / "tlm.sqlite") as cache:
        with pytest.raises(ConnectionError):
            cache.get_samples_in_range("2024-001T00:00:00", "2024-002T00:00:00")
        assert cache.covered_ranges() == []

        source.fail_when = None
        result = cache.get_samples_in_range("2024-001T00:00:00", "2024-002T00:00:00")
    assert len(result) == 2


def test_injected_lock_guards_calls(tmp_path, make_source, samples) -> None:
    lock = CountingLock()
    with TelemetryCache(make_source(samples), tmp_path / "tlm.sqlite", lock=lock) as cache:
        cache.get_samples_in_range("2024-001T00:00:00", "2024-002T00:00:00")
        cache.get_cache_statistics()
    assert lock.entered >= 3


def test_concurrent_requests_fetch_once(tmp_path, make_source, samples) -> None:
    source = make_source(samples)
    results: list[int] = []
    with TelemetryCache(source, tmp_path / "tlm.sqlite") as cache:

        def worker() -> None:
            found = cache.get_samples_in_range("2024-001T00:00:00", "2024-006T00:00:00")
            results.append(len(found))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert len(source.calls) == 1
    assert results == [4, 4, 4, 4]


def test_unreadable_cache_file_raises(tmp_path, make_source) -> None:
    path = tmp_path / "tlm.sqlite"
    path.write_bytes(b"this is not an sqlite database" * 200)
    with pytest.raises(CacheStoreError):
        TelemetryCache(make_source(), path)
