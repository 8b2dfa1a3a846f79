"""Shared fixtures for tlmcache tests."""

from __future__ import annotations

from typing import Callable, Iterable

import pandas as pd
import pytest

from tlmcache.runtime.sdk import metrics
from tlmcache.runtime.sdk.frame_sample import FrameSample


class RecordingSource:
    """In-memory upstream that records every range query it receives."""

    name = "recording"

    def __init__(self, samples: Iterable[FrameSample] = (), *, clip: bool = True) -> None:
        self.samples = list(samples)
        self.clip = clip
        self.calls: list[tuple[pd.Timestamp, pd.Timestamp]] = []
        self.fail_when: Callable[[pd.Timestamp, pd.Timestamp], Exception | None] | None = None
        self.connected = False

    def get_samples_in_range(
        self, start: pd.Timestamp, stop: pd.Timestamp
    ) -> list[FrameSample]:
        self.calls.append((start, stop))
        if self.fail_when is not None:
            exc = self.fail_when(start, stop)
            if exc is not None:
                raise exc
        if not self.clip:
            return list(self.samples)
        return [s for s in self.samples if start <= s.ert_time < stop]

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False


@pytest.fixture(autouse=True)
def _reset_cache_metrics():
    metrics.reset_metrics()
    yield
    metrics.reset_metrics()


@pytest.fixture
def make_source() -> Callable[..., RecordingSource]:
    return RecordingSource


@pytest.fixture
def make_sample() -> Callable[..., FrameSample]:
    counter = iter(range(1_000_000))

    def _make(ert_str: str, **fields) -> FrameSample:
        n = next(counter)
        fields.setdefault("sclk_coarse", 1_000 + n)
        fields.setdefault("sclk_fine", n)
        fields.setdefault("vcid", 6)
        fields.setdefault("vcfc", n % 256)
        return FrameSample(ert_str=ert_str, **fields)

    return _make
