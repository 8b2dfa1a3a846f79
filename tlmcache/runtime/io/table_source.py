from __future__ import annotations

"""Upstream telemetry source backed by a raw telemetry table CSV."""

import dataclasses
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from tlmcache.runtime.sdk.exceptions import SourceConfigurationError
from tlmcache.runtime.sdk.frame_sample import FrameSample
from tlmcache.runtime.sdk.time_codes import to_utc_timestamp

logger = logging.getLogger(__name__)

_INT_FIELDS = frozenset(
    field.name
    for field in dataclasses.fields(FrameSample)
    if type(field.default) is int
)
_FIELD_NAMES = frozenset(field.name for field in dataclasses.fields(FrameSample))
_REQUIRED_COLUMNS = ("ert_str",)


def _row_to_sample(row: dict[str, Any]) -> FrameSample:
    kwargs: dict[str, Any] = {}
    for name, value in row.items():
        if name not in _FIELD_NAMES or value == "":
            continue
        if name in _INT_FIELDS:
            kwargs[name] = int(value)
        else:
            kwargs[name] = value
    return FrameSample(**kwargs)


class CsvTelemetrySource:
    """Serve frame samples from a CSV whose columns are FrameSample fields.

    Blank cells keep the field default. ``connect`` loads the table and
    ``disconnect`` drops it; querying before ``connect`` loads it on demand.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._samples: list[FrameSample] | None = None
        self._erts: list[pd.Timestamp] = []

    @property
    def name(self) -> str:
        return f"csv:{self.path.name}"

    # ------------------------------------------------------------------
    def connect(self) -> None:
        try:
            frame = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise SourceConfigurationError(
                f"Unable to read telemetry table {self.path}: {exc}"
            ) from exc
        missing = [col for col in _REQUIRED_COLUMNS if col not in frame.columns]
        if missing:
            raise SourceConfigurationError(
                f"Telemetry table {self.path} is missing column(s): {', '.join(missing)}"
            )
        unknown = sorted(set(frame.columns) - _FIELD_NAMES)
        if unknown:
            logger.debug("Ignoring telemetry table columns %s", unknown)

        samples = [_row_to_sample(row) for row in frame.to_dict("records")]
        samples = [sample for sample in samples if sample.has_ert]
        samples.sort(key=lambda sample: sample.ert_time)
        self._samples = samples
        self._erts = [sample.ert_time for sample in samples]
        logger.info("Loaded %d frame sample(s) from %s", len(samples), self.path)

    def disconnect(self) -> None:
        self._samples = None
        self._erts = []

    # ------------------------------------------------------------------
    def get_samples_in_range(
        self, start: pd.Timestamp, stop: pd.Timestamp
    ) -> list[FrameSample]:
        if self._samples is None:
            self.connect()
        start = to_utc_timestamp(start)
        stop = to_utc_timestamp(stop)
        return [
            sample
            for ert, sample in zip(self._erts, self._samples or [])
            if start <= ert < stop
        ]


__all__ = ["CsvTelemetrySource"]
