from __future__ import annotations

"""Immutable half-open ERT interval."""

from dataclasses import dataclass

import pandas as pd

from .exceptions import InvalidIntervalError
from .time_codes import format_iso_doy, to_utc_timestamp


@dataclass(frozen=True, order=True)
class TimeInterval:
    """``[start, stop)`` in UTC with nanosecond precision.

    Ordering follows field order: by ``start`` and then by ``stop``.
    Constructor arguments may be timestamps, datetimes or ISO strings.
    """

    start: pd.Timestamp
    stop: pd.Timestamp

    def __post_init__(self) -> None:
        start = to_utc_timestamp(self.start)
        stop = to_utc_timestamp(self.stop)
        if not start < stop:
            raise InvalidIntervalError(
                f"Invalid start and stop times: {format_iso_doy(start)} and "
                f"{format_iso_doy(stop)}"
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "stop", stop)

    # ------------------------------------------------------------------
    def overlaps_or_touches(self, other: "TimeInterval") -> bool:
        return self.start <= other.stop and other.start <= self.stop

    def contains(self, instant: object) -> bool:
        ts = to_utc_timestamp(instant)
        return self.start <= ts < self.stop

    def intersection(self, other: "TimeInterval") -> "TimeInterval | None":
        start = max(self.start, other.start)
        stop = min(self.stop, other.stop)
        if start < stop:
            return TimeInterval(start, stop)
        return None

    @property
    def duration(self) -> pd.Timedelta:
        return self.stop - self.start

    def __str__(self) -> str:
        return f"[{format_iso_doy(self.start)}, {format_iso_doy(self.stop)})"


__all__ = ["TimeInterval"]
