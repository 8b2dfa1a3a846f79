from __future__ import annotations

"""UTC time parsing and CCSDS time codes at nanosecond precision.

Timestamps are carried as tz-aware UTC :class:`pandas.Timestamp` values, which
keep nanoseconds that :class:`datetime.datetime` would drop. Two textual forms
are accepted: ISO day-of-year (``2024-360T12:34:56.789102340``) and ISO
calendar (``2024-12-25T12:34:56.789Z``); fractions longer than nine digits are
rejected rather than rounded.
"""

import calendar
import datetime as dt
import re
from dataclasses import dataclass

import pandas as pd

from .exceptions import TimeParseError

NS_PER_SECOND = 1_000_000_000
NS_PER_MS = 1_000_000
MS_PER_DAY = 86_400_000
SECONDS_PER_DAY = 86_400

_ISO_DOY_RE = re.compile(
    r"^(\d{4})-(\d{3})T(\d{2}):(\d{2}):(\d{2})(\.\d{1,9})?[Zz]?$"
)
_ISO_CALENDAR_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(\.\d{1,9})?[Zz]?$"
)

_UNIX_EPOCH = dt.date(1970, 1, 1)
# CDS day zero is 1958-001
_CDS_EPOCH_OFFSET_DAYS = (dt.date(1958, 1, 1) - _UNIX_EPOCH).days


def from_epoch_ns(value: int) -> pd.Timestamp:
    """Return the UTC timestamp ``value`` nanoseconds after the Unix epoch."""

    try:
        return pd.Timestamp(int(value), unit="ns", tz="UTC")
    except (OverflowError, ValueError) as exc:
        raise TimeParseError(f"epoch nanoseconds out of range: {value}") from exc


def _to_epoch_ns(
    text: str,
    date: dt.date,
    hour: int,
    minute: int,
    second: int,
    fraction: str | None,
) -> int:
    if hour > 23 or minute > 59 or second > 59:
        raise TimeParseError(f"time of day out of range: {text!r}")
    nanos = int(fraction[1:].ljust(9, "0")) if fraction else 0
    days = (date - _UNIX_EPOCH).days
    seconds = days * SECONDS_PER_DAY + hour * 3600 + minute * 60 + second
    return seconds * NS_PER_SECOND + nanos


def parse_iso_doy(text: str) -> pd.Timestamp:
    """Parse ``yyyy-dddThh:mm:ss[.fffffffff][Z]`` as UTC."""

    match = _ISO_DOY_RE.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise TimeParseError(f"not an ISO day-of-year UTC time: {text!r}")
    year, doy, hour, minute, second = (int(g) for g in match.groups()[:5])
    days_in_year = 366 if calendar.isleap(year) else 365
    if not 1 <= doy <= days_in_year:
        raise TimeParseError(f"day of year out of range: {text!r}")
    date = dt.date(year, 1, 1) + dt.timedelta(days=doy - 1)
    return from_epoch_ns(_to_epoch_ns(text, date, hour, minute, second, match.group(6)))


def parse_iso_calendar(text: str) -> pd.Timestamp:
    """Parse ``yyyy-mm-ddThh:mm:ss[.fffffffff][Z]`` as UTC."""

    match = _ISO_CALENDAR_RE.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise TimeParseError(f"not an ISO calendar UTC time: {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    try:
        date = dt.date(year, month, day)
    except ValueError as exc:
        raise TimeParseError(f"invalid calendar date: {text!r}") from exc
    return from_epoch_ns(_to_epoch_ns(text, date, hour, minute, second, match.group(7)))


def parse_utc(text: str) -> pd.Timestamp:
    """Parse either supported ISO form."""

    if isinstance(text, str) and _ISO_DOY_RE.match(text.strip()):
        return parse_iso_doy(text)
    return parse_iso_calendar(text)


def to_utc_timestamp(value: object) -> pd.Timestamp:
    """Coerce ``value`` into a tz-aware UTC :class:`pandas.Timestamp`.

    Naive timestamps and datetimes are taken to already be UTC.
    """

    if isinstance(value, str):
        return parse_utc(value)
    if isinstance(value, (pd.Timestamp, dt.datetime)):
        ts = pd.Timestamp(value)
        if ts is pd.NaT:
            raise TimeParseError("NaT is not a valid time")
        if ts.tzinfo is None:
            return ts.tz_localize("UTC")
        return ts.tz_convert("UTC")
    raise TimeParseError(f"unsupported time value: {value!r}")


def format_iso_doy(value: object, precision: int = 9) -> str:
    """Render ``value`` as an ISO day-of-year string, truncating subseconds."""

    if not 0 <= precision <= 9:
        raise ValueError("precision must be between 0 and 9")
    ts = to_utc_timestamp(value)
    base = (
        f"{ts.year:04d}-{ts.dayofyear:03d}T"
        f"{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d}"
    )
    if precision == 0:
        return base
    nanos = ts.value % NS_PER_SECOND
    return f"{base}.{nanos:09d}"[: len(base) + 1 + precision]


def epoch_ms(value: object) -> int:
    """Return ``value`` quantized (floored) to whole epoch milliseconds."""

    return to_utc_timestamp(value).value // NS_PER_MS


def split_epoch_seconds(value: object) -> tuple[int, int]:
    """Return ``(whole_seconds, nano_of_second)`` with a non-negative remainder."""

    seconds, nanos = divmod(to_utc_timestamp(value).value, NS_PER_SECOND)
    return int(seconds), int(nanos)


def join_epoch_seconds(seconds: int, nano_of_second: int) -> pd.Timestamp:
    if not 0 <= int(nano_of_second) < NS_PER_SECOND:
        raise TimeParseError(f"nano-of-second out of range: {nano_of_second}")
    return from_epoch_ns(int(seconds) * NS_PER_SECOND + int(nano_of_second))


@dataclass(frozen=True)
class CdsTimeCode:
    """CCSDS Day Segmented time code as stamped by the DSN ground receipt header.

    ``day`` counts from 1958-001, ``ms_of_day`` is the millisecond of that day
    and ``sub_ms`` is in tenths of a microsecond (0-9999).
    """

    day: int
    ms_of_day: int
    sub_ms: int = 0

    @classmethod
    def parse(cls, text: str) -> "CdsTimeCode":
        segments = text.split("::") if isinstance(text, str) else []
        if len(segments) != 3:
            raise TimeParseError(f"invalid day segmented time string: {text!r}")
        try:
            day, ms_of_day, sub_ms = (int(s) for s in segments)
        except ValueError as exc:
            raise TimeParseError(f"invalid day segmented time string: {text!r}") from exc
        return cls(day, ms_of_day, sub_ms)

    @classmethod
    def from_timestamp(cls, value: object) -> "CdsTimeCode":
        ns = to_utc_timestamp(value).value - _CDS_EPOCH_OFFSET_DAYS * MS_PER_DAY * NS_PER_MS
        day, rem = divmod(ns, MS_PER_DAY * NS_PER_MS)
        ms_of_day, sub_ns = divmod(rem, NS_PER_MS)
        return cls(int(day), int(ms_of_day), int(sub_ns // 100))

    def to_timestamp(self) -> pd.Timestamp:
        # leap-second milliseconds (>= 86400000) have no UTC nanosecond encoding
        if not 0 <= self.ms_of_day < MS_PER_DAY:
            raise TimeParseError(f"millisecond of day out of range: {self}")
        if not 0 <= self.sub_ms < 10_000:
            raise TimeParseError(f"sub-millisecond out of range: {self}")
        ms = (_CDS_EPOCH_OFFSET_DAYS + self.day) * MS_PER_DAY + self.ms_of_day
        return from_epoch_ns(ms * NS_PER_MS + self.sub_ms * 100)

    def __str__(self) -> str:
        return f"{self.day}::{self.ms_of_day}::{self.sub_ms:04d}"


__all__ = [
    "CdsTimeCode",
    "NS_PER_MS",
    "NS_PER_SECOND",
    "epoch_ms",
    "format_iso_doy",
    "from_epoch_ns",
    "join_epoch_seconds",
    "parse_iso_calendar",
    "parse_iso_doy",
    "parse_utc",
    "split_epoch_seconds",
    "to_utc_timestamp",
]
