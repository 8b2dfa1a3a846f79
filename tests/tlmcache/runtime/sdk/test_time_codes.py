import datetime as dt

import pandas as pd
import pytest

from tlmcache.runtime.sdk.exceptions import TimeParseError
from tlmcache.runtime.sdk.time_codes import (
    CdsTimeCode,
    epoch_ms,
    format_iso_doy,
    join_epoch_seconds,
    parse_iso_calendar,
    parse_iso_doy,
    parse_utc,
    split_epoch_seconds,
    to_utc_timestamp,
)


def test_parse_iso_doy_matches_calendar_date() -> None:
    assert parse_iso_doy("2024-001T00:00:00Z") == pd.Timestamp("2024-01-01T00:00:00Z")
    # 2024 is a leap year, so day 60 is Feb 29
    assert parse_iso_doy("2024-060T12:00:00.5") == parse_iso_calendar(
        "2024-02-29T12:00:00.5Z"
    )


def test_parse_keeps_nanoseconds() -> None:
    ts = parse_utc("2024-060T12:00:00.123456789")
    assert ts.value % 1_000_000_000 == 123_456_789
    assert ts.tzinfo is not None


@pytest.mark.parametrize(
    "text",
    [
        "2023-366T00:00:00",
        "2024-000T00:00:00",
        "2024-001T24:00:00",
        "2024-001T00:00:00.1234567891",
        "2024-13-01T00:00:00",
        "2024-02-30T00:00:00",
        "not a time",
        "",
    ],
)
def test_malformed_times_raise(text: str) -> None:
    with pytest.raises(TimeParseError):
        parse_utc(text)


def test_time_parse_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_iso_doy("2024-xyzT00:00:00")


def test_format_iso_doy_truncates_to_precision() -> None:
    ts = parse_iso_doy("2024-060T12:00:00.123456789")
    assert format_iso_doy(ts) == "2024-060T12:00:00.123456789"
    assert format_iso_doy(ts, 3) == "2024-060T12:00:00.123"
    assert format_iso_doy(ts, 0) == "2024-060T12:00:00"
    with pytest.raises(ValueError):
        format_iso_doy(ts, 10)


def test_epoch_ms_floors() -> None:
    assert epoch_ms("1970-001T00:00:00.0015") == 1
    assert epoch_ms("1969-365T23:59:59.9995") == -1


def test_split_and_join_epoch_seconds_before_epoch() -> None:
    ts = parse_utc("1969-365T23:59:59.25")
    assert split_epoch_seconds(ts) == (-1, 250_000_000)
    assert join_epoch_seconds(-1, 250_000_000) == ts
    with pytest.raises(TimeParseError):
        join_epoch_seconds(0, 1_000_000_000)


def test_to_utc_timestamp_coerces_inputs() -> None:
    expected = pd.Timestamp("2024-01-01T00:00:00Z")
    assert to_utc_timestamp(dt.datetime(2024, 1, 1)) == expected
    assert to_utc_timestamp(pd.Timestamp("2024-01-01T01:00:00+01:00")) == expected
    assert to_utc_timestamp("2024-001T00:00:00") == expected
    with pytest.raises(TimeParseError):
        to_utc_timestamp(12)


def test_cds_parse_and_str() -> None:
    code = CdsTimeCode.parse("24000::1000::0005")
    assert code == CdsTimeCode(24000, 1000, 5)
    assert str(code) == "24000::1000::0005"


@pytest.mark.parametrize("text", ["1::2", "a::b::c", "1:2:3"])
def test_cds_parse_rejects_malformed(text: str) -> None:
    with pytest.raises(TimeParseError):
        CdsTimeCode.parse(text)


def test_cds_epoch_and_sub_millisecond() -> None:
    assert CdsTimeCode(0, 0, 0).to_timestamp() == pd.Timestamp("1958-01-01T00:00:00Z")
    ts = CdsTimeCode(0, 1, 5).to_timestamp()
    assert ts == pd.Timestamp("1958-01-01T00:00:00.001000500Z")


def test_cds_from_timestamp_inverts_to_timestamp() -> None:
    ts = parse_utc("2020-100T01:02:03.456789100")
    assert CdsTimeCode.from_timestamp(ts).to_timestamp() == ts


def test_cds_leap_second_millisecond_rejected() -> None:
    with pytest.raises(TimeParseError):
        CdsTimeCode(100, 86_400_000, 0).to_timestamp()
    with pytest.raises(TimeParseError):
        CdsTimeCode(100, 0, 10_000).to_timestamp()
