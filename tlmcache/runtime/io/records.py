from __future__ import annotations

"""Row mappings between cache tables and domain objects."""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from tlmcache.runtime.sdk.frame_sample import FrameSample, ValidState
from tlmcache.runtime.sdk.time_codes import (
    CdsTimeCode,
    NS_PER_MS,
    join_epoch_seconds,
    split_epoch_seconds,
)
from tlmcache.runtime.sdk.time_interval import TimeInterval

FRAME_SAMPLE_COLUMNS: tuple[str, ...] = (
    "ert_epoch_ms",
    "ert_epoch_ns",
    "sclk_coarse",
    "sclk_fine",
    "ert",
    "ert_explicitly_set",
    "ert_str",
    "ert_str_explicitly_set",
    "scet",
    "path_id",
    "vcid",
    "vcfc",
    "mcfc",
    "tk_sclk_coarse",
    "tk_sclk_fine",
    "tk_vcid",
    "tk_vcfc",
    "tk_data_rate_bps",
    "tk_rf_encoding",
    "tk_is_valid",
    "supp_vcid",
    "supp_vcfc",
    "supp_mcfc",
    "supp_ert",
    "supp_ert_explicitly_set",
    "supp_ert_str",
    "supp_ert_str_explicitly_set",
    "frame_size_bits",
)

_INT_FIELDS: tuple[str, ...] = (
    "sclk_coarse",
    "sclk_fine",
    "path_id",
    "vcid",
    "vcfc",
    "mcfc",
    "tk_sclk_coarse",
    "tk_sclk_fine",
    "tk_vcid",
    "tk_vcfc",
    "supp_vcid",
    "supp_vcfc",
    "supp_mcfc",
    "frame_size_bits",
)

COVERAGE_COLUMNS: tuple[str, ...] = (
    "start_sec",
    "start_nano_of_sec",
    "stop_sec",
    "stop_nano_of_sec",
)


def frame_sample_to_row(sample: FrameSample) -> dict[str, Any]:
    """Flatten ``sample`` for insertion; unset optional values become ``""``.

    Raises :class:`~tlmcache.runtime.sdk.exceptions.TimeParseError` when the
    sample has no ERT or its ERT cannot be parsed.
    """

    ert_ns = sample.ert_time.value
    row: dict[str, Any] = {name: getattr(sample, name) for name in _INT_FIELDS}
    row.update(
        ert_epoch_ms=ert_ns // NS_PER_MS,
        ert_epoch_ns=ert_ns,
        ert=str(sample.ert) if sample.ert is not None else "",
        ert_explicitly_set=int(sample.ert_explicitly_set),
        ert_str=sample.ert_str if sample.ert_str is not None else "",
        ert_str_explicitly_set=int(sample.ert_str_explicitly_set),
        scet=sample.scet,
        tk_data_rate_bps=str(sample.tk_data_rate_bps),
        tk_rf_encoding=sample.tk_rf_encoding,
        tk_is_valid=sample.tk_valid.value,
        supp_ert=str(sample.supp_ert) if sample.supp_ert is not None else "",
        supp_ert_explicitly_set=int(sample.supp_ert_explicitly_set),
        supp_ert_str=sample.supp_ert_str if sample.supp_ert_str is not None else "",
        supp_ert_str_explicitly_set=int(sample.supp_ert_str_explicitly_set),
    )
    return row


def row_to_frame_sample(row: Mapping[str, Any]) -> FrameSample:
    values: dict[str, Any] = {name: int(row[name]) for name in _INT_FIELDS}
    return FrameSample(
        ert=CdsTimeCode.parse(row["ert"]) if int(row["ert_explicitly_set"]) else None,
        ert_str=str(row["ert_str"]) if int(row["ert_str_explicitly_set"]) else None,
        scet=str(row["scet"]),
        tk_data_rate_bps=Decimal(str(row["tk_data_rate_bps"])),
        tk_rf_encoding=str(row["tk_rf_encoding"]),
        tk_valid=ValidState(row["tk_is_valid"]),
        supp_ert=(
            CdsTimeCode.parse(row["supp_ert"])
            if int(row["supp_ert_explicitly_set"])
            else None
        ),
        supp_ert_str=(
            str(row["supp_ert_str"]) if int(row["supp_ert_str_explicitly_set"]) else None
        ),
        **values,
    )


def interval_to_row(interval: TimeInterval) -> dict[str, int]:
    start_sec, start_nanos = split_epoch_seconds(interval.start)
    stop_sec, stop_nanos = split_epoch_seconds(interval.stop)
    return {
        "start_sec": start_sec,
        "start_nano_of_sec": start_nanos,
        "stop_sec": stop_sec,
        "stop_nano_of_sec": stop_nanos,
    }


def row_to_interval(row: Mapping[str, Any]) -> TimeInterval:
    return TimeInterval(
        join_epoch_seconds(row["start_sec"], row["start_nano_of_sec"]),
        join_epoch_seconds(row["stop_sec"], row["stop_nano_of_sec"]),
    )


__all__ = [
    "COVERAGE_COLUMNS",
    "FRAME_SAMPLE_COLUMNS",
    "frame_sample_to_row",
    "interval_to_row",
    "row_to_frame_sample",
    "row_to_interval",
]
