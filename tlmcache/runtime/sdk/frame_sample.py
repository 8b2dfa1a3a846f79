from __future__ import annotations

"""Timekeeping-relevant fields extracted from one downlinked frame."""

import dataclasses
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

import pandas as pd

from .exceptions import TimeParseError
from .time_codes import CdsTimeCode, epoch_ms, format_iso_doy, parse_utc

UNSET_INT = -1
UNSET_STR = "-"
UNSET_DATA_RATE = Decimal("-1.0")

_TRUE_FLAGS = frozenset({"TRUE", "1"})
_FALSE_FLAGS = frozenset({"FALSE", "0"})


class ValidState(Enum):
    """Validity of the tk fields; UNSET means not yet known, not invalid."""

    VALID = "VALID"
    INVALID = "INVALID"
    UNSET = "UNSET"

    @classmethod
    def from_flag(cls, flag: "ValidState | bool | str | None") -> "ValidState":
        """Map a stored or parsed validity flag onto the three states.

        Strings match a state name; ``true``/``false`` and ``1``/``0`` are
        also accepted for VALID and INVALID.
        """
        if isinstance(flag, cls):
            return flag
        if flag is None:
            return cls.UNSET
        if isinstance(flag, bool):
            return cls.VALID if flag else cls.INVALID
        if isinstance(flag, str):
            normalized = flag.strip().upper()
            if normalized in _TRUE_FLAGS:
                return cls.VALID
            if normalized in _FALSE_FLAGS:
                return cls.INVALID
            try:
                return cls(normalized)
            except ValueError as exc:
                raise ValueError(f"invalid tk valid flag: {flag!r}") from exc
        raise ValueError(f"invalid tk valid flag: {flag!r}")


def _coerce_data_rate(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None or value == UNSET_STR:
        return UNSET_DATA_RATE
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"invalid tk data rate: {value!r}") from exc


@dataclass(frozen=True)
class FrameSample:
    """One frame's SCLK/ERT/SCET values plus tk and supplemental fields.

    ERT is held either as a CDS time code (``ert``) or as a raw UTC string
    (``ert_str``) that may carry sub-millisecond precision; exactly one of the
    two may be set. The same applies to ``supp_ert``/``supp_ert_str``. Tk
    fields come from the subsequent frame that carried the timekeeping packet.
    """

    sclk_coarse: int = UNSET_INT
    sclk_fine: int = UNSET_INT
    ert: CdsTimeCode | str | None = None
    ert_str: str | None = None
    scet: str = UNSET_STR
    path_id: int = UNSET_INT
    vcid: int = UNSET_INT
    vcfc: int = UNSET_INT
    mcfc: int = UNSET_INT
    tk_sclk_coarse: int = UNSET_INT
    tk_sclk_fine: int = UNSET_INT
    tk_vcid: int = UNSET_INT
    tk_vcfc: int = UNSET_INT
    tk_data_rate_bps: Decimal | str | float | None = UNSET_DATA_RATE
    tk_rf_encoding: str = UNSET_STR
    tk_valid: ValidState | bool | str | None = ValidState.UNSET
    supp_vcid: int = UNSET_INT
    supp_vcfc: int = UNSET_INT
    supp_mcfc: int = UNSET_INT
    supp_ert: CdsTimeCode | str | None = None
    supp_ert_str: str | None = None
    frame_size_bits: int = UNSET_INT

    def __post_init__(self) -> None:
        if self.ert is not None and self.ert_str is not None:
            raise ValueError("ert and ert_str are mutually exclusive")
        if self.supp_ert is not None and self.supp_ert_str is not None:
            raise ValueError("supp_ert and supp_ert_str are mutually exclusive")
        if isinstance(self.ert, str):
            object.__setattr__(self, "ert", CdsTimeCode.parse(self.ert))
        if isinstance(self.supp_ert, str):
            object.__setattr__(self, "supp_ert", CdsTimeCode.parse(self.supp_ert))
        object.__setattr__(
            self, "tk_data_rate_bps", _coerce_data_rate(self.tk_data_rate_bps)
        )
        object.__setattr__(self, "tk_valid", ValidState.from_flag(self.tk_valid))

    # ------------------------------------------------------------------
    @property
    def ert_explicitly_set(self) -> bool:
        return self.ert is not None

    @property
    def ert_str_explicitly_set(self) -> bool:
        return self.ert_str is not None

    @property
    def supp_ert_explicitly_set(self) -> bool:
        return self.supp_ert is not None

    @property
    def supp_ert_str_explicitly_set(self) -> bool:
        return self.supp_ert_str is not None

    @property
    def has_ert(self) -> bool:
        return self.ert is not None or self.ert_str is not None

    @property
    def ert_time(self) -> pd.Timestamp:
        """Full-precision ERT; raises :class:`TimeParseError` on bad input."""
        if self.ert is not None:
            return self.ert.to_timestamp()
        if self.ert_str is not None:
            return parse_utc(self.ert_str)
        raise TimeParseError("frame sample has no ERT")

    @property
    def ert_epoch_ms(self) -> int:
        return epoch_ms(self.ert_time)

    @property
    def ert_iso(self) -> str:
        if self.ert_str is not None:
            return self.ert_str
        return format_iso_doy(self.ert_time)

    @property
    def is_tk_vcid_set(self) -> bool:
        return self.tk_vcid != UNSET_INT

    @property
    def is_tk_data_rate_set(self) -> bool:
        return self.tk_data_rate_bps != UNSET_DATA_RATE

    def tk_sclk_composite(self, sclk_modulus: int) -> float:
        return self.tk_sclk_coarse + self.tk_sclk_fine / sclk_modulus

    def with_tk_valid(self, valid: bool) -> "FrameSample":
        return dataclasses.replace(self, tk_valid=ValidState.from_flag(valid))


__all__ = [
    "FrameSample",
    "ValidState",
    "UNSET_DATA_RATE",
    "UNSET_INT",
    "UNSET_STR",
]
