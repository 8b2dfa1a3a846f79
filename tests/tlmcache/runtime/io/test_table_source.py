from decimal import Decimal

import pytest

from tlmcache.runtime.io.table_source import CsvTelemetrySource
from tlmcache.runtime.sdk.exceptions import SourceConfigurationError
from tlmcache.runtime.sdk.frame_sample import UNSET_INT, ValidState
from tlmcache.runtime.sdk.time_codes import parse_utc

TABLE = """\
ert_str,sclk_coarse,sclk_fine,vcid,tk_valid,tk_data_rate_bps,extra
2024-001T00:00:03.000000250,103,0,6,true,2000000,a
2024-001T00:00:01,101,,6,,,b
2024-001T00:00:02,102,5,,INVALID,,c
,999,0,6,,,d
2024-002T00:00:00,200,0,6,,,e
"""


@pytest.fixture
def table(tmp_path):
    path = tmp_path / "raw_tlm_table.csv"
    path.write_text(TABLE)
    return path


def test_returns_sorted_samples_in_range(table) -> None:
    source = CsvTelemetrySource(table)
    source.connect()
    found = source.get_samples_in_range(
        parse_utc("2024-001T00:00:00"), parse_utc("2024-001T00:00:03.000000250")
    )
    assert [s.sclk_coarse for s in found] == [101, 102]

    found = source.get_samples_in_range(
        parse_utc("2024-001T00:00:00"), parse_utc("2024-002T00:00:00")
    )
    assert [s.sclk_coarse for s in found] == [101, 102, 103]


def test_parses_field_types_and_blank_defaults(table) -> None:
    source = CsvTelemetrySource(table)
    by_coarse = {
        s.sclk_coarse: s
        for s in source.get_samples_in_range(
            parse_utc("2024-001T00:00:00"), parse_utc("2024-003T00:00:00")
        )
    }
    assert by_coarse[101].sclk_fine == UNSET_INT
    assert by_coarse[102].vcid == UNSET_INT
    assert by_coarse[102].tk_valid is ValidState.INVALID
    assert by_coarse[103].tk_valid is ValidState.VALID
    assert by_coarse[103].tk_data_rate_bps == Decimal("2000000")
    assert 999 not in by_coarse
    assert source.name == "csv:raw_tlm_table.csv"


def test_disconnect_drops_table(table) -> None:
    source = CsvTelemetrySource(table)
    source.connect()
    source.disconnect()
    table.write_text("ert_str,sclk_coarse\n2024-001T00:00:01,7\n")
    found = source.get_samples_in_range(
        parse_utc("2024-001T00:00:00"), parse_utc("2024-002T00:00:00")
    )
    assert [s.sclk_coarse for s in found] == [7]


def test_missing_ert_column_rejected(tmp_path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("sclk_coarse\n1\n")
    with pytest.raises(SourceConfigurationError):
        CsvTelemetrySource(path).connect()


def test_missing_file_rejected(tmp_path) -> None:
    with pytest.raises(SourceConfigurationError):
        CsvTelemetrySource(tmp_path / "absent.csv").connect()
