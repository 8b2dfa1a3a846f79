from __future__ import annotations

"""SQLite-backed persistence for the telemetry cache.

One file holds three tables:

``frame_samples``
    One row per cached :class:`FrameSample`. ERT is indexed by its epoch
    millisecond and uniquely keyed on ``(ert_epoch_ms, ert_epoch_ns)`` so that
    sub-millisecond neighbours stay distinct while exact repeats are refused.
``covered_ranges``
    The current coverage snapshot, replaced wholesale on every write since
    merges can move interval boundaries anywhere in the set.
``cache_metadata``
    Key/value rows written once when the file is created.
"""

import logging
import platform
import sqlite3
from collections.abc import Iterable, Mapping
from pathlib import Path

import pandas as pd

from tlmcache._version import __version__
from tlmcache.runtime.sdk.exceptions import CacheStoreError, DuplicateSampleError
from tlmcache.runtime.sdk.frame_sample import FrameSample
from tlmcache.runtime.sdk.time_codes import epoch_ms, format_iso_doy
from tlmcache.runtime.sdk.time_interval import TimeInterval

from .records import (
    COVERAGE_COLUMNS,
    FRAME_SAMPLE_COLUMNS,
    frame_sample_to_row,
    interval_to_row,
    row_to_frame_sample,
    row_to_interval,
)

logger = logging.getLogger(__name__)

FRAME_SAMPLE_TABLE = "frame_samples"
COVERAGE_TABLE = "covered_ranges"
METADATA_TABLE = "cache_metadata"

_SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {FRAME_SAMPLE_TABLE} (
    ert_epoch_ms INTEGER NOT NULL,
    ert_epoch_ns INTEGER NOT NULL,
    sclk_coarse INTEGER NOT NULL,
    sclk_fine INTEGER NOT NULL,
    ert TEXT NOT NULL,
    ert_explicitly_set INTEGER NOT NULL,
    ert_str TEXT NOT NULL,
    ert_str_explicitly_set INTEGER NOT NULL,
    scet TEXT NOT NULL,
    path_id INTEGER NOT NULL,
    vcid INTEGER NOT NULL,
    vcfc INTEGER NOT NULL,
    mcfc INTEGER NOT NULL,
    tk_sclk_coarse INTEGER NOT NULL,
    tk_sclk_fine INTEGER NOT NULL,
    tk_vcid INTEGER NOT NULL,
    tk_vcfc INTEGER NOT NULL,
    tk_data_rate_bps TEXT NOT NULL,
    tk_rf_encoding TEXT NOT NULL,
    tk_is_valid TEXT NOT NULL,
    supp_vcid INTEGER NOT NULL,
    supp_vcfc INTEGER NOT NULL,
    supp_mcfc INTEGER NOT NULL,
    supp_ert TEXT NOT NULL,
    supp_ert_explicitly_set INTEGER NOT NULL,
    supp_ert_str TEXT NOT NULL,
    supp_ert_str_explicitly_set INTEGER NOT NULL,
    frame_size_bits INTEGER NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_frame_samples_ert
    ON {FRAME_SAMPLE_TABLE} (ert_epoch_ms, ert_epoch_ns);
CREATE TABLE IF NOT EXISTS {COVERAGE_TABLE} (
    start_sec INTEGER NOT NULL,
    start_nano_of_sec INTEGER NOT NULL,
    stop_sec INTEGER NOT NULL,
    stop_nano_of_sec INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS {METADATA_TABLE} (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_INSERT_SAMPLE_SQL = (
    f"INSERT INTO {FRAME_SAMPLE_TABLE} ({', '.join(FRAME_SAMPLE_COLUMNS)}) "
    f"VALUES ({', '.join(':' + c for c in FRAME_SAMPLE_COLUMNS)})"
)
_INSERT_COVERAGE_SQL = (
    f"INSERT INTO {COVERAGE_TABLE} ({', '.join(COVERAGE_COLUMNS)}) "
    f"VALUES ({', '.join(':' + c for c in COVERAGE_COLUMNS)})"
)


def default_metadata() -> dict[str, str]:
    return {
        "TLMCACHE_VERSION": __version__,
        "TLMCACHE_VERSION_STRING": (
            f"tlmcache {__version__} (Python {platform.python_version()}, "
            f"SQLite {sqlite3.sqlite_version})"
        ),
        "CREATED_UTC": format_iso_doy(pd.Timestamp.now(tz="UTC"), 3),
    }


class SqliteSampleStore:
    """Durable storage for frame samples, coverage and metadata.

    Parameters
    ----------
    path : str or Path
        Cache file location. Parent directories are created as needed; the
        file itself is created by SQLite on first open.
    metadata : mapping, optional
        Rows written to ``cache_metadata`` when the schema is created.
        Defaults to :func:`default_metadata`.

    The connection is shared across threads; callers serialize access (the
    :class:`~tlmcache.runtime.sdk.cache_facade.TelemetryCache` lock does).
    """

    def __init__(
        self,
        path: str | Path,
        *,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        self.path = Path(path)
        self._metadata = dict(metadata) if metadata is not None else None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.is_new = not self.path.exists()
            self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
        except (OSError, sqlite3.Error) as exc:
            raise CacheStoreError(
                f"Unable to open telemetry cache file {self.path}: {exc}"
            ) from exc
        self._schema_created = False

    # =========================================================================
    # Schema Management
    # =========================================================================

    def create_schema_if_absent(self) -> bool:
        """Create tables and write metadata if the file was new when opened.

        Returns ``True`` only on the call that actually created the schema.
        """

        if not self.is_new or self._schema_created:
            return False
        metadata = self._metadata if self._metadata is not None else default_metadata()
        try:
            self._conn.executescript(_SCHEMA_SQL)
            with self._conn:
                self._conn.executemany(
                    f"INSERT INTO {METADATA_TABLE} (key, value) VALUES (?, ?)",
                    sorted(metadata.items()),
                )
        except sqlite3.Error as exc:
            raise CacheStoreError(
                f"Unable to create telemetry cache schema in {self.path}: {exc}"
            ) from exc
        self._schema_created = True
        logger.info("Created telemetry cache file %s", self.path)
        return True

    # =========================================================================
    # Frame samples
    # =========================================================================

    def write_samples(self, samples: Iterable[FrameSample]) -> int:
        """Insert ``samples`` in a single transaction.

        Raises
        ------
        DuplicateSampleError
            If any sample's ERT matches a stored row (or another sample in the
            batch). Nothing from the batch is kept.
        TimeParseError
            If a sample's ERT is missing or malformed.
        """

        rows = [frame_sample_to_row(sample) for sample in samples]
        if not rows:
            return 0
        try:
            with self._conn:
                self._conn.executemany(_INSERT_SAMPLE_SQL, rows)
        except sqlite3.IntegrityError as exc:
            raise DuplicateSampleError(
                f"Frame sample ERT already present in telemetry cache {self.path}: {exc}"
            ) from exc
        return len(rows)

    def read_samples(self, interval: TimeInterval) -> list[FrameSample]:
        """Return samples with ``interval.start <= ERT < interval.stop``.

        The millisecond index is searched through ``stop_ms + 1`` and the rows
        are then filtered on their full-precision ERT, since stored ERTs may
        carry more precision than the index.
        """

        frame = pd.read_sql_query(
            f"SELECT {', '.join(FRAME_SAMPLE_COLUMNS)} FROM {FRAME_SAMPLE_TABLE} "
            "WHERE ert_epoch_ms BETWEEN ? AND ? "
            "ORDER BY ert_epoch_ms ASC, ert_epoch_ns ASC",
            self._conn,
            params=(epoch_ms(interval.start), epoch_ms(interval.stop) + 1),
        )
        samples: list[FrameSample] = []
        for record in frame.to_dict("records"):
            sample = row_to_frame_sample(record)
            if interval.start <= sample.ert_time < interval.stop:
                samples.append(sample)
        return samples

    def count(self) -> int:
        (total,) = self._conn.execute(
            f"SELECT count(1) FROM {FRAME_SAMPLE_TABLE}"
        ).fetchone()
        return int(total)

    # =========================================================================
    # Coverage
    # =========================================================================

    def read_coverage(self) -> list[TimeInterval]:
        cursor = self._conn.execute(
            f"SELECT {', '.join(COVERAGE_COLUMNS)} FROM {COVERAGE_TABLE} "
            "ORDER BY start_sec, start_nano_of_sec"
        )
        return [row_to_interval(dict(zip(COVERAGE_COLUMNS, row))) for row in cursor]

    def write_coverage(self, intervals: Iterable[TimeInterval]) -> None:
        """Replace the whole coverage table with ``intervals``."""

        rows = [interval_to_row(interval) for interval in intervals]
        with self._conn:
            self._conn.execute(f"DELETE FROM {COVERAGE_TABLE}")
            self._conn.executemany(_INSERT_COVERAGE_SQL, rows)

    # =========================================================================
    # Metadata / housekeeping
    # =========================================================================

    def read_metadata(self) -> dict[str, str]:
        cursor = self._conn.execute(f"SELECT key, value FROM {METADATA_TABLE}")
        return {str(key): str(value) for key, value in cursor}

    def file_size_bytes(self) -> int:
        return self.path.stat().st_size

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SqliteSampleStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["SqliteSampleStore", "default_metadata"]
