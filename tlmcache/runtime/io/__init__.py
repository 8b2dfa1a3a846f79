"""Persistence and upstream source implementations."""

from tlmcache.runtime.sdk.data_io import SampleStore, TelemetrySource
from .sqlite_store import SqliteSampleStore, default_metadata
from .table_source import CsvTelemetrySource

__all__ = [
    "CsvTelemetrySource",
    "SampleStore",
    "SqliteSampleStore",
    "TelemetrySource",
    "default_metadata",
]
