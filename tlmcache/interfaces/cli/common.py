from __future__ import annotations

import argparse
import logging
from importlib import import_module
from pathlib import Path
from typing import Any

import pandas as pd

from tlmcache.foundation.config import (
    UnifiedConfig,
    apply_env_overrides,
    find_config_file,
    load_config,
)
from tlmcache.runtime.io.table_source import CsvTelemetrySource
from tlmcache.runtime.sdk.exceptions import SourceConfigurationError
from tlmcache.runtime.sdk.frame_sample import FrameSample

logger = logging.getLogger(__name__)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Path to tlmcache.yml")
    parser.add_argument("--cache-path", default=None, help="Telemetry cache file")
    parser.add_argument(
        "--source",
        default=None,
        help="Upstream telemetry source class as module:Class",
    )
    parser.add_argument(
        "--table", default=None, help="Raw telemetry table CSV used as the source"
    )
    parser.add_argument("--log-level", default=None, help="Logging level (e.g. DEBUG)")


def resolve_config(args: argparse.Namespace) -> UnifiedConfig:
    """Load file config, then environment, then command-line overrides."""

    path = args.config or find_config_file()
    config = load_config(path) if path else UnifiedConfig()
    apply_env_overrides(config)
    if args.cache_path:
        config.cache.path = args.cache_path
    if args.source:
        config.source.plugin = args.source
    if args.table:
        config.source.table = args.table
    if args.log_level:
        config.logging.level = args.log_level
    return config


def configure_logging(config: UnifiedConfig) -> None:
    level = logging.getLevelName(config.logging.level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level)
    logging.getLogger().setLevel(level)


def load_source_class(target: str) -> type:
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise SourceConfigurationError(
            f"Telemetry source must be given as module:Class, got {target!r}"
        )
    try:
        module = import_module(module_name)
    except ImportError as exc:
        raise SourceConfigurationError(
            f"Unable to import telemetry source module {module_name!r}: {exc}"
        ) from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise SourceConfigurationError(
            f"Module {module_name!r} has no telemetry source {attr!r}"
        ) from exc


def build_source(config: UnifiedConfig) -> Any:
    """Instantiate the upstream source named by ``config.source``."""

    if config.source.plugin:
        source_cls = load_source_class(config.source.plugin)
        try:
            return source_cls(**config.source.options)
        except TypeError as exc:
            raise SourceConfigurationError(
                f"Unable to construct telemetry source {config.source.plugin}: {exc}"
            ) from exc
    if config.source.table:
        return CsvTelemetrySource(Path(config.source.table))
    raise SourceConfigurationError(
        "No telemetry source configured; use --source or --table"
    )


class OfflineSource:
    """Stand-in upstream for commands that must never fetch."""

    name = "offline"

    def get_samples_in_range(
        self, start: pd.Timestamp, stop: pd.Timestamp
    ) -> list[FrameSample]:
        raise SourceConfigurationError(
            "No telemetry source available for uncovered ERT range"
        )


__all__ = [
    "OfflineSource",
    "add_common_arguments",
    "build_source",
    "configure_logging",
    "load_source_class",
    "resolve_config",
]
