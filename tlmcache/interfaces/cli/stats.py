from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

from tlmcache.runtime.sdk.cache_facade import TelemetryCache

from .common import OfflineSource, add_common_arguments, configure_logging, resolve_config

logger = logging.getLogger(__name__)


def cmd_stats(argv: List[str]) -> int:
    """Log statistics for an existing cache file."""
    parser = argparse.ArgumentParser(
        prog="tlmcache stats",
        description="Show telemetry cache statistics",
    )
    add_common_arguments(parser)
    args = parser.parse_args(argv)

    config = resolve_config(args)
    configure_logging(config)
    cache_path = Path(config.cache.path)
    if not cache_path.is_file():
        logger.error("Telemetry cache file %s does not exist", cache_path)
        return 1

    with TelemetryCache(OfflineSource(), cache_path) as cache:
        stats = cache.get_cache_statistics()
    logger.info("Telemetry cache statistics for %s:", cache_path)
    for key, value in stats.items():
        logger.info("%s: %s", key, value)
    return 0


__all__ = ["cmd_stats"]
