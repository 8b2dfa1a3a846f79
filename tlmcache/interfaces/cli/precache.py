from __future__ import annotations

import argparse
import logging
from typing import List

from tlmcache.runtime.sdk.caching_source import CachingTelemetrySource

from .common import add_common_arguments, build_source, configure_logging, resolve_config

logger = logging.getLogger(__name__)


def cmd_precache(argv: List[str]) -> int:
    """Warm the cache over an ERT range."""
    parser = argparse.ArgumentParser(
        prog="tlmcache precache",
        description="Fetch and cache all frame samples within an ERT range",
    )
    parser.add_argument("start", help="Range start (ISO UTC, inclusive)")
    parser.add_argument("stop", help="Range stop (ISO UTC, exclusive)")
    add_common_arguments(parser)
    args = parser.parse_args(argv)

    config = resolve_config(args)
    configure_logging(config)
    if not config.cache.enabled:
        logger.error("Telemetry cache is disabled; nothing to precache")
        return 2

    upstream = build_source(config)
    source = CachingTelemetrySource(upstream, config.cache.path)
    try:
        source.connect()
        try:
            samples = source.get_samples_in_range(args.start, args.stop)
        finally:
            source.disconnect()
        logger.info(
            "Precached %d frame sample(s) in [%s, %s) into %s",
            len(samples),
            args.start,
            args.stop,
            config.cache.path,
        )
    finally:
        source.close()
    return 0


__all__ = ["cmd_precache"]
