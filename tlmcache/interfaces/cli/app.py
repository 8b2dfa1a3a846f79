"""tlmcache command-line interface.

Commands:
  precache  Fetch and cache all frame samples within an ERT range
  stats     Show telemetry cache statistics
  version   Show version information
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from importlib.metadata import PackageNotFoundError, version as pkg_version
from typing import Callable, List

from tlmcache._version import __version__
from tlmcache.runtime.sdk.exceptions import TelemetryCacheError

from .precache import cmd_precache
from .stats import cmd_stats

logger = logging.getLogger(__name__)

CommandHandler = Callable[[List[str]], int]


def cmd_version(argv: List[str]) -> int:
    """Show version information."""
    print(f"tlmcache version {_resolve_version()}")
    return 0


def _resolve_version() -> str:
    try:
        return pkg_version("tlmcache")
    except PackageNotFoundError:
        return __version__


COMMANDS: dict[str, CommandHandler] = {
    "precache": cmd_precache,
    "stats": cmd_stats,
    "version": cmd_version,
}


def _build_top_help_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tlmcache",
        description="Telemetry range cache command line interface",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.description = textwrap.dedent("""
        Available commands:
          precache  Fetch and cache all frame samples within an ERT range
          stats     Show telemetry cache statistics
          version   Show version information
    """)
    parser.add_argument("command", nargs="?", help="Command to run")
    return parser


def main(argv: List[str] | None = None) -> int:
    """Main CLI entry point."""
    argv = list(argv) if argv is not None else sys.argv[1:]

    if not argv or argv[0] in {"-h", "--help"}:
        _build_top_help_parser().print_help()
        return 0

    cmd, rest = argv[0], argv[1:]
    handler = COMMANDS.get(cmd)
    if handler is None:
        print(f"Error: unknown command '{cmd}'", file=sys.stderr)
        _build_top_help_parser().print_help(sys.stderr)
        return 2
    return _dispatch_command(handler, rest)


def _dispatch_command(handler: CommandHandler, rest: List[str]) -> int:
    try:
        return int(handler(rest) or 0)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except TelemetryCacheError as exc:
        logger.error("%s", exc)
        return 1
    except Exception as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


__all__ = ["COMMANDS", "cmd_version", "main"]
