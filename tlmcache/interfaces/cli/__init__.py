"""Top level command line interface for tlmcache.

Primary commands:
  precache  Warm the telemetry cache over an ERT range
  stats     Report cache contents and size
"""

from __future__ import annotations

from tlmcache.interfaces.cli.app import COMMANDS, main

__all__ = ["COMMANDS", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
