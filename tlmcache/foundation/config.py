from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


_CACHE_ALIASES: dict[str, str] = {
    "filepath": "path",
    "file": "path",
}

_SOURCE_ALIASES: dict[str, str] = {
    "class": "plugin",
    "csv": "table",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class CacheConfig:
    """Telemetry cache file settings."""

    path: str = field(
        default="tlm-cache.sqlite", metadata={"env": "TLMCACHE_CACHE_PATH"}
    )
    enabled: bool = field(default=True, metadata={"env": "TLMCACHE_ENABLED"})


@dataclass
class SourceConfig:
    """Upstream telemetry source selection.

    ``plugin`` names a class as ``module:Class``; ``options`` are passed to its
    constructor as keyword arguments. ``table`` selects the built-in CSV source
    and is used only when ``plugin`` is unset.
    """

    plugin: str | None = field(default=None, metadata={"env": "TLMCACHE_SOURCE"})
    table: str | None = field(
        default=None, metadata={"env": "TLMCACHE_SOURCE_TABLE"}
    )
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    level: str = field(default="INFO", metadata={"env": "TLMCACHE_LOG_LEVEL"})


CONFIG_SECTION_NAMES: tuple[str, ...] = (
    "cache",
    "source",
    "logging",
)


@dataclass
class UnifiedConfig:
    """Configuration aggregating cache, source and logging settings."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    present_sections: FrozenSet[str] = field(default_factory=frozenset)


def find_config_file(cwd: Path | None = None) -> str | None:
    """Return the first discoverable configuration file in ``cwd``."""

    base = Path.cwd() if cwd is None else cwd

    for name in ("tlmcache.yml", "tlmcache.yaml"):
        candidate = base / name
        if candidate.is_file():
            return str(candidate)
    return None


def _read_config_mapping(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            try:
                data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                logger.error("Failed to parse configuration file %s: %s", path, exc)
                raise ValueError(f"Failed to parse configuration file {path}") from exc
    except (FileNotFoundError, OSError) as exc:
        logger.error("Unable to open configuration file %s: %s", path, exc)
        raise

    if not isinstance(data, dict):
        raise TypeError("Unified config must be a mapping")
    return data


def _extract_sections(
    data: Mapping[str, Any],
) -> tuple[dict[str, dict[str, Any]], FrozenSet[str]]:
    present_sections: FrozenSet[str] = frozenset(
        section
        for section in CONFIG_SECTION_NAMES
        if section in data and isinstance(data.get(section), dict)
    )
    sections: dict[str, dict[str, Any]] = {}
    for section_name in CONFIG_SECTION_NAMES:
        raw_section = data.get(section_name, {})
        if raw_section is None:
            raw_section = {}
        if not isinstance(raw_section, dict):
            raise TypeError(f"{section_name} section must be a mapping")
        sections[section_name] = dict(raw_section)
    return sections, present_sections


def _apply_aliases(
    section: Mapping[str, Any], aliases: Mapping[str, str], *, logger_prefix: str
) -> dict[str, Any]:
    normalized = dict(section)
    for alias, canonical in aliases.items():
        if canonical in normalized:
            continue
        if alias in normalized:
            logger.warning(
                "%s: key '%s' is deprecated; use '%s' instead",
                logger_prefix,
                alias,
                canonical,
            )
            normalized[canonical] = normalized.pop(alias)
    return normalized


def _coerce_env_value(raw: str, current: object, *, name: str) -> object:
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"{name} must be a boolean, got {raw!r}")
    if isinstance(current, int):
        return int(raw)
    return raw


def apply_env_overrides(
    config: UnifiedConfig, environ: Mapping[str, str] | None = None
) -> UnifiedConfig:
    """Overwrite fields whose ``env`` metadata names a variable set in ``environ``.

    ``environ`` defaults to :data:`os.environ`. Empty values are ignored.
    """

    env = os.environ if environ is None else environ
    for section_name in CONFIG_SECTION_NAMES:
        section = getattr(config, section_name)
        for section_field in fields(section):
            var = section_field.metadata.get("env")
            if not var:
                continue
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            value = _coerce_env_value(
                raw, getattr(section, section_field.name), name=var
            )
            setattr(section, section_field.name, value)
            logger.debug("%s.%s overridden by %s", section_name, section_field.name, var)
    return config


def load_config(path: str) -> UnifiedConfig:
    """Parse YAML and populate :class:`UnifiedConfig`."""
    data = _read_config_mapping(path)
    sections, present_sections = _extract_sections(data)

    cache_data = _apply_aliases(sections["cache"], _CACHE_ALIASES, logger_prefix="cache")
    source_data = _apply_aliases(
        sections["source"], _SOURCE_ALIASES, logger_prefix="source"
    )
    logging_data = sections["logging"]

    options = source_data.get("options")
    if options is None:
        source_data.pop("options", None)
    elif not isinstance(options, dict):
        raise TypeError("source.options must be a mapping")

    return UnifiedConfig(
        cache=CacheConfig(**cache_data),
        source=SourceConfig(**source_data),
        logging=LoggingConfig(**logging_data),
        present_sections=present_sections,
    )


__all__ = [
    "CONFIG_SECTION_NAMES",
    "CacheConfig",
    "LoggingConfig",
    "SourceConfig",
    "UnifiedConfig",
    "apply_env_overrides",
    "find_config_file",
    "load_config",
]
