"""
Configuration loading helpers for the ``dotenv-resolve`` command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml


class ConfigError(RuntimeError):
    """Raised when the user provided configuration is invalid."""


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class SourceConfig:
    """A dotenv file to load and how to load it."""

    path: str
    overwrite: bool = False
    interpolate: bool = True
    required: bool = False


@dataclass
class LoaderConfig:
    """Top-level configuration object used by the CLI."""

    sources: List[SourceConfig] = field(default_factory=list)
    strict: bool = False
    log_level: str = "WARNING"


def _require(dictionary: Dict[str, Any], key: str) -> Any:
    if key not in dictionary:
        raise ConfigError(f"Missing required configuration key: {key}")
    return dictionary[key]


def _as_bool(entry: Dict[str, Any], key: str, default: bool) -> bool:
    value = entry.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Configuration key '{key}' must be true or false, got: {value!r}")
    return value


def _load_sources(raw_sources: Any) -> List[SourceConfig]:
    if not isinstance(raw_sources, list):
        raise ConfigError("'sources' must be a list")
    sources = []
    for entry in raw_sources:
        if isinstance(entry, str):
            entry = {"path": entry}
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid source configuration: {entry}")
        sources.append(
            SourceConfig(
                path=str(_require(entry, "path")),
                overwrite=_as_bool(entry, "overwrite", False),
                interpolate=_as_bool(entry, "interpolate", True),
                required=_as_bool(entry, "required", False),
            )
        )
    return sources


def load_config(path: str | Path) -> LoaderConfig:
    """Load LoaderConfig from a YAML file."""

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    log_level = str(raw.get("log_level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"Unsupported log_level: {raw.get('log_level')}")

    return LoaderConfig(
        sources=_load_sources(_require(raw, "sources")),
        strict=_as_bool(raw, "strict", False),
        log_level=log_level,
    )


__all__ = [
    "ConfigError",
    "LoaderConfig",
    "SourceConfig",
    "load_config",
]
