"""Configuration: an INI file named by PATCHWORK_CONFIG, flattened to section:key."""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

PLUGIN_NAME = "patchwork"

DEFAULT_THRESHOLD = 40
DEFAULT_FETCH_LIMIT = 2 * 1024
SAMEAS_CONTEXTS = ("concrete", "source")


def _get_int(config: Mapping[str, str], key: str, default: int) -> int:
    raw = (config.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(config: Mapping[str, str], key: str, default: bool = False) -> bool:
    raw = (config.get(key) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _get_str(config: Mapping[str, str], key: str) -> str | None:
    value = config.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    root: str
    cache: str | None = None
    bucket: str | None = None
    db: str | None = None
    sparql: str | None = None
    score: int = DEFAULT_THRESHOLD
    s3_endpoint: str | None = None
    s3_access: str | None = None
    s3_secret: str | None = None
    s3_fetch_limit: int = DEFAULT_FETCH_LIMIT
    s3_verbose: bool = False
    sameas_context: str = "concrete"
    limit: int = 25
    max_limit: int = 100
    log_level: str = "WARNING"
    values: Mapping[str, str] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_mapping(cls, config: Mapping[str, str]) -> Settings:
        root = _get_str(config, f"{PLUGIN_NAME}:root") or os.getenv("PUBLIC_BASE", "http://localhost")
        sameas_context = (_get_str(config, f"{PLUGIN_NAME}:sameas-context") or "concrete").lower()
        if sameas_context not in SAMEAS_CONTEXTS:
            sameas_context = "concrete"
        return cls(
            root=root.rstrip("/"),
            cache=_get_str(config, f"{PLUGIN_NAME}:cache"),
            bucket=_get_str(config, f"{PLUGIN_NAME}:bucket"),
            db=_get_str(config, f"{PLUGIN_NAME}:db"),
            sparql=_get_str(config, "sparql:query"),
            score=_get_int(config, f"{PLUGIN_NAME}:score", DEFAULT_THRESHOLD),
            s3_endpoint=_get_str(config, "s3:endpoint"),
            s3_access=_get_str(config, "s3:access"),
            s3_secret=_get_str(config, "s3:secret"),
            s3_fetch_limit=_get_int(config, "s3:fetch_limit", DEFAULT_FETCH_LIMIT),
            s3_verbose=_get_bool(config, "s3:verbose"),
            sameas_context=sameas_context,
            limit=_get_int(config, f"{PLUGIN_NAME}:limit", 25),
            max_limit=_get_int(config, f"{PLUGIN_NAME}:max-limit", 100),
            log_level=(
                _get_str(config, "log:level") or os.getenv("PATCHWORK_LOG_LEVEL", "WARNING")
            ).upper(),
            values=MappingProxyType(dict(config)),
        )


def read_config_file(path: Path | str) -> dict[str, str]:
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(path, encoding="utf-8")
    flat: dict[str, str] = {}
    for section in parser.sections():
        for key, value in parser.items(section):
            flat[f"{section}:{key}"] = value
    return flat


def load_settings(path: Path | str | None = None) -> Settings:
    if path is None:
        path = os.getenv("PATCHWORK_CONFIG")
    config = read_config_file(path) if path else {}
    return Settings.from_mapping(config)


class UnsupportedConfiguration(Exception):
    """The configuration names a backend that cannot be used; start-up is aborted."""
