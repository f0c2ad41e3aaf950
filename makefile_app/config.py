"""
config.py

Responsibility: Build the immutable `Settings` the server runs with.

Sources are layered, later ones win:
1) Built-in defaults
2) Optional YAML config file (a top-level mapping)
3) Environment variables (`PORT`, `HOST`, `LOG_LEVEL`)
4) Explicit overrides (CLI flags)

The server never reads the environment itself; it only sees `Settings`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from makefile_app import __version__

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

_FILE_KEYS = frozenset({"host", "port", "version", "log_level", "access_log"})


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for one server instance.

    `port=0` asks the OS for an ephemeral port; it is only accepted when
    constructed directly, never from user-facing sources.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    version: str = __version__
    log_level: str = "INFO"
    access_log: bool = False

    def __post_init__(self) -> None:
        if not str(self.host).strip():
            raise ConfigError("host must be a non-empty string")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 <= self.port <= 65535:
            raise ConfigError(f"port must be an integer in 0..65535, got {self.port!r}")
        if not str(self.version).strip():
            raise ConfigError("version must be a non-empty string")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")


def parse_port(raw: str | int | None, *, default: int = DEFAULT_PORT, source: str = "port") -> int:
    """
    Parse a user-supplied port.

    - None or an empty/blank string falls back to `default`.
    - Otherwise the value must be an integer in 1..65535.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise ConfigError(f"{source}: expected a port number, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return default
        try:
            value = int(text, 10)
        except ValueError as e:
            raise ConfigError(f"{source}: not a valid port number: {raw!r}") from e
    if not 1 <= value <= 65535:
        raise ConfigError(f"{source}: port must be in 1..65535, got {value}")
    return value


def parse_log_level(raw: str | None, *, source: str = "log_level") -> str | None:
    if raw is None:
        return None
    level = str(raw).strip().upper()
    if not level:
        return None
    if level not in LOG_LEVELS:
        raise ConfigError(f"{source}: unknown log level {raw!r}")
    return level


def _parse_bool(raw: Any, *, source: str) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{source}: expected a boolean, got {raw!r}")


def load_config_file(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML config file and return its normalized values.

    Unknown keys are rejected so typos do not silently fall back to defaults.
    """
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"Config file does not exist: {p}")
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {p}: {e}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {p}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")

    unknown = sorted(str(k) for k in data if k not in _FILE_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys in {p}: {', '.join(unknown)}")

    out: dict[str, Any] = {}
    if data.get("host") is not None:
        out["host"] = str(data["host"]).strip()
    if "port" in data:
        out["port"] = parse_port(data["port"], source=f"{p}: port")
    if data.get("version") is not None:
        out["version"] = str(data["version"]).strip()
    level = parse_log_level(data.get("log_level"), source=f"{p}: log_level")
    if level is not None:
        out["log_level"] = level
    if data.get("access_log") is not None:
        out["access_log"] = _parse_bool(data["access_log"], source=f"{p}: access_log")
    return out


def _from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    # An empty PORT is treated as unset.
    if environ.get("PORT", "").strip():
        out["port"] = parse_port(environ["PORT"], source="PORT")
    host = environ.get("HOST", "").strip()
    if host:
        out["host"] = host
    level = parse_log_level(environ.get("LOG_LEVEL"), source="LOG_LEVEL")
    if level is not None:
        out["log_level"] = level
    return out


def load_settings(
    *,
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """
    Resolve `Settings` from all sources.

    `overrides` carries already-parsed CLI values; entries set to None are
    treated as "not given".
    """
    env = os.environ if environ is None else environ
    settings = Settings()

    if config_path is not None:
        settings = replace(settings, **load_config_file(config_path))
    settings = replace(settings, **_from_environ(env))

    if overrides:
        given = {k: v for k, v in overrides.items() if v is not None}
        if "port" in given:
            given["port"] = parse_port(given["port"], source="--port")
        if "log_level" in given:
            given["log_level"] = parse_log_level(given["log_level"], source="--log-level") or settings.log_level
        settings = replace(settings, **given)

    logging.getLogger(__name__).debug("Resolved settings: %s", settings)
    return settings
