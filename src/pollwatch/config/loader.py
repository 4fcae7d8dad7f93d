"""Read-only configuration loading.

Layers, lowest priority first:
1. User file: $XDG_CONFIG_HOME/pollwatch/config.yaml, falling back to
   ~/.config/pollwatch/config.yaml (%APPDATA%\\pollwatch\\config.yaml on Windows)
2. Project file: <project_root>/.pollwatch/config.yaml
3. POLLWATCH_* environment variables

Mappings from a higher layer merge into the lower one key by key; lists and
scalars replace. A null value never overrides, so a project file can leave a
user setting alone by writing ``key:`` with nothing after it.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml

from pollwatch.config.schema import Config, LoggingConfig, WatchConfig
from pollwatch.logging import get_logger

_log = get_logger("config")

APP_NAME = "pollwatch"
PROJECT_DIR = ".pollwatch"
CONFIG_FILENAME = "config.yaml"


def user_config_path() -> Path | None:
    """Location of the per-user config file, or None if it cannot be determined."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        return Path(app_data) / APP_NAME / CONFIG_FILENAME if app_data else None

    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / APP_NAME / CONFIG_FILENAME


def config_paths(project_root: str | Path | None = None) -> list[Path]:
    """Config files to read, lowest priority first. None of them need exist."""
    paths: list[Path] = []
    user_path = user_config_path()
    if user_path is not None:
        paths.append(user_path)
    if project_root is not None:
        paths.append(Path(project_root) / PROJECT_DIR / CONFIG_FILENAME)
    return paths


def merge_layers(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge config layers; later layers win. Inputs are not modified."""
    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if value is None:
                continue
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = merge_layers(current, value)
            else:
                merged[key] = value
    return merged


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Read one config layer.

    A missing file is an empty layer. Unreadable files, invalid YAML and
    documents that are not a mapping are logged and also treated as empty.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        _log.warning("Cannot read %s: %s", path, e)
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        _log.warning("Ignoring %s: expected a mapping at the top level", path)
        return {}
    return data


def env_overrides() -> dict[str, Any]:
    """Config layer built from the environment.

    Recognized variables:
        POLLWATCH_LOG: log file path
        POLLWATCH_POLL_INTERVAL: poll interval in milliseconds
        POLLWATCH_EXTENSIONS: comma-separated bare extensions
    """
    watch: dict[str, Any] = {}
    log_section: dict[str, Any] = {}

    if log_path := os.environ.get("POLLWATCH_LOG"):
        log_section["file"] = log_path
    if interval := os.environ.get("POLLWATCH_POLL_INTERVAL"):
        watch["poll_interval"] = interval
    if extensions := os.environ.get("POLLWATCH_EXTENSIONS"):
        watch["extensions"] = [ext.strip() for ext in extensions.split(",") if ext.strip()]

    layer: dict[str, Any] = {}
    if log_section:
        layer["logging"] = log_section
    if watch:
        layer["watch"] = watch
    return layer


def _as_int(value: Any, key: str, default: int | None) -> int | None:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        _log.warning("Ignoring non-integer %s: %r", key, value)
        return default


def _as_str_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        _log.warning("Ignoring %s: expected a list, got %r", key, value)
        return []
    return [str(v) for v in value if v is not None]


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        _log.warning("Ignoring %s section: expected a mapping", name)
        return {}
    return section


def dict_to_config(data: dict[str, Any]) -> Config:
    """Build a typed Config from merged layers.

    Malformed values are logged and replaced by their defaults. Top-level
    keys other than ``watch`` and ``logging`` are kept in ``Config.extra``.
    """
    watch_data = _section(data, "watch")
    poll_interval = _as_int(watch_data.get("poll_interval"), "watch.poll_interval", 0) or 0
    if poll_interval < 0:
        _log.warning("Ignoring negative watch.poll_interval: %s", poll_interval)
        poll_interval = 0

    watch = WatchConfig(
        poll_interval=poll_interval,
        watch_items=_as_str_list(watch_data.get("watch_items"), "watch.watch_items"),
        ignore_items=_as_str_list(watch_data.get("ignore_items"), "watch.ignore_items"),
        extensions=_as_str_list(watch_data.get("extensions"), "watch.extensions"),
    )

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=_as_int(log_data.get("verbose"), "logging.verbose", None),
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in ("watch", "logging")}
    return Config(watch=watch, logging=logging_config, extra=extra)


def load_config(project_root: str | Path | None = None) -> Config:
    """Read every config layer and return the merged result.

    Args:
        project_root: Directory holding the project's .pollwatch/ folder.
            None skips the project layer.
    """
    layers: list[dict[str, Any]] = []
    for path in config_paths(project_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            layers.append(layer)
    layers.append(env_overrides())

    return dict_to_config(merge_layers(*layers))
