"""Read-only layered YAML configuration for pollwatch.

Layers, lowest priority first: the user file, the project's
``.pollwatch/config.yaml`` and ``POLLWATCH_*`` environment variables.

Example usage:
    from pollwatch.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.watch.watch_items)
"""

from pollwatch.config.loader import config_paths, load_config, user_config_path
from pollwatch.config.schema import (
    DEFAULT_EXTENSIONS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_WATCH_ITEMS,
    Config,
    LoggingConfig,
    WatchConfig,
)

__all__ = [
    "Config",
    "load_config",
    "WatchConfig",
    "LoggingConfig",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_WATCH_ITEMS",
    "config_paths",
    "user_config_path",
]
