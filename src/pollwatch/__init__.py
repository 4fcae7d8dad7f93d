"""pollwatch: polling file-change detection for rebuild-on-save tooling."""

__version__ = "0.1.0"

# Public API
from pollwatch.config import Config, LoggingConfig, WatchConfig, load_config
from pollwatch.errors import (
    ChannelClosed,
    PathResolutionError,
    PollwatchError,
    ScanError,
    WatcherStateError,
)
from pollwatch.watching import Rendezvous, Watcher, WatchState

__all__ = [
    # Main entry point
    "Watcher",
    "WatchState",
    "Rendezvous",
    # Config
    "Config",
    "LoggingConfig",
    "WatchConfig",
    "load_config",
    # Errors
    "PollwatchError",
    "PathResolutionError",
    "ScanError",
    "WatcherStateError",
    "ChannelClosed",
]
