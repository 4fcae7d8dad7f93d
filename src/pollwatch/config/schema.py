"""Configuration schema dataclasses for pollwatch.

All fields have defaults so partial configs merge together.

Example config.yaml:
    watch:
      poll_interval: 500
      watch_items:
        - "."
      ignore_items:
        - "./build"
        - "./**/*_test.py"
      extensions:
        - py
        - toml
    logging:
      verbose: 3
      file: ~/pollwatch.log
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Milliseconds between scan cycles when poll_interval is 0 or unset
DEFAULT_POLL_INTERVAL = 500

# Roots watched when no watch items are configured
DEFAULT_WATCH_ITEMS: tuple[str, ...] = (".",)

# File types considered when no extensions are configured
DEFAULT_EXTENSIONS: tuple[str, ...] = ("py",)


@dataclass
class WatchConfig:
    """What to watch and how often."""

    poll_interval: int = 0  # Milliseconds; 0 means DEFAULT_POLL_INTERVAL
    watch_items: list[str] = field(default_factory=list)  # Paths or glob patterns
    ignore_items: list[str] = field(default_factory=list)  # Paths or glob patterns
    extensions: list[str] = field(default_factory=list)  # Bare, e.g. "py"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections, kept for callers that embed pollwatch
    extra: dict[str, Any] = field(default_factory=dict)
