"""Logging for pollwatch.

Library modules only ask for loggers with get_logger(). The command-line
front end calls setup_logging() once, which installs a single handler on the
"pollwatch" logger: a log file when LoggingConfig.file or POLLWATCH_LOG names
one, stderr otherwise. Records look like:

    14:02:11 info: Change detected: src/app.py
"""

from __future__ import annotations

import copy
import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pollwatch.config.schema import LoggingConfig

# Custom log levels
TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("pollwatch")

# Indexed by LoggingConfig.verbose; larger values clamp to TRACE
VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_handler: logging.Handler | None = None


class _LowercaseLevelFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers (pytest's caplog among them) share the record
        record = copy.copy(record)
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick the effective log level from a LoggingConfig.

    verbose (0-4) takes precedence over level. Level names are matched
    case-insensitively against every registered level, TRACE and VERBOSE
    included; unknown names mean INFO.
    """
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(VERBOSITY_LEVELS) - 1)
        return VERBOSITY_LEVELS[index]
    if config.level:
        return logging.getLevelNamesMapping().get(config.level.upper(), logging.INFO)
    return logging.INFO


def _open_handler(log_path: str | None) -> logging.Handler:
    if log_path:
        try:
            return logging.FileHandler(os.path.expanduser(log_path), encoding="utf-8")
        except OSError as e:
            # No handler exists yet to report this through
            print(f"[pollwatch] Cannot open log file {log_path}: {e}", file=sys.stderr)
    return logging.StreamHandler(sys.stderr)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install the pollwatch log handler. Later calls are no-ops.

    Args:
        config: Level, verbosity and log file settings. None means INFO to
            stderr, or to POLLWATCH_LOG when it is set.
    """
    global _handler
    if _handler is not None:
        return

    log_path = (config.file if config else None) or os.environ.get("POLLWATCH_LOG")
    _handler = _open_handler(log_path)
    _handler.setFormatter(_LowercaseLevelFormatter())
    logger.addHandler(_handler)
    logger.setLevel(resolve_level(config))


def reset_logging() -> None:
    """Remove the installed handler so setup_logging() can run again."""
    global _handler
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler.close()
        _handler = None
    logger.setLevel(logging.NOTSET)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the pollwatch logger, or its child ``pollwatch.<name>``."""
    if name:
        return logger.getChild(name)
    return logger
