"""Exception types raised by pollwatch.

Two failure families exist:
- PathResolutionError: a watch or ignore pattern could not be parsed while
  building a Watcher. Raised from the constructor; no watcher is produced.
- ScanError: a directory walk failed while the loop was running. Delivered
  once on the watcher's error stream, after which the watcher is stopped.
"""

from __future__ import annotations

from dataclasses import dataclass


class PollwatchError(Exception):
    """Base class for all pollwatch errors."""

    pass


@dataclass
class PathResolutionError(PollwatchError):
    """Raised when a glob pattern is malformed."""

    pattern: str  # Pattern as provided by configuration
    reason: str  # Underlying parse failure

    def __str__(self) -> str:
        return f"couldn't resolve glob path \"{self.pattern}\": {self.reason}"


@dataclass
class ScanError(PollwatchError):
    """Raised when walking a watch root fails with an I/O error."""

    root: str  # Watch root being scanned
    path: str  # Entry that could not be read
    cause: OSError

    def __str__(self) -> str:
        detail = self.cause.strerror or str(self.cause)
        if self.path == self.root:
            return f"error scanning {self.root}: {detail}"
        return f"error scanning {self.root} at {self.path}: {detail}"


class WatcherStateError(PollwatchError):
    """Raised when watch() is called on a watcher that has already started."""

    pass


class ChannelClosed(PollwatchError):
    """Raised when sending to or receiving from a closed stream."""

    pass
