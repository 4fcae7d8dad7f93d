"""Polling-based change detection for pollwatch.

- resolver: turns watch/ignore patterns into overlap-free path sets
- scanner: walks one root and returns the first file newer than a baseline
- channel: rendezvous hand-off used for the event and error streams
- watcher: the loop tying them together
"""

from pollwatch.watching.channel import Rendezvous
from pollwatch.watching.resolver import (
    has_glob,
    normalize_extensions,
    remove_overlaps,
    resolve_paths,
)
from pollwatch.watching.scanner import iter_candidates, scan_change
from pollwatch.watching.watcher import Watcher, WatchState

__all__ = [
    "Rendezvous",
    "Watcher",
    "WatchState",
    "has_glob",
    "iter_candidates",
    "normalize_extensions",
    "remove_overlaps",
    "resolve_paths",
    "scan_change",
]
