"""Polling scanner: find the first file changed since a baseline.

The walk is a lazy pre-order generator of candidate files. The scanner takes
the first candidate newer than the baseline and closes the generator, so the
rest of the tree is never visited.

Filtering rules, applied to every visited entry:
1. Hidden entries (name starts with ".") are skipped; hidden directories are
   pruned with their whole subtree.
2. Entries whose exact path is in the ignore set are skipped/pruned the same
   way. Matching is exact, not by prefix.
3. Files whose extension is not allowed are skipped.

Symlinks are not followed.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Iterator
from operator import attrgetter

from pollwatch.errors import ScanError
from pollwatch.logging import TRACE, get_logger

log = get_logger("watching")


def is_hidden(path: str) -> bool:
    """Return True if the last path component starts with "."."""
    name = os.path.basename(os.path.normpath(path))
    return name.startswith(".") and name not in (".", "..")


def _allowed(path: str, extensions: frozenset[str]) -> bool:
    return os.path.splitext(path)[1] in extensions


def iter_candidates(
    root: str,
    ignore: frozenset[str],
    extensions: frozenset[str],
) -> Iterator[tuple[str, float]]:
    """Yield (path, mtime) for every eligible file under root, in pre-order.

    A root that is a plain file is itself the only candidate. A root that
    does not exist yields nothing; it is picked up once it appears.

    Raises:
        ScanError: On any other I/O failure. The generator is finished
            afterwards.
    """
    try:
        st = os.lstat(root)
    except FileNotFoundError:
        log.log(TRACE, "Root %s does not exist yet", root)
        return
    except OSError as e:
        raise ScanError(root, root, e) from e

    if is_hidden(root) or root in ignore:
        return

    if not stat.S_ISDIR(st.st_mode):
        if _allowed(root, extensions):
            yield root, st.st_mtime
        return

    yield from _walk_dir(root, root, ignore, extensions)


def _walk_dir(
    root: str,
    directory: str,
    ignore: frozenset[str],
    extensions: frozenset[str],
) -> Iterator[tuple[str, float]]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=attrgetter("name"))
    except OSError as e:
        raise ScanError(root, directory, e) from e

    for entry in entries:
        path = os.path.normpath(os.path.join(directory, entry.name))
        if is_hidden(entry.name) or path in ignore:
            continue

        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            raise ScanError(root, path, e) from e

        if is_dir:
            yield from _walk_dir(root, path, ignore, extensions)
            continue

        if not _allowed(path, extensions):
            continue

        try:
            mtime = entry.stat(follow_symlinks=False).st_mtime
        except OSError as e:
            raise ScanError(root, path, e) from e
        yield path, mtime


def scan_change(
    root: str,
    ignore: frozenset[str],
    extensions: frozenset[str],
    baseline: float,
) -> str | None:
    """Return the first file under root modified strictly after baseline.

    Args:
        root: Watch root (directory or file).
        ignore: Exact paths to skip.
        extensions: Allowed extensions, each with a leading ".".
        baseline: Epoch seconds; modifications at or before it are not new.

    Returns:
        Path of the first changed file in traversal order, or None.

    Raises:
        ScanError: If walking the tree fails.
    """
    log.log(TRACE, "Scanning %s", root)

    candidates = iter_candidates(root, ignore, extensions)
    try:
        for path, mtime in candidates:
            if mtime > baseline:
                return path
    finally:
        candidates.close()
    return None
