"""Resolve watch/ignore patterns into an overlap-free path set.

Patterns are either literal paths or glob patterns. Globs support ``**`` to
match across directory boundaries. Literal paths are kept verbatim (they may
name a directory, a file of any type, or a path that does not exist yet);
glob matches are kept only when their extension is allowed.

Paths are normalized with os.path.normpath so that the strings produced here
compare equal to the paths the scanner builds while walking.
"""

from __future__ import annotations

import glob
import os
from collections.abc import Iterable

from pollwatch.config.schema import DEFAULT_EXTENSIONS
from pollwatch.errors import PathResolutionError
from pollwatch.logging import get_logger

log = get_logger("watching")

GLOB_CHARS = frozenset("*?[")


def has_glob(pattern: str) -> bool:
    """Return True if the pattern contains a glob wildcard."""
    return any(c in GLOB_CHARS for c in pattern)


def normalize_extensions(extensions: Iterable[str] = ()) -> frozenset[str]:
    """Build an extension filter from bare extensions.

    "py", ".py" and " py " all become ".py". An empty input falls back to
    DEFAULT_EXTENSIONS.
    """
    cleaned = [ext.strip().lstrip(".") for ext in extensions]
    cleaned = [ext for ext in cleaned if ext]
    if not cleaned:
        cleaned = list(DEFAULT_EXTENSIONS)
    return frozenset("." + ext for ext in cleaned)


def check_pattern(pattern: str) -> None:
    """Validate bracket expressions in a glob pattern.

    The glob module silently treats an unterminated ``[`` as a literal
    character; a pattern like that is almost always a typo, so reject it.

    Raises:
        PathResolutionError: If a bracket expression is not terminated.
    """
    i, n = 0, len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        start = i
        i += 1
        if i < n and pattern[i] in "!^":
            i += 1
        # A ']' right after the opening bracket is a member, not the end
        if i < n and pattern[i] == "]":
            i += 1
        while i < n and pattern[i] != "]":
            if pattern[i] == os.sep:
                break
            i += 1
        if i >= n or pattern[i] != "]":
            raise PathResolutionError(
                pattern, f"unterminated bracket expression at offset {start}"
            )
        i += 1


def expand_pattern(pattern: str, extensions: frozenset[str]) -> list[str]:
    """Expand one pattern into candidate paths.

    Args:
        pattern: Literal path or glob pattern.
        extensions: Allowed extensions (with leading ".") for glob matches.

    Returns:
        Normalized candidate paths, sorted.

    Raises:
        PathResolutionError: If the glob pattern is malformed.
    """
    if not has_glob(pattern):
        return [os.path.normpath(pattern)]

    check_pattern(pattern)
    try:
        matches = glob.glob(pattern, recursive=True, include_hidden=True)
    except (ValueError, OSError) as e:
        raise PathResolutionError(pattern, str(e)) from e

    return sorted(
        os.path.normpath(match)
        for match in matches
        if os.path.splitext(match)[1] in extensions
    )


def _covers(ancestor: str, path: str) -> bool:
    if ancestor == os.curdir:
        # normpath strips the "./" prefix, so "." covers every relative path
        # that stays inside the working directory
        return not (
            os.path.isabs(path) or path == os.pardir or path.startswith(os.pardir + os.sep)
        )
    return path.startswith(ancestor)


def remove_overlaps(paths: Iterable[str]) -> frozenset[str]:
    """Drop every path that has another member of the set as a prefix.

    The shorter (ancestor) path wins since walking it already covers the
    descendant. Comparison is by string prefix, except that "." covers any
    relative path below the working directory.
    """
    candidates = frozenset(paths)
    covered = {
        p2
        for p1 in candidates
        for p2 in candidates
        if p1 != p2 and _covers(p1, p2)
    }
    return candidates - covered


def resolve_paths(patterns: Iterable[str], extensions: frozenset[str]) -> frozenset[str]:
    """Resolve patterns into an overlap-free path set.

    Args:
        patterns: Literal paths and/or glob patterns.
        extensions: Allowed extensions for glob matches.

    Returns:
        Set of paths where no member is a prefix of another.

    Raises:
        PathResolutionError: If any glob pattern is malformed. No partial
            result is returned.
    """
    candidates: set[str] = set()
    for pattern in patterns:
        matches = expand_pattern(pattern, extensions)
        if has_glob(pattern):
            log.debug("Glob %s matched %d path(s)", pattern, len(matches))
        candidates.update(matches)

    return remove_overlaps(candidates)
