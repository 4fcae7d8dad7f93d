"""Shared test helpers."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable
from pathlib import Path

# Fixed baseline for tests; files written "before" and "after" it get
# explicit mtimes so results never depend on the wall clock.
BASELINE = 1_000_000.0
OLD = BASELINE - 100
NEW = BASELINE + 100


def touch(path: Path, mtime: float = NEW, content: str = "") -> Path:
    """Create a file (and its parents) with a given modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll predicate until it is true or fail after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)
