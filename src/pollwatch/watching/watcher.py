"""Polling watch loop.

A Watcher repeatedly scans the roots of its resolved watch set. The first
file found newer than the watcher's baseline is handed to the consumer on
the ``events`` stream and the baseline advances to the current time. At most
one change is reported per cycle; the next cycle starts with the root after
the one that changed. A scan failure is handed over once on the ``errors``
stream and stops the watcher for good; a new Watcher has to be built to watch
again.

Both streams must be read. An unread error blocks the loop just like an
unread event, so consume ``errors`` in its own task:

    watcher = Watcher(watch_items=["src"], extensions=["py"])
    watch_task = asyncio.create_task(watcher.watch())

    async def report_error() -> None:
        try:
            error = await watcher.errors.receive()
        except ChannelClosed:
            return
        print(f"error: {error}")

    error_task = asyncio.create_task(report_error())
    async for path in watcher.events:  # ends when the watcher stops
        print(f"changed: {path}")
    await asyncio.gather(watch_task, error_task)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Iterable, Sequence
from enum import Enum
from typing import TypeVar

from pollwatch.config.schema import DEFAULT_POLL_INTERVAL, DEFAULT_WATCH_ITEMS, WatchConfig
from pollwatch.errors import ScanError, WatcherStateError
from pollwatch.logging import get_logger
from pollwatch.watching.channel import Rendezvous
from pollwatch.watching.resolver import normalize_extensions, resolve_paths
from pollwatch.watching.scanner import scan_change

log = get_logger("watching")

T = TypeVar("T")


class WatchState(Enum):
    """Lifecycle of a Watcher. STOPPED is terminal."""

    IDLE = "idle"
    SCANNING = "scanning"
    STOPPED = "stopped"


class Watcher:
    """Polls a set of roots for the first file changed since a baseline.

    Construction resolves all patterns up front and fails with
    PathResolutionError on a malformed glob, so a Watcher that exists is
    always ready to run.

    Both streams are rendezvous channels: the loop blocks until the consumer
    takes each event or error, which throttles polling to the consumer's pace.
    """

    def __init__(
        self,
        poll_interval: int = 0,
        watch_items: Sequence[str] = (),
        ignore_items: Sequence[str] = (),
        extensions: Iterable[str] = (),
        *,
        baseline: float | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            poll_interval: Milliseconds between scan cycles. 0 (or negative)
                selects DEFAULT_POLL_INTERVAL.
            watch_items: Paths or glob patterns to watch. Empty selects
                DEFAULT_WATCH_ITEMS.
            ignore_items: Paths or glob patterns to exclude.
            extensions: Bare file extensions to consider. Empty selects
                DEFAULT_EXTENSIONS.
            baseline: Epoch seconds; only modifications after it are reported.
                Defaults to the construction time.

        Raises:
            PathResolutionError: If any pattern is a malformed glob.
        """
        self._poll_interval = poll_interval if poll_interval > 0 else DEFAULT_POLL_INTERVAL
        self._extensions = normalize_extensions(extensions)
        self._watch_paths = resolve_paths(watch_items or DEFAULT_WATCH_ITEMS, self._extensions)
        self._ignore_paths = resolve_paths(ignore_items, self._extensions)

        log.debug("Resolved watch paths: %s", sorted(self._watch_paths))
        log.debug("Resolved ignore paths: %s", sorted(self._ignore_paths))

        self._baseline = time.time() if baseline is None else baseline
        self._events: Rendezvous[str] = Rendezvous("events")
        self._errors: Rendezvous[ScanError] = Rendezvous("errors")
        self._state = WatchState.IDLE
        self._stop_event = asyncio.Event()

    @classmethod
    def from_config(cls, config: WatchConfig, *, baseline: float | None = None) -> Watcher:
        """Build a Watcher from the watch section of the configuration."""
        return cls(
            poll_interval=config.poll_interval,
            watch_items=config.watch_items,
            ignore_items=config.ignore_items,
            extensions=config.extensions,
            baseline=baseline,
        )

    @property
    def events(self) -> Rendezvous[str]:
        """Stream of changed file paths, one per detected change."""
        return self._events

    @property
    def errors(self) -> Rendezvous[ScanError]:
        """Stream carrying at most one ScanError, after which the watcher stops."""
        return self._errors

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def baseline(self) -> float:
        """Current cutoff; modifications at or before it are not changes."""
        return self._baseline

    @property
    def poll_interval(self) -> int:
        """Milliseconds between scan cycles."""
        return self._poll_interval

    @property
    def watch_paths(self) -> frozenset[str]:
        return self._watch_paths

    @property
    def ignore_paths(self) -> frozenset[str]:
        return self._ignore_paths

    @property
    def extensions(self) -> frozenset[str]:
        return self._extensions

    def stop(self) -> None:
        """Ask the loop to stop.

        Interrupts a pending sleep or hand-off. Calling stop() before watch()
        stops the watcher immediately.
        """
        self._stop_event.set()
        if self._state is WatchState.IDLE:
            self._finish()

    async def watch(self, stop_event: asyncio.Event | None = None) -> None:
        """Run the scan loop until an error or a stop request.

        Args:
            stop_event: Optional external signal; setting it stops the loop
                just like stop().

        Raises:
            WatcherStateError: If the watcher has already been started or
                stopped.
        """
        if self._state is not WatchState.IDLE:
            raise WatcherStateError(f"watcher is {self._state.value}, cannot watch again")

        self._state = WatchState.SCANNING
        stops = [self._stop_event]
        if stop_event is not None:
            stops.append(stop_event)

        log.info(
            "Watching %d path(s) every %d ms", len(self._watch_paths), self._poll_interval
        )
        try:
            await self._run(stops)
        finally:
            self._finish()

    async def _run(self, stops: list[asyncio.Event]) -> None:
        roots = sorted(self._watch_paths)
        start = 0
        while not _any_set(stops):
            for offset in range(len(roots)):
                if _any_set(stops):
                    return
                index = (start + offset) % len(roots)
                root = roots[index]
                try:
                    changed = await asyncio.to_thread(
                        scan_change,
                        root,
                        self._ignore_paths,
                        self._extensions,
                        self._baseline,
                    )
                except ScanError as e:
                    log.error("Stopping after scan failure: %s", e)
                    if not await _until_stopped(self._errors.send(e), stops):
                        log.debug("Stopped before the scan error was delivered")
                    return

                if changed is None:
                    continue

                log.info("Change detected: %s", changed)
                if not await _until_stopped(self._events.send(changed), stops):
                    return
                self._baseline = time.time()
                # One change per cycle; the next cycle resumes after this root
                start = (index + 1) % len(roots)
                break

            if not await _until_stopped(asyncio.sleep(self._poll_interval / 1000), stops):
                return

    def _finish(self) -> None:
        if self._state is WatchState.STOPPED:
            return
        self._state = WatchState.STOPPED
        self._events.close()
        self._errors.close()
        log.debug("Watcher stopped")


def _any_set(events: list[asyncio.Event]) -> bool:
    return any(event.is_set() for event in events)


async def _until_stopped(aw: Awaitable[T], stops: list[asyncio.Event]) -> bool:
    """Await aw unless one of the stop events fires first.

    Returns:
        True if aw completed, False if a stop event won the race (aw is
        cancelled in that case).
    """
    task = asyncio.ensure_future(aw)
    if _any_set(stops):
        task.cancel()
        await asyncio.wait({task})
        return False

    waiters = [asyncio.ensure_future(event.wait()) for event in stops]
    try:
        done, _ = await asyncio.wait({task, *waiters}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        task.result()
        return True

    await asyncio.wait({task})
    return False
