"""Unbuffered rendezvous channel for asyncio.

send() does not return until a receiver has taken the value, so a slow
consumer throttles the producer and nothing is ever dropped. A consumer that
never reads stalls the producer indefinitely.

Closing the channel wakes every waiter: blocked senders and receivers, and
any later calls, raise ChannelClosed. ``async for`` over a channel ends when
it is closed.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Generic, TypeVar

from pollwatch.errors import ChannelClosed

T = TypeVar("T")


class Rendezvous(Generic[T]):
    """Single-value hand-off between one producer and its consumers.

    Example:
        channel: Rendezvous[str] = Rendezvous("events")

        async def consume() -> None:
            async for path in channel:
                print(path)

        await channel.send("src/app.py")  # returns once consume() has it
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._closed = False
        # Pending sends: (value, future resolved when a receiver takes it)
        self._senders: deque[tuple[T, asyncio.Future[None]]] = deque()
        self._receivers: list[asyncio.Future[None]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._senders)} pending"
        return f"<Rendezvous {self._name or hex(id(self))} {state}>"

    def _wake_receivers(self) -> None:
        for waiter in self._receivers:
            if not waiter.done():
                waiter.set_result(None)
        self._receivers.clear()

    async def send(self, value: T) -> None:
        """Hand value to a receiver, waiting until one takes it.

        Raises:
            ChannelClosed: If the channel is or becomes closed before a
                receiver takes the value.
        """
        if self._closed:
            raise ChannelClosed(f"send on closed channel {self._name!r}")

        accepted: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (value, accepted)
        self._senders.append(entry)
        self._wake_receivers()
        try:
            await accepted
        except asyncio.CancelledError:
            # Withdraw the value if nobody has taken it yet
            if entry in self._senders:
                self._senders.remove(entry)
            raise

    async def receive(self) -> T:
        """Take the next value, waiting for a sender if there is none.

        Raises:
            ChannelClosed: If the channel is closed and no sender is pending.
        """
        loop = asyncio.get_running_loop()
        while True:
            while self._senders:
                value, accepted = self._senders.popleft()
                if accepted.done():
                    # Sender was cancelled before anyone took the value
                    continue
                accepted.set_result(None)
                return value

            if self._closed:
                raise ChannelClosed(f"receive on closed channel {self._name!r}")

            waiter: asyncio.Future[None] = loop.create_future()
            self._receivers.append(waiter)
            try:
                await waiter
            finally:
                if waiter in self._receivers:
                    self._receivers.remove(waiter)

    def close(self) -> None:
        """Close the channel. Idempotent."""
        if self._closed:
            return
        self._closed = True
        while self._senders:
            _, accepted = self._senders.popleft()
            if not accepted.done():
                accepted.set_exception(
                    ChannelClosed(f"channel {self._name!r} closed before delivery")
                )
        self._wake_receivers()

    def __aiter__(self) -> Rendezvous[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosed:
            raise StopAsyncIteration from None
