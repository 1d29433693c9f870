"""
The set of channels the bot should be present in.

Join and leave commands mutate it; the transport is told about every
change. Membership check, mutation and the push to the transport happen in
one critical section so two concurrent joins cannot both think they were
first.
"""

import asyncio
from typing import Iterable

from loguru import logger

from relaybot.channels.base import BaseChannel


class WantedChannels:
    """Lock-guarded set of channel logins mirrored to a transport."""

    def __init__(
        self,
        initial: Iterable[str] = (),
        transport: BaseChannel | None = None,
    ):
        self._channels: set[str] = set(initial)
        self._transport = transport
        self._lock = asyncio.Lock()

    def attach(self, transport: BaseChannel) -> None:
        """Set the transport and push the current set to it."""
        self._transport = transport
        transport.set_watched_destinations(set(self._channels))

    async def replace(self, channels: Iterable[str]) -> None:
        """Replace the whole set, e.g. with the store's joined channels."""
        async with self._lock:
            self._channels = set(channels)
            self._push()

    async def add(self, channel: str) -> bool:
        """
        Add a channel.

        Returns:
            True if the channel was not present before.
        """
        async with self._lock:
            if channel in self._channels:
                return False
            self._channels.add(channel)
            self._push()

        logger.info(f"Now watching channel {channel}")
        return True

    async def remove(self, channel: str) -> bool:
        """
        Remove a channel.

        Returns:
            True if the channel was present.
        """
        async with self._lock:
            if channel not in self._channels:
                return False
            self._channels.discard(channel)
            self._push()

        logger.info(f"Stopped watching channel {channel}")
        return True

    def _push(self) -> None:
        # Caller holds the lock
        if self._transport is not None:
            self._transport.set_watched_destinations(set(self._channels))

    def snapshot(self) -> set[str]:
        """A copy of the current set."""
        return set(self._channels)

    def __contains__(self, channel: str) -> bool:
        return channel in self._channels

    def __len__(self) -> int:
        return len(self._channels)
