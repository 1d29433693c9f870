"""
Base class for chat transports.

A transport delivers outbound text to a destination, keeps presence in the
set of watched destinations, and yields inbound messages through listen().
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import AsyncIterator

from loguru import logger

from relaybot.bus.events import InboundMessage


class BaseChannel(ABC):
    """Abstract chat transport."""

    name = "base"

    def __init__(self):
        self._inbound: asyncio.Queue[InboundMessage | None] = asyncio.Queue()
        self._watched: set[str] = set()
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """Connect and begin receiving messages."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect."""
        pass

    @abstractmethod
    async def send(self, destination: str, text: str) -> None:
        """
        Deliver text to a destination.

        Raises:
            TransportError: If delivery fails.
        """
        pass

    def set_watched_destinations(self, destinations: set[str]) -> None:
        """Replace the set of destinations the transport stays joined to."""
        self._watched = set(destinations)
        logger.debug(f"{self.name}: watching {len(self._watched)} destinations")

    @property
    def watched_destinations(self) -> set[str]:
        return set(self._watched)

    async def _handle_message(
        self,
        channel: str,
        sender_id: int,
        sender_login: str,
        content: str,
        timestamp: float | None = None,
    ) -> None:
        """Publish a received message to listeners."""
        await self._inbound.put(InboundMessage(
            channel=channel,
            sender_id=sender_id,
            sender_login=sender_login,
            content=content,
            timestamp=timestamp if timestamp is not None else time.time(),
        ))

    async def _close_stream(self) -> None:
        """End the listen() iterator."""
        await self._inbound.put(None)

    async def listen(self) -> AsyncIterator[InboundMessage]:
        """Yield inbound messages in arrival order until the stream closes."""
        while True:
            message = await self._inbound.get()
            if message is None:
                break
            yield message

    @property
    def is_running(self) -> bool:
        return self._running
