"""
Outbound message queue for relaybot.

Provides:
- A single global FIFO of replies
- A background sender that delivers one message per tick
"""

import asyncio
from collections import deque
from typing import Any

from loguru import logger

from relaybot.bus.events import OutboundMessage
from relaybot.channels.base import BaseChannel


class OutboundQueue:
    """
    Unbounded FIFO of messages awaiting delivery.

    Ordering is global across destinations.
    """

    def __init__(self):
        self._queue: deque[OutboundMessage] = deque()
        self._lock = asyncio.Lock()

        # Stats
        self._total_enqueued = 0
        self._total_popped = 0

    async def enqueue(self, destination: str, text: str) -> None:
        """Append a message to the back of the queue."""
        async with self._lock:
            self._queue.append(OutboundMessage(destination=destination, text=text))
            self._total_enqueued += 1

    async def pop(self) -> OutboundMessage | None:
        """Remove and return the oldest message, if any."""
        async with self._lock:
            if not self._queue:
                return None
            self._total_popped += 1
            return self._queue.popleft()

    @property
    def size(self) -> int:
        """Current queue size."""
        return len(self._queue)

    @property
    def is_empty(self) -> bool:
        return not self._queue

    def get_stats(self) -> dict[str, Any]:
        """Get queue statistics."""
        return {
            "queue_size": self.size,
            "total_enqueued": self._total_enqueued,
            "total_popped": self._total_popped,
        }


class MessageSender:
    """
    Drains the outbound queue at a fixed cadence.

    Delivery is at-most-once: a failed send is logged and dropped.
    """

    def __init__(
        self,
        queue: OutboundQueue,
        channel: BaseChannel,
        interval: float = 1.0,
    ):
        self.queue = queue
        self.channel = channel
        self.interval = interval

        self._task: asyncio.Task | None = None
        self._running = False
        self._sent_count = 0
        self._failed_count = 0

    async def start(self) -> None:
        """Start the sender loop as a background task."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._send_loop())
        logger.info(f"Message sender started (one message every {self.interval}s)")

    async def stop(self) -> None:
        """Stop the sender loop."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Message sender stopped")

    async def drain(self) -> int:
        """
        Stop the loop, then deliver everything still queued at the same cadence.

        Returns:
            Number of messages delivered.
        """
        await self.stop()

        delivered = 0
        while not self.queue.is_empty:
            await asyncio.sleep(self.interval)
            if await self.send_next():
                delivered += 1

        if delivered:
            logger.info(f"Delivered {delivered} queued messages before shutdown")
        return delivered

    async def _send_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval)
                await self.send_next()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in sender loop: {e}")

    async def send_next(self) -> bool:
        """
        Deliver the oldest queued message.

        Returns:
            True if a message was delivered.
        """
        message = await self.queue.pop()
        if message is None:
            return False

        try:
            await self.channel.send(message.destination, message.text)
        except Exception as e:
            self._failed_count += 1
            logger.error(f"Failed to send message to {message.destination}: {e}")
            return False

        self._sent_count += 1
        return True

    @property
    def running(self) -> bool:
        return self._running

    def get_stats(self) -> dict[str, Any]:
        return {
            "sent_count": self._sent_count,
            "failed_count": self._failed_count,
            "running": self._running,
            "queue_stats": self.queue.get_stats(),
        }
