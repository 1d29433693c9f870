"""
Console transport for running relaybot locally.

Each line typed on stdin is treated as a chat message from a fixed console
user in a fixed channel. Replies are printed with rich.
"""

import asyncio
import sys

from loguru import logger
from rich.console import Console
from rich.text import Text

from relaybot.channels.base import BaseChannel
from relaybot.config.schema import ConsoleConfig
from relaybot.errors import TransportError


class ConsoleChannel(BaseChannel):
    """Stdin/stdout transport."""

    name = "console"

    def __init__(self, config: ConsoleConfig, console: Console | None = None):
        super().__init__()
        self.user_id = config.user_id
        self.user_login = config.user_login
        self.channel = config.channel
        self.console = console or Console()
        self._reader_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start reading stdin."""
        logger.info(f"Starting console channel as {self.user_login} in #{self.channel}")
        self._running = True
        self._reader_task = asyncio.create_task(self._read_loop())

    async def stop(self) -> None:
        """Stop reading stdin and end the message stream."""
        logger.info("Stopping console channel")
        self._running = False
        if self._reader_task:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None
        await self._close_stream()

    async def _read_loop(self) -> None:
        while self._running:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                # EOF
                self._running = False
                await self._close_stream()
                break

            content = line.rstrip("\n")
            if content:
                await self._handle_message(
                    channel=self.channel,
                    sender_id=self.user_id,
                    sender_login=self.user_login,
                    content=content,
                )

    async def send(self, destination: str, text: str) -> None:
        """Print a reply."""
        if destination not in self._watched and destination != self.channel:
            raise TransportError(f"Not joined to {destination}")
        self.console.print(Text.assemble((f"#{destination} ", "cyan"), text))
