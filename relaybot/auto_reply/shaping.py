"""
Reply shaping: turns a command result into outbound text.

Steps:
- Mention the invoker ("@login, ...")
- Screen questionable text with the moderation service; without one,
  questionable text is withheld
- Append an invisible marker on every other reply so the transport does not
  drop two identical consecutive messages as duplicates
"""

import asyncio

from loguru import logger

from relaybot.api.base import ModerationScreen
from relaybot.auto_reply.commands import CommandResult
from relaybot.auto_reply.queue import OutboundQueue
from relaybot.errors import ModerationUnavailable


# U+E0000, rendered as nothing by chat clients
DUPLICATE_MARKER = "\U000e0000"

MODERATION_UNAVAILABLE_TEXT = "the moderation service is unavailable, so I can't send that."
MODERATION_BLOCKED_TEXT = "that response was blocked by the moderation filter."


class ReplyShaper:
    """Builds final reply text and hands it to the outbound queue."""

    def __init__(
        self,
        queue: OutboundQueue,
        moderation: ModerationScreen | None = None,
    ):
        self.queue = queue
        self.moderation = moderation

        # Shared across all destinations
        self._apply_marker = False
        self._marker_lock = asyncio.Lock()

    async def shape(self, result: CommandResult, login: str) -> str | None:
        """
        Build the outbound text for a result.

        Returns:
            The text to send, or None if nothing should be sent.
        """
        if result.is_empty:
            return None

        text = f"@{login}, {result.response}"
        if result.questionable:
            text = await self._screen(text, login)

        return text + await self._next_marker()

    async def respond(self, destination: str, result: CommandResult, login: str) -> bool:
        """
        Shape a result and enqueue it for destination.

        Returns:
            True if a message was enqueued.
        """
        text = await self.shape(result, login)
        if text is None:
            return False

        await self.queue.enqueue(destination, text)
        return True

    async def _screen(self, text: str, login: str) -> str:
        if self.moderation is None:
            logger.warning(f"No moderation screen configured, withholding reply to {login}")
            return f"@{login}, {MODERATION_UNAVAILABLE_TEXT}"

        try:
            disallowed = await self.moderation.is_disallowed(text)
        except ModerationUnavailable as e:
            logger.warning(f"Moderation unavailable, withholding reply: {e}")
            return f"@{login}, {MODERATION_UNAVAILABLE_TEXT}"

        if disallowed:
            logger.info(f"Moderation blocked a reply to {login}")
            return f"@{login}, {MODERATION_BLOCKED_TEXT}"
        return text

    async def _next_marker(self) -> str:
        async with self._marker_lock:
            marker = DUPLICATE_MARKER if self._apply_marker else ""
            self._apply_marker = not self._apply_marker
        return marker
