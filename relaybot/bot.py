"""
The relaybot runtime.

Wires the store, transport and API clients to the command pipeline:
- one reader loop consuming the transport's inbound stream
- one dispatch task per prefixed message
- one sender task draining the outbound queue
- an optional activity heartbeat task
"""

import asyncio
from typing import Any

from loguru import logger

from relaybot.api.base import IdentityLookup, ModerationScreen
from relaybot.api.supinic import ActivityHeartbeat, SupinicClient
from relaybot.auto_reply.commands import CommandRegistry
from relaybot.auto_reply.cooldowns import CooldownTracker
from relaybot.auto_reply.dispatch import CommandDispatcher
from relaybot.auto_reply.handlers import CommandHandlers
from relaybot.auto_reply.queue import MessageSender, OutboundQueue
from relaybot.auto_reply.shaping import ReplyShaper
from relaybot.bus.events import InboundMessage
from relaybot.channels.base import BaseChannel
from relaybot.channels.wanted import WantedChannels
from relaybot.config.schema import Config
from relaybot.errors import StoreError
from relaybot.store.base import HistoryLog, IdentityStore


class RelayBot:
    """
    Chat bot that answers prefixed commands.

    Flow:
    1. Spawn a dispatch task for each prefixed message
    2. Shape the result and enqueue the reply
    3. Record the message in the history log; commands are recorded after
       they are dispatched
    4. The sender delivers one queued reply per tick
    """

    def __init__(
        self,
        config: Config,
        store: IdentityStore,
        history: HistoryLog,
        channel: BaseChannel,
        identity_lookup: IdentityLookup | None = None,
        moderation: ModerationScreen | None = None,
        activity: SupinicClient | None = None,
    ):
        self.config = config
        self.store = store
        self.history = history
        self.channel = channel
        self.identity_lookup = identity_lookup
        self.moderation = moderation

        self.queue = OutboundQueue()
        self.wanted = WantedChannels(transport=channel)
        self.cooldowns = CooldownTracker()
        self.handlers = CommandHandlers(
            store=store,
            history=history,
            wanted=self.wanted,
            queue=self.queue,
            identity_lookup=identity_lookup,
            bot_login=config.bot.login,
            prefix=config.bot.prefix,
            expensive_delay=config.bot.expensive_delay_seconds,
        )
        self.shaper = ReplyShaper(self.queue, moderation)
        self.sender = MessageSender(
            self.queue,
            channel,
            interval=config.bot.send_interval_seconds,
        )
        self.heartbeat: ActivityHeartbeat | None = None
        if activity is not None:
            self.heartbeat = ActivityHeartbeat(activity, interval=config.supinic.interval_seconds)
        self.dispatcher: CommandDispatcher | None = None

        self._tasks: set[asyncio.Task] = set()
        self._running = False

    async def setup(self) -> CommandRegistry:
        """Load the command catalog and joined channels from the store."""
        specs = await self.store.get_command_registry()
        registry = self.handlers.build_registry(specs)
        self.dispatcher = CommandDispatcher(
            registry,
            self.cooldowns,
            prefix=self.config.bot.prefix,
        )

        channels = await self.store.get_current_channels()
        await self.wanted.replace(channels)
        logger.info(f"Watching {len(channels)} channels")
        return registry

    async def run(self) -> None:
        """Run until the transport's inbound stream ends."""
        if self.dispatcher is None:
            await self.setup()

        self._running = True
        await self.channel.start()
        await self.sender.start()
        if self.heartbeat:
            await self.heartbeat.start()
        logger.info(f"{self.config.bot.login} is running")

        try:
            async for message in self.channel.listen():
                await self.handle_message(message)

            # Input ended: finish in-flight commands and deliver their replies
            await self.wait_idle()
            await self.sender.drain()
        finally:
            await self.stop()

    async def handle_message(self, message: InboundMessage) -> asyncio.Task | None:
        """
        Ingest one message.

        Returns:
            The dispatch task, if the message is a command.
        """
        if not self.dispatcher or not self.dispatcher.is_command(message.content):
            await self._record(message)
            return None

        task = asyncio.create_task(self._dispatch(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _dispatch(self, message: InboundMessage) -> None:
        try:
            identity = await self.store.get_or_create_identity(
                message.sender_id,
                message.sender_login,
            )
            result = await self.dispatcher.dispatch(message, identity)
            await self.shaper.respond(message.channel, result, identity.login)
        except StoreError as e:
            logger.error(f"Store failure handling message from {message.sender_login}: {e}")
        except Exception:
            logger.exception(f"Unhandled error dispatching message from {message.sender_login}")
        finally:
            # After dispatch, so lastmessage never finds its own invocation
            await self._record(message)

    async def _record(self, message: InboundMessage) -> None:
        try:
            await self.history.log_message(message)
        except StoreError as e:
            logger.warning(f"Failed to log message in {message.channel}: {e}")

    async def wait_idle(self) -> None:
        """Wait for in-flight dispatch tasks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Stop background work and release clients."""
        if not self._running:
            return
        self._running = False

        await self.sender.stop()
        if self.heartbeat:
            await self.heartbeat.stop()
        await self.cooldowns.close()

        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

        await self.channel.stop()
        if self.identity_lookup:
            await self.identity_lookup.close()
        if self.moderation:
            await self.moderation.close()
        try:
            await self.history.close()
        except StoreError as e:
            logger.error(f"Failed to persist history on shutdown: {e}")
        logger.info(f"{self.config.bot.login} stopped")

    def get_stats(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "in_flight": len(self._tasks),
            "watched_channels": len(self.wanted),
            "dispatcher": self.dispatcher.get_stats() if self.dispatcher else None,
            "sender": self.sender.get_stats(),
            "heartbeat": self.heartbeat.get_stats() if self.heartbeat else None,
        }
