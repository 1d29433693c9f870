"""
Command behaviors.

Each handler takes the parsed command and its CommandContext and always
returns a CommandResult: bad arguments and collaborator failures become
explanatory reply text instead of exceptions.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Callable, TYPE_CHECKING

from loguru import logger

from relaybot.api.base import IdentityLookup
from relaybot.auto_reply.commands import (
    DEFAULT_PREFIX,
    Command,
    CommandHandler,
    CommandRegistry,
    CommandResult,
    CommandSpec,
    build_registry,
)
from relaybot.auto_reply.dispatch import CommandContext
from relaybot.auto_reply.queue import OutboundQueue
from relaybot.channels.wanted import WantedChannels
from relaybot.errors import IdentityLookupError, StoreError
from relaybot.security.permissions import PermissionLevel

if TYPE_CHECKING:
    from relaybot.store.base import HistoryLog, IdentityStore


def format_uptime(seconds: float) -> str:
    """Format a duration as "Xd, Xh, Xm, Xs"."""
    remaining = int(seconds)
    days, remaining = divmod(remaining, 86400)
    hours, remaining = divmod(remaining, 3600)
    minutes, secs = divmod(remaining, 60)
    return f"{days}d, {hours}h, {minutes}m, {secs}s"


def format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


class CommandHandlers:
    """
    The built-in command implementations.

    Holds the collaborators the commands need. None of the handlers keep
    shared state of their own; the channel set and the outbound queue carry
    their own locks.
    """

    def __init__(
        self,
        store: "IdentityStore",
        history: "HistoryLog",
        wanted: WantedChannels,
        queue: OutboundQueue,
        identity_lookup: IdentityLookup | None = None,
        bot_login: str = "relaybot",
        prefix: str = DEFAULT_PREFIX,
        expensive_delay: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.history = history
        self.wanted = wanted
        self.queue = queue
        self.identity_lookup = identity_lookup
        self.bot_login = bot_login
        self.prefix = prefix
        self.expensive_delay = expensive_delay
        self.clock = clock
        self.started_at = clock()
        self.registry: CommandRegistry | None = None

    def table(self) -> dict[str, CommandHandler]:
        """Map of command name to handler."""
        return {
            "ping": self.ping,
            "bot": self.about,
            "help": self.help,
            "greeting": self.greeting,
            "expensive": self.expensive,
            "setpermissions": self.setpermissions,
            "join": self.join,
            "leave": self.leave,
            "uid": self.uid,
            "say": self.say,
            "lastmessage": self.lastmessage,
        }

    def build_registry(self, specs: list[CommandSpec]) -> CommandRegistry:
        """Bind catalog specs to these handlers; help reads the result."""
        self.registry = build_registry(specs, self.table())
        return self.registry

    # Informational

    async def ping(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        uptime = self.clock() - self.started_at
        return CommandResult(f"Pong! Uptime: {format_uptime(uptime)}")

    async def about(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        return CommandResult(
            f"{self.bot_login} is a command bot written in Python with asyncio. "
            f"Use {self.prefix}help to list commands."
        )

    async def help(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        if self.registry is None:
            return CommandResult("No commands are loaded.")
        return CommandResult(self.registry.get_help(cmd.arg))

    async def greeting(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        level = ctx.identity.permission
        if level == PermissionLevel.SUPERUSER:
            return CommandResult("Greetings superuser")
        if level == PermissionLevel.MODERATOR:
            return CommandResult("Hello moderator")
        return CommandResult("What's good")

    async def expensive(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        if ctx.identity.permission != PermissionLevel.SUPERUSER:
            return CommandResult("You don't have the permission to do that!")

        await asyncio.sleep(self.expensive_delay)
        return CommandResult("Test expensive command finished")

    # Administration

    async def setpermissions(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        if ctx.identity.permission != PermissionLevel.SUPERUSER:
            return CommandResult("Sorry, only superusers can set permissions!")

        target = cmd.get(0).lower()
        if not target:
            return CommandResult("Please provide a username after the set command!")

        try:
            value = int(cmd.get(1))
        except ValueError:
            return CommandResult(
                "Error parsing value to be set, please give an integer after the username!"
            )

        valid = {int(level) for level in PermissionLevel}
        if value not in valid:
            return CommandResult(
                "Permission level must be 0 (user), 1 (moderator) or 2 (superuser)!"
            )
        level = PermissionLevel(value)

        try:
            rows = await self.store.set_permission(target, level)
        except StoreError as e:
            logger.error(f"Failed to set permissions for {target}: {e}")
            return CommandResult(f"Error setting permissions for {target}, please try again later!")

        if rows == 0:
            return CommandResult("Sorry, that user wasn't found in my database!")

        logger.info(f"{ctx.identity.login} set {target}'s permissions to {level}")
        return CommandResult(f"Successfully set {target}'s permissions to {level}")

    async def join(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        channel = cmd.arg.lower()
        if not channel:
            return CommandResult("Please provide a channel to join!")

        if self.identity_lookup is None:
            return CommandResult(f"Unable to verify that {channel} exists right now, please try again later!")

        try:
            remote = await self.identity_lookup.lookup_by_login(channel)
        except IdentityLookupError as e:
            logger.warning(f"Could not verify channel {channel}: {e}")
            return CommandResult(f"Unable to verify that {channel} exists right now, please try again later!")

        if remote is None:
            return CommandResult(f"Couldn't find a channel named {channel}!")

        try:
            await self.store.set_channel_joined(channel, True)
        except StoreError as e:
            logger.error(f"Failed to persist join of {channel}: {e}")
            return CommandResult(f"Sorry, I couldn't join {channel}, please try again later!")

        if not await self.wanted.add(channel):
            return CommandResult(f"I'm already in {channel}!")

        await self.queue.enqueue(
            channel,
            f"Hello! I was invited by {ctx.identity.login}. "
            f"Use {self.prefix}help to see what I can do.",
        )
        return CommandResult(f"Joined {channel}!")

    async def leave(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        channel = cmd.arg.lower()
        if not channel:
            return CommandResult("Please provide a channel to leave!")

        try:
            await self.store.set_channel_joined(channel, False)
        except StoreError as e:
            logger.error(f"Failed to persist leave of {channel}: {e}")
            return CommandResult(f"Sorry, I couldn't leave {channel}, please try again later!")

        if not await self.wanted.remove(channel):
            return CommandResult(f"I'm not currently in {channel}!")

        return CommandResult(f"Left {channel}!")

    # Lookups

    async def uid(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        target = cmd.arg.lower()
        if not target:
            return CommandResult(f"Your user id is {ctx.identity.id}")

        if self.identity_lookup is None:
            return CommandResult("Sorry, user lookup is not available right now!")

        try:
            remote = await self.identity_lookup.lookup_by_login(target)
        except IdentityLookupError as e:
            logger.warning(f"User lookup for {target} failed: {e}")
            return CommandResult("Sorry, user lookup is not available right now!")

        if remote is None:
            return CommandResult(f"Couldn't find a user named {target}!")
        return CommandResult(f"{remote.login}'s user id is {remote.id}")

    async def say(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        if not cmd.arguments:
            return CommandResult(f"Please give me something to say, e.g. {self.prefix}say hello")
        return CommandResult(cmd.args_str, questionable=True)

    async def lastmessage(self, cmd: Command, ctx: CommandContext) -> CommandResult:
        target = cmd.get(0, ctx.identity.login).lower()
        channel = cmd.get(1, ctx.channel).lower()

        try:
            record = await self.history.get_last_message(channel, target)
        except StoreError as e:
            logger.error(f"Failed to read logs for {target} in {channel}: {e}")
            return CommandResult("Sorry, I couldn't read the logs right now!")

        if record is None:
            return CommandResult(f"No logs found for {target} in {channel}.")

        return CommandResult(
            f"({format_timestamp(record.timestamp)}) {record.login}: {record.text}",
            questionable=True,
        )
