"""
Command dispatcher for relaybot.

Decides for each inbound message whether a command fires:
1. Parse the prefixed command
2. Resolve it in the registry
3. Check permission, then cooldown
4. Invoke the handler and start the invoker's cooldown
"""

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from loguru import logger

from relaybot.auto_reply.commands import (
    DEFAULT_PREFIX,
    CommandRegistry,
    CommandResult,
    parse_command,
)
from relaybot.auto_reply.cooldowns import CooldownTracker
from relaybot.bus.events import InboundMessage
from relaybot.security.permissions import PermissionLevel, satisfies

if TYPE_CHECKING:
    from relaybot.store.base import Identity


@dataclass(frozen=True)
class CommandContext:
    """What a handler knows about the invocation."""
    identity: "Identity"
    message: InboundMessage

    @property
    def channel(self) -> str:
        return self.message.channel


def denial_text(command_name: str, required: PermissionLevel) -> str:
    return f"Sorry, the {command_name} command requires {required} permissions!"


class CommandDispatcher:
    """
    Routes prefixed messages to command handlers.

    Flow per message:
        Ignored -> Parsed -> Unknown | Forbidden | OnCooldown | Invoked

    Only Forbidden and Invoked produce a non-empty result.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        cooldowns: CooldownTracker | None = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        self.registry = registry
        self.cooldowns = cooldowns or CooldownTracker()
        self.prefix = prefix

        # Stats
        self._invoked_count = 0
        self._denied_count = 0
        self._cooldown_count = 0
        self._error_count = 0

    def is_command(self, content: str) -> bool:
        """Check whether a message should be dispatched at all."""
        return content.startswith(self.prefix)

    async def dispatch(
        self,
        message: InboundMessage,
        identity: "Identity",
    ) -> CommandResult:
        """
        Dispatch a message on behalf of an identity.

        Args:
            message: The inbound message.
            identity: The sender, as loaded from the store.

        Returns:
            The command result; empty when nothing should be sent.
        """
        command = parse_command(message.content, self.prefix)
        if command is None:
            return CommandResult()

        registered = self.registry.lookup(command.name)
        if registered is None:
            logger.debug(f"Unknown command {command.name!r} from {identity.login}")
            return CommandResult()

        spec = registered.spec
        if not satisfies(identity.permission, spec.permission):
            self._denied_count += 1
            logger.debug(f"{identity.login} ({identity.permission}) denied {spec.name}")
            return CommandResult(denial_text(spec.name, spec.permission))

        if self.cooldowns.is_on_cooldown(identity.id, spec.name):
            self._cooldown_count += 1
            logger.debug(f"{identity.login} is on cooldown for {spec.name}")
            return CommandResult()

        context = CommandContext(identity=identity, message=message)
        try:
            result = await registered.handler(command, context)
        except Exception:
            self._error_count += 1
            logger.exception(f"Command {spec.name} failed for {identity.login}")
            return CommandResult(f"Sorry, something went wrong while running {spec.name}.")

        self._invoked_count += 1
        if identity.permission != PermissionLevel.SUPERUSER:
            await self.cooldowns.start_cooldown(identity.id, spec.name, spec.cooldown)

        return result if result is not None else CommandResult()

    def get_stats(self) -> dict[str, Any]:
        """Get dispatcher statistics."""
        return {
            "invoked_count": self._invoked_count,
            "denied_count": self._denied_count,
            "cooldown_count": self._cooldown_count,
            "error_count": self._error_count,
            "cooldowns": self.cooldowns.get_stats(),
        }
