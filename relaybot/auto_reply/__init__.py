"""
Command pipeline for relaybot.

Provides:
- Command parsing and the command registry
- Permission and cooldown gated dispatch
- Reply shaping and the paced outbound queue
"""

from relaybot.auto_reply.commands import (
    Command,
    CommandRegistry,
    CommandResult,
    CommandSpec,
    DEFAULT_COMMAND_SPECS,
    build_registry,
    parse_command,
)
from relaybot.auto_reply.cooldowns import CooldownTracker
from relaybot.auto_reply.dispatch import CommandContext, CommandDispatcher
from relaybot.auto_reply.queue import MessageSender, OutboundQueue
from relaybot.auto_reply.shaping import ReplyShaper
from relaybot.auto_reply.handlers import CommandHandlers

__all__ = [
    # Commands
    "Command",
    "CommandRegistry",
    "CommandResult",
    "CommandSpec",
    "DEFAULT_COMMAND_SPECS",
    "build_registry",
    "parse_command",
    # Dispatch
    "CooldownTracker",
    "CommandContext",
    "CommandDispatcher",
    # Outbound
    "MessageSender",
    "OutboundQueue",
    "ReplyShaper",
    # Behaviors
    "CommandHandlers",
]
