"""
Command parsing and the command registry.

Supports:
- Prefixed commands ("&ping", "&join somechannel")
- A catalog of command specs loaded from the store
- Name -> handler resolution done once when the registry is built
"""

from typing import Any, Callable, Awaitable
from dataclasses import dataclass, field

from loguru import logger

from relaybot.security.permissions import PermissionLevel


DEFAULT_PREFIX = "&"


@dataclass(frozen=True)
class CommandSpec:
    """Catalog entry describing an invocable command."""
    name: str
    description: str = ""
    permission: PermissionLevel = PermissionLevel.USER
    cooldown: float = 5.0  # Seconds, per identity

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "permission": int(self.permission),
            "cooldown": self.cooldown,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommandSpec":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            permission=PermissionLevel.from_value(int(data.get("permission", 0))),
            cooldown=float(data.get("cooldown", 5.0)),
        )


@dataclass
class CommandResult:
    """Outcome of a command. Empty response means nothing is sent."""
    response: str = ""
    questionable: bool = False  # Contains unmoderated user content

    @property
    def is_empty(self) -> bool:
        return not self.response


@dataclass
class Command:
    """A parsed command."""
    name: str
    arguments: list[str] = field(default_factory=list)
    raw: str = ""

    @property
    def arg(self) -> str:
        """Get first argument or empty string."""
        return self.arguments[0] if self.arguments else ""

    @property
    def args_str(self) -> str:
        """Get all arguments as a single string."""
        return " ".join(self.arguments)

    def get(self, index: int, default: str = "") -> str:
        """Get a positional argument or a default."""
        if 0 <= index < len(self.arguments):
            return self.arguments[index]
        return default


# Handlers receive the parsed command and a CommandContext
CommandHandler = Callable[[Command, Any], Awaitable[CommandResult]]


@dataclass(frozen=True)
class RegisteredCommand:
    """A command spec bound to the handler that implements it."""
    spec: CommandSpec
    handler: CommandHandler

    @property
    def name(self) -> str:
        return self.spec.name


DEFAULT_COMMAND_SPECS: list[CommandSpec] = [
    CommandSpec("ping", "Check that the bot is alive and show its uptime", PermissionLevel.USER, 5.0),
    CommandSpec("bot", "Show information about the bot", PermissionLevel.USER, 5.0),
    CommandSpec("help", "List commands or describe one: help [command]", PermissionLevel.USER, 5.0),
    CommandSpec("greeting", "Say hello", PermissionLevel.USER, 5.0),
    CommandSpec("uid", "Show the user id of yourself or another user: uid [login]", PermissionLevel.USER, 5.0),
    CommandSpec("say", "Repeat the given text: say <text>", PermissionLevel.USER, 5.0),
    CommandSpec(
        "lastmessage",
        "Show the last logged message of a user: lastmessage [login] [channel]",
        PermissionLevel.USER,
        5.0,
    ),
    CommandSpec("join", "Join a channel: join <channel>", PermissionLevel.MODERATOR, 5.0),
    CommandSpec("leave", "Leave a channel: leave <channel>", PermissionLevel.MODERATOR, 5.0),
    CommandSpec("expensive", "Run a deliberately slow command", PermissionLevel.SUPERUSER, 5.0),
    CommandSpec(
        "setpermissions",
        "Set a user's permission level: setpermissions <login> <0|1|2>",
        PermissionLevel.SUPERUSER,
        5.0,
    ),
]


class CommandRegistry:
    """
    Registry of invocable commands.

    Populated once at startup and read-only afterwards. Lookup is an
    exact match on the command name.
    """

    def __init__(self):
        self._commands: dict[str, RegisteredCommand] = {}

    def register(self, spec: CommandSpec, handler: CommandHandler) -> None:
        """
        Register a command.

        Args:
            spec: Catalog entry for the command.
            handler: Async function implementing the command.
        """
        if spec.name in self._commands:
            logger.warning(f"Command {spec.name} registered twice, replacing")
        self._commands[spec.name] = RegisteredCommand(spec=spec, handler=handler)

    def lookup(self, name: str) -> RegisteredCommand | None:
        """Get a registered command by exact name."""
        return self._commands.get(name)

    def specs(self) -> list[CommandSpec]:
        """All command specs, sorted by name."""
        return [self._commands[name].spec for name in sorted(self._commands)]

    def names(self) -> list[str]:
        """List all registered command names."""
        return sorted(self._commands)

    def get_help(self, command_name: str = "") -> str:
        """Get the description of one command, or all command names."""
        if not command_name:
            return ", ".join(self.names())

        command = self.lookup(command_name)
        if command is None:
            return f"Command {command_name} was not found!"
        return command.spec.description or f"No description for {command_name}."

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)


def build_registry(
    specs: list[CommandSpec],
    handlers: dict[str, CommandHandler],
) -> CommandRegistry:
    """
    Bind catalog specs to their implementations.

    Specs whose name has no known handler are skipped.
    """
    registry = CommandRegistry()
    for spec in specs:
        handler = handlers.get(spec.name)
        if handler is None:
            logger.warning(f"No handler for command {spec.name}, skipping")
            continue
        registry.register(spec, handler)

    logger.info(f"Loaded {len(registry)} commands")
    return registry


def parse_command(text: str, prefix: str = DEFAULT_PREFIX) -> Command | None:
    """
    Parse a prefixed command.

    The name is the first whitespace-delimited token without the prefix;
    its case is preserved.

    Examples:
        &ping -> Command(name="ping")
        &join forsen -> Command(name="join", arguments=["forsen"])
        hello -> None

    Args:
        text: Message text that may contain a command.
        prefix: Command prefix.

    Returns:
        Parsed Command or None if the text is not a command.
    """
    if not prefix or not text.startswith(prefix):
        return None

    parts = text.split()
    if not parts:
        return None

    name = parts[0][len(prefix):]
    if not name:
        return None

    return Command(name=name, arguments=parts[1:], raw=text.strip())
