"""
Pytest configuration and shared fixtures for relaybot tests.
"""

import pytest
import sys
from pathlib import Path

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from relaybot.api.base import IdentityLookup, ModerationScreen, RemoteIdentity
from relaybot.auto_reply.commands import DEFAULT_COMMAND_SPECS
from relaybot.auto_reply.cooldowns import CooldownTracker
from relaybot.auto_reply.dispatch import CommandDispatcher
from relaybot.auto_reply.handlers import CommandHandlers
from relaybot.auto_reply.queue import OutboundQueue
from relaybot.bus.events import InboundMessage
from relaybot.channels.base import BaseChannel
from relaybot.channels.wanted import WantedChannels
from relaybot.errors import IdentityLookupError, ModerationUnavailable, TransportError
from relaybot.security.permissions import PermissionLevel
from relaybot.store.base import Identity
from relaybot.store.json_store import JsonStore


class RecordingChannel(BaseChannel):
    """Transport that records what it is asked to do."""

    name = "recording"

    def __init__(self, fail_on: set[str] | None = None):
        super().__init__()
        self.sent: list[tuple[str, str]] = []
        self.watch_pushes: list[set[str]] = []
        self.fail_on = fail_on or set()

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False
        await self._close_stream()

    async def send(self, destination: str, text: str) -> None:
        if text in self.fail_on:
            raise TransportError(f"cannot send {text!r}")
        self.sent.append((destination, text))

    def set_watched_destinations(self, destinations: set[str]) -> None:
        super().set_watched_destinations(destinations)
        self.watch_pushes.append(set(destinations))

    async def feed(self, message: InboundMessage) -> None:
        await self._inbound.put(message)


class FakeIdentityLookup(IdentityLookup):
    """Identity lookup backed by a dict; raises when unavailable."""

    def __init__(self, users: dict[str, int] | None = None, available: bool = True):
        self.users = users or {}
        self.available = available
        self.calls: list[str] = []

    async def lookup_by_login(self, login: str) -> RemoteIdentity | None:
        self.calls.append(login)
        if not self.available:
            raise IdentityLookupError("API unreachable")
        if login not in self.users:
            return None
        return RemoteIdentity(id=self.users[login], login=login, display_name=login)


class FakeModeration(ModerationScreen):
    """Moderation screen that bans texts containing any listed phrase."""

    def __init__(self, banned: list[str] | None = None, available: bool = True):
        self.banned = banned or []
        self.available = available
        self.checked: list[str] = []

    async def is_disallowed(self, text: str) -> bool:
        self.checked.append(text)
        if not self.available:
            raise ModerationUnavailable("screen down")
        return any(phrase in text for phrase in self.banned)


def make_message(content: str, channel: str = "testchan", sender_id: int = 100,
                 sender_login: str = "alice", timestamp: float = 1_700_000_000.0) -> InboundMessage:
    return InboundMessage(
        channel=channel,
        sender_id=sender_id,
        sender_login=sender_login,
        content=content,
        timestamp=timestamp,
    )


@pytest.fixture
def user():
    return Identity(id=100, login="alice", permission=PermissionLevel.USER)


@pytest.fixture
def moderator():
    return Identity(id=200, login="bob", permission=PermissionLevel.MODERATOR)


@pytest.fixture
def superuser():
    return Identity(id=300, login="root", permission=PermissionLevel.SUPERUSER)


@pytest.fixture
def store():
    """In-memory store seeded with the default command catalog."""
    return JsonStore()


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def lookup():
    return FakeIdentityLookup({"newchan": 5001, "forsen": 22484632})


@pytest.fixture
def queue():
    return OutboundQueue()


@pytest.fixture
def wanted(channel):
    return WantedChannels(transport=channel)


@pytest.fixture
def handlers(store, wanted, queue, lookup):
    handlers = CommandHandlers(
        store=store,
        history=store,
        wanted=wanted,
        queue=queue,
        identity_lookup=lookup,
        expensive_delay=0.05,
    )
    handlers.build_registry(DEFAULT_COMMAND_SPECS)
    return handlers


@pytest.fixture
def cooldowns():
    return CooldownTracker()


@pytest.fixture
def dispatcher(handlers, cooldowns):
    return CommandDispatcher(handlers.registry, cooldowns)
