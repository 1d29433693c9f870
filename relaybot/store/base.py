"""
Store interfaces used by the command pipeline.

Implementations raise StoreError when the backing storage fails. Every
method is a coroutine so that network-backed stores fit the same seam.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from relaybot.auto_reply.commands import CommandSpec
from relaybot.bus.events import InboundMessage
from relaybot.security.permissions import PermissionLevel


@dataclass(frozen=True)
class Identity:
    """A chat user as known to the store."""
    id: int
    login: str
    permission: PermissionLevel = PermissionLevel.USER


@dataclass(frozen=True)
class HistoryRecord:
    """A logged chat message."""
    timestamp: float
    login: str
    text: str


class IdentityStore(ABC):
    """Users, joined channels and the command catalog."""

    @abstractmethod
    async def get_identity(self, identity_id: int) -> Identity | None:
        pass

    @abstractmethod
    async def get_identity_by_login(self, login: str) -> Identity | None:
        pass

    @abstractmethod
    async def get_or_create_identity(self, identity_id: int, login: str) -> Identity:
        """Load an identity, creating it with USER permission if unknown."""
        pass

    @abstractmethod
    async def set_column(self, login: str, column: str, value: Any) -> int:
        """
        Update one column of the user row matching login.

        Returns:
            Number of rows affected.
        """
        pass

    async def set_permission(self, login: str, level: PermissionLevel) -> int:
        """Set a user's permission level. Returns rows affected."""
        return await self.set_column(login, "permissions", int(level))

    @abstractmethod
    async def get_current_channels(self) -> set[str]:
        """Channels persisted as joined."""
        pass

    @abstractmethod
    async def set_channel_joined(self, login: str, joined: bool) -> None:
        pass

    @abstractmethod
    async def get_command_registry(self) -> list[CommandSpec]:
        pass


class HistoryLog(ABC):
    """Per-channel message history."""

    @abstractmethod
    async def log_message(self, message: InboundMessage) -> None:
        pass

    @abstractmethod
    async def get_last_message(self, channel: str, login: str) -> HistoryRecord | None:
        """Most recent message from login in channel, if any."""
        pass

    async def close(self) -> None:
        """Persist anything still buffered."""
        pass
