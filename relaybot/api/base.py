"""Interfaces for third-party services used by commands and reply shaping."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RemoteIdentity:
    """A user as reported by the chat service's API."""
    id: int
    login: str
    display_name: str = ""


class IdentityLookup(ABC):
    """Resolves logins against the chat service."""

    @abstractmethod
    async def lookup_by_login(self, login: str) -> RemoteIdentity | None:
        """
        Look up a user by login.

        Returns:
            The user, or None if no such user exists.

        Raises:
            IdentityLookupError: If the API could not be reached.
        """
        pass

    async def close(self) -> None:
        pass


class ModerationScreen(ABC):
    """Decides whether outbound text may be sent."""

    @abstractmethod
    async def is_disallowed(self, text: str) -> bool:
        """
        Check text against the moderation rules.

        Raises:
            ModerationUnavailable: If the screen could not be consulted.
        """
        pass

    async def close(self) -> None:
        pass
