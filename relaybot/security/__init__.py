"""Authorization levels for relaybot commands."""

from relaybot.security.permissions import PermissionLevel, satisfies

__all__ = ["PermissionLevel", "satisfies"]
