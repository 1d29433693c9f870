"""Third-party API clients: remote identity lookup, moderation and the activity heartbeat."""

from relaybot.api.base import IdentityLookup, ModerationScreen, RemoteIdentity
from relaybot.api.banphrase import BanphraseClient
from relaybot.api.helix import HelixClient
from relaybot.api.supinic import ActivityHeartbeat, SupinicClient

__all__ = [
    "IdentityLookup",
    "ModerationScreen",
    "RemoteIdentity",
    "BanphraseClient",
    "HelixClient",
    "ActivityHeartbeat",
    "SupinicClient",
]
