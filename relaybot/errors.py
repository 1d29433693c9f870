"""Exception hierarchy for relaybot collaborators."""


class RelayBotError(Exception):
    """Base class for relaybot errors."""


class CollaboratorUnavailable(RelayBotError):
    """An external service (store, API, transport) could not be reached."""


class StoreError(CollaboratorUnavailable):
    """The identity store or history log failed."""


class IdentityLookupError(CollaboratorUnavailable):
    """The remote identity lookup API failed."""


class ModerationUnavailable(CollaboratorUnavailable):
    """The moderation screen could not be consulted."""


class TransportError(CollaboratorUnavailable):
    """The chat transport failed to deliver a message."""


class HeartbeatError(CollaboratorUnavailable):
    """The bot-activity endpoint rejected or missed a ping."""
