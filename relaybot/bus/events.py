"""Event types for inbound and outbound chat messages."""

import time
from dataclasses import dataclass, field


@dataclass
class InboundMessage:
    """A chat message received from the transport."""
    channel: str  # Channel login the message was sent in
    sender_id: int
    sender_login: str
    content: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class OutboundMessage:
    """A reply waiting to be delivered."""
    destination: str
    text: str
