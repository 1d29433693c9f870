"""Message types passed between the transport and the bot."""

from relaybot.bus.events import InboundMessage, OutboundMessage

__all__ = ["InboundMessage", "OutboundMessage"]
