"""Chat transports and the shared set of wanted channels."""

from relaybot.channels.base import BaseChannel
from relaybot.channels.wanted import WantedChannels

__all__ = ["BaseChannel", "WantedChannels"]
