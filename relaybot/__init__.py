"""
relaybot - a prefixed-command chat bot with a paced outbound queue.
"""

__version__ = "0.1.0"
__logo__ = "📡"
