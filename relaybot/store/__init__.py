"""Identity store and history log collaborators."""

from relaybot.store.base import Identity, IdentityStore, HistoryLog, HistoryRecord
from relaybot.store.json_store import JsonStore

__all__ = [
    "Identity",
    "IdentityStore",
    "HistoryLog",
    "HistoryRecord",
    "JsonStore",
]
