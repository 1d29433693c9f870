"""
JSON-file backed store.

Keeps users, channels, the command catalog and per-channel message history
in one JSON document. Without a path the store lives in memory only.

Writes happen in a worker thread. Users, channels and the catalog are
persisted on every change; history is persisted every history_flush_every
messages, on any other change, and on close().

Layout:
    {
      "users": {"<id>": {"login": str, "permissions": int}},
      "channels": {"<login>": {"joined": bool}},
      "commands": [CommandSpec.to_dict(), ...],
      "history": {"<channel>": [{"timestamp", "user_id", "login", "message"}]}
    }
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from loguru import logger

from relaybot.auto_reply.commands import CommandSpec, DEFAULT_COMMAND_SPECS
from relaybot.bus.events import InboundMessage
from relaybot.errors import StoreError
from relaybot.security.permissions import PermissionLevel
from relaybot.store.base import HistoryLog, HistoryRecord, Identity, IdentityStore


# Columns of a user row that set_column may touch
WRITABLE_USER_COLUMNS = {"permissions"}


class JsonStore(IdentityStore, HistoryLog):
    """Identity store and history log in a single JSON file."""

    def __init__(
        self,
        path: Path | None = None,
        history_limit: int = 500,
        history_flush_every: int = 20,
        seed_commands: list[CommandSpec] | None = None,
    ):
        self.path = path
        self.history_limit = history_limit
        self.history_flush_every = max(1, history_flush_every)
        self._unsaved_history = 0
        self._write_lock = asyncio.Lock()
        self._data: dict[str, Any] = {
            "users": {},
            "channels": {},
            "commands": [spec.to_dict() for spec in (seed_commands or DEFAULT_COMMAND_SPECS)],
            "history": {},
        }
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return

        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read store {self.path}: {e}") from e

        for key in ("users", "channels", "commands", "history"):
            if key in data:
                self._data[key] = data[key]
        logger.debug(f"Loaded store from {self.path}")

    def flush(self) -> None:
        """Write the current state to disk, blocking the caller."""
        if self.path is None:
            return
        self._write(self._dump())
        self._unsaved_history = 0

    async def close(self) -> None:
        """Write out history that has not been persisted yet."""
        if self._unsaved_history:
            await self._persist()

    def _dump(self) -> str:
        return json.dumps(self._data, indent=2)

    def _write(self, text: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(text)
            tmp.replace(self.path)
        except OSError as e:
            raise StoreError(f"Failed to write store {self.path}: {e}") from e

    async def _persist(self) -> None:
        if self.path is None:
            return

        # Snapshot on the loop, write in a thread; the lock keeps writes in order
        text = self._dump()
        self._unsaved_history = 0
        async with self._write_lock:
            await asyncio.to_thread(self._write, text)

    # Users

    @staticmethod
    def _to_identity(identity_id: int | str, row: dict[str, Any]) -> Identity:
        return Identity(
            id=int(identity_id),
            login=row["login"],
            permission=PermissionLevel.from_value(int(row.get("permissions", 0))),
        )

    async def get_identity(self, identity_id: int) -> Identity | None:
        row = self._data["users"].get(str(identity_id))
        if row is None:
            return None
        return self._to_identity(identity_id, row)

    async def get_identity_by_login(self, login: str) -> Identity | None:
        login = login.lower()
        for identity_id, row in self._data["users"].items():
            if row["login"] == login:
                return self._to_identity(identity_id, row)
        return None

    async def get_or_create_identity(self, identity_id: int, login: str) -> Identity:
        existing = await self.get_identity(identity_id)
        if existing is not None:
            return existing

        row = {"login": login.lower(), "permissions": int(PermissionLevel.USER)}
        self._data["users"][str(identity_id)] = row
        await self._persist()
        logger.info(f"Created user {row['login']} ({identity_id})")
        return self._to_identity(identity_id, row)

    async def set_column(self, login: str, column: str, value: Any) -> int:
        if column not in WRITABLE_USER_COLUMNS:
            raise StoreError(f"Column {column} is not writable")

        login = login.lower()
        affected = 0
        for row in self._data["users"].values():
            if row["login"] == login:
                row[column] = value
                affected += 1

        if affected:
            await self._persist()
        return affected

    async def add_identity(
        self,
        identity_id: int,
        login: str,
        permission: PermissionLevel = PermissionLevel.USER,
    ) -> Identity:
        """Insert or overwrite a user row."""
        row = {"login": login.lower(), "permissions": int(permission)}
        self._data["users"][str(identity_id)] = row
        await self._persist()
        return self._to_identity(identity_id, row)

    # Channels

    async def get_current_channels(self) -> set[str]:
        return {
            login for login, row in self._data["channels"].items()
            if row.get("joined")
        }

    async def set_channel_joined(self, login: str, joined: bool) -> None:
        self._data["channels"].setdefault(login.lower(), {})["joined"] = joined
        await self._persist()

    # Commands

    async def get_command_registry(self) -> list[CommandSpec]:
        try:
            return [CommandSpec.from_dict(row) for row in self._data["commands"]]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Invalid command registry row: {e}") from e

    # History

    async def log_message(self, message: InboundMessage) -> None:
        entries = self._data["history"].setdefault(message.channel.lower(), [])
        entries.append({
            "timestamp": message.timestamp,
            "user_id": message.sender_id,
            "login": message.sender_login.lower(),
            "message": message.content,
        })
        if len(entries) > self.history_limit:
            del entries[:len(entries) - self.history_limit]

        self._unsaved_history += 1
        if self._unsaved_history >= self.history_flush_every:
            await self._persist()

    async def get_last_message(self, channel: str, login: str) -> HistoryRecord | None:
        login = login.lower()
        entries = self._data["history"].get(channel.lower(), [])
        for entry in reversed(entries):
            if entry["login"] == login:
                return HistoryRecord(
                    timestamp=entry["timestamp"],
                    login=entry["login"],
                    text=entry["message"],
                )
        return None
