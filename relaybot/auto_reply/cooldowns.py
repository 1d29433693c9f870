"""
Per-identity, per-command cooldowns.

An entry exists from the moment a command finishes until its cooldown
elapses. Expiry is a deferred task keyed by (identity id, command name),
so a pending cooldown can be cancelled explicitly.
"""

import asyncio
from typing import Any

from loguru import logger


CooldownKey = tuple[int, str]


class CooldownTracker:
    """
    Tracks which (identity, command) pairs are currently suppressed.

    Mutations of the entry set happen under a single lock and never span
    an await on anything but the lock itself.
    """

    def __init__(self):
        self._entries: set[CooldownKey] = set()
        self._timers: dict[CooldownKey, asyncio.Task] = {}
        self._lock = asyncio.Lock()

    def is_on_cooldown(self, identity_id: int, command_name: str) -> bool:
        """Check whether the pair is currently suppressed."""
        return (identity_id, command_name) in self._entries

    async def start_cooldown(
        self,
        identity_id: int,
        command_name: str,
        duration: float,
    ) -> None:
        """
        Suppress the pair for duration seconds.

        The entry is visible as soon as this returns; removal is scheduled
        on a background timer.
        """
        if duration <= 0:
            return

        key = (identity_id, command_name)
        async with self._lock:
            self._entries.add(key)
            previous = self._timers.pop(key, None)
            if previous and not previous.done():
                previous.cancel()
            self._timers[key] = asyncio.create_task(self._expire(key, duration))

        logger.debug(f"Cooldown started for {identity_id}/{command_name} ({duration}s)")

    async def _expire(self, key: CooldownKey, duration: float) -> None:
        await asyncio.sleep(duration)
        async with self._lock:
            self._entries.discard(key)
            if self._timers.get(key) is asyncio.current_task():
                del self._timers[key]

    async def cancel(self, identity_id: int, command_name: str) -> bool:
        """
        Clear a cooldown before it expires.

        Returns:
            True if the pair was on cooldown.
        """
        key = (identity_id, command_name)
        async with self._lock:
            timer = self._timers.pop(key, None)
            if timer and not timer.done():
                timer.cancel()
            if key in self._entries:
                self._entries.discard(key)
                return True
        return False

    async def close(self) -> None:
        """Cancel all pending expiry timers and clear state."""
        async with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
            self._entries.clear()

        for timer in timers:
            timer.cancel()
        for timer in timers:
            try:
                await timer
            except asyncio.CancelledError:
                pass

    @property
    def active(self) -> int:
        """Number of pairs currently on cooldown."""
        return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        return {
            "active_cooldowns": len(self._entries),
            "pending_timers": len(self._timers),
        }
