"""
Supinic bot-activity heartbeat.

The bot list marks a bot as active while it keeps pinging the activity
endpoint, so the ping runs on a long fixed interval for the bot's lifetime.
"""

import asyncio
from typing import Any

import httpx
from loguru import logger

from relaybot import __version__
from relaybot.config.schema import SupinicConfig
from relaybot.errors import HeartbeatError


class SupinicClient:
    """Reports the bot as active to the Supinic API."""

    def __init__(self, config: SupinicConfig, client: httpx.AsyncClient | None = None):
        self.url = config.url
        self._headers = {
            # Supinic expects the raw "id:key" pair, not base64
            "Authorization": f"Basic {config.user_id}:{config.api_key}",
            "User-Agent": f"relaybot/{__version__}",
        }
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def ping(self) -> None:
        try:
            response = await self._client.put(self.url, headers=self._headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise HeartbeatError("Supinic ping timed out") from e
        except httpx.HTTPError as e:
            raise HeartbeatError(f"Supinic ping failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


class ActivityHeartbeat:
    """
    Pings immediately, then once every interval.

    A failed ping is logged and the loop keeps going.
    """

    def __init__(self, client: SupinicClient, interval: float = 1800.0):
        self.client = client
        self.interval = interval

        self._task: asyncio.Task | None = None
        self._running = False
        self._ping_count = 0
        self._failed_count = 0

    async def start(self) -> None:
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._ping_loop())
        logger.info(f"Activity heartbeat started (every {self.interval}s)")

    async def stop(self) -> None:
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        await self.client.close()
        logger.info("Activity heartbeat stopped")

    async def _ping_loop(self) -> None:
        while self._running:
            try:
                await self.client.ping()
                self._ping_count += 1
            except HeartbeatError as e:
                self._failed_count += 1
                logger.warning(f"Error pinging Supinic: {e}")

            try:
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break

    @property
    def running(self) -> bool:
        return self._running

    def get_stats(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "ping_count": self._ping_count,
            "failed_count": self._failed_count,
        }
