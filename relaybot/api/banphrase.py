"""Banphrase API client used to screen questionable replies."""

import httpx

from relaybot.api.base import ModerationScreen
from relaybot.config.schema import ModerationConfig
from relaybot.errors import ModerationUnavailable


class BanphraseClient(ModerationScreen):
    """Asks a banphrase endpoint whether a message would be banned."""

    def __init__(self, config: ModerationConfig, client: httpx.AsyncClient | None = None):
        self.url = config.url
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def is_disallowed(self, text: str) -> bool:
        try:
            response = await self._client.post(self.url, params={"message": text})
            response.raise_for_status()
            return bool(response.json()["banned"])
        except httpx.TimeoutException as e:
            raise ModerationUnavailable("Banphrase API timed out") from e
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise ModerationUnavailable(f"Banphrase API error: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
