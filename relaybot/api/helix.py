"""
Helix-style users API client.

Authenticates with an app access token, generated from the client
credentials when none is configured.
"""

import httpx
from loguru import logger

from relaybot.api.base import IdentityLookup, RemoteIdentity
from relaybot.config.schema import HelixConfig
from relaybot.errors import IdentityLookupError


class HelixClient(IdentityLookup):
    """Looks up users by login through the Helix users endpoint."""

    def __init__(self, config: HelixConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self.access_token = config.access_token
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def get_access_token(self) -> str:
        """Request an app access token with the client credentials grant."""
        try:
            response = await self._client.post(
                self.config.token_url,
                params={
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "grant_type": "client_credentials",
                },
            )
            response.raise_for_status()
            token = response.json()["access_token"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise IdentityLookupError(f"Failed to obtain access token: {e}") from e

        logger.info("Generated new Helix access token")
        return token

    async def _headers(self) -> dict[str, str]:
        if not self.access_token:
            self.access_token = await self.get_access_token()
        return {
            "Client-Id": self.config.client_id,
            "Authorization": f"Bearer {self.access_token}",
        }

    async def _get_users(self, login: str) -> httpx.Response:
        headers = await self._headers()
        try:
            return await self._client.get(
                f"{self.config.api_base}/users",
                params={"login": login},
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise IdentityLookupError(f"Timed out looking up {login}") from e
        except httpx.HTTPError as e:
            raise IdentityLookupError(f"Failed to look up {login}: {e}") from e

    async def lookup_by_login(self, login: str) -> RemoteIdentity | None:
        response = await self._get_users(login)
        if response.status_code == 401:
            logger.info("Helix rejected the access token, generating a new one")
            self.access_token = ""
            response = await self._get_users(login)

        try:
            response.raise_for_status()
            users = response.json().get("data", [])
        except (httpx.HTTPError, ValueError) as e:
            raise IdentityLookupError(f"Failed to look up {login}: {e}") from e

        if not users:
            return None

        user = users[0]
        return RemoteIdentity(
            id=int(user["id"]),
            login=user["login"],
            display_name=user.get("display_name", ""),
        )

    async def close(self) -> None:
        await self._client.aclose()
