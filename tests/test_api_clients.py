"""
Tests for the Helix, banphrase and Supinic HTTP clients.
"""

import asyncio

import httpx
import pytest

from relaybot.api.banphrase import BanphraseClient
from relaybot.api.helix import HelixClient
from relaybot.api.supinic import ActivityHeartbeat, SupinicClient
from relaybot.config.schema import HelixConfig, ModerationConfig, SupinicConfig
from relaybot.errors import HeartbeatError, IdentityLookupError, ModerationUnavailable


def helix_config(**overrides):
    values = {
        "client_id": "cid",
        "client_secret": "secret",
        "access_token": "token",
        "api_base": "https://helix.test",
        "token_url": "https://id.test/token",
    }
    values.update(overrides)
    return HelixConfig(**values)


class TestHelixClient:

    @pytest.mark.asyncio
    async def test_lookup_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/users"
            assert request.url.params["login"] == "forsen"
            assert request.headers["Authorization"] == "Bearer token"
            assert request.headers["Client-Id"] == "cid"
            return httpx.Response(200, json={"data": [
                {"id": "22484632", "login": "forsen", "display_name": "forsen"},
            ]})

        client = HelixClient(helix_config(), httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        user = await client.lookup_by_login("forsen")
        await client.close()

        assert user.id == 22484632
        assert user.login == "forsen"

    @pytest.mark.asyncio
    async def test_lookup_not_found(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": []}))
        client = HelixClient(helix_config(), httpx.AsyncClient(transport=transport))

        assert await client.lookup_by_login("ghost") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_http_error_raises_lookup_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        client = HelixClient(helix_config(), httpx.AsyncClient(transport=transport))

        with pytest.raises(IdentityLookupError):
            await client.lookup_by_login("forsen")
        await client.close()

    @pytest.mark.asyncio
    async def test_generates_token_when_missing(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path == "/token":
                assert request.url.params["grant_type"] == "client_credentials"
                return httpx.Response(200, json={"access_token": "fresh"})
            assert request.headers["Authorization"] == "Bearer fresh"
            return httpx.Response(200, json={"data": []})

        client = HelixClient(
            helix_config(access_token=""),
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        await client.lookup_by_login("a")
        await client.lookup_by_login("b")
        await client.close()

        assert seen == ["/token", "/users", "/users"]

    @pytest.mark.asyncio
    async def test_rejected_token_is_regenerated_once(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path == "/token":
                return httpx.Response(200, json={"access_token": "fresh"})
            if request.headers["Authorization"] == "Bearer stale":
                return httpx.Response(401)
            return httpx.Response(200, json={"data": [{"id": "7", "login": "a"}]})

        client = HelixClient(
            helix_config(access_token="stale"),
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        user = await client.lookup_by_login("a")
        await client.lookup_by_login("a")
        await client.close()

        assert user.id == 7
        assert client.access_token == "fresh"
        assert seen == ["/users", "/token", "/users", "/users"]

    @pytest.mark.asyncio
    async def test_persistent_401_raises_after_one_retry(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path == "/token":
                return httpx.Response(200, json={"access_token": "fresh"})
            return httpx.Response(401)

        client = HelixClient(helix_config(), httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        with pytest.raises(IdentityLookupError):
            await client.lookup_by_login("a")
        await client.close()

        assert seen == ["/users", "/token", "/users"]


class TestBanphraseClient:

    @pytest.mark.asyncio
    async def test_banned(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            return httpx.Response(200, json={
                "banned": request.url.params["message"] == "bad",
                "input_message": request.url.params["message"],
            })

        client = BanphraseClient(
            ModerationConfig(enabled=True, url="https://ban.test/check"),
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        assert await client.is_disallowed("bad") is True
        assert await client.is_disallowed("fine") is False
        await client.close()

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = BanphraseClient(
            ModerationConfig(enabled=True, url="https://ban.test/check"),
            httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        with pytest.raises(ModerationUnavailable):
            await client.is_disallowed("anything")
        await client.close()


def supinic_client(handler) -> SupinicClient:
    return SupinicClient(
        SupinicConfig(enabled=True, user_id="123", api_key="secret"),
        httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestSupinicClient:

    @pytest.mark.asyncio
    async def test_ping(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            assert request.url.path == "/api/bot-program/bot/active"
            assert request.headers["Authorization"] == "Basic 123:secret"
            assert request.headers["User-Agent"].startswith("relaybot/")
            return httpx.Response(200, json={"statusCode": 200})

        client = supinic_client(handler)
        await client.ping()
        await client.close()

    @pytest.mark.asyncio
    async def test_rejected_ping_raises(self):
        client = supinic_client(lambda request: httpx.Response(401))

        with pytest.raises(HeartbeatError):
            await client.ping()
        await client.close()


class TestActivityHeartbeat:

    @pytest.mark.asyncio
    async def test_keeps_pinging_after_failures(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(503 if len(calls) == 1 else 200)

        heartbeat = ActivityHeartbeat(supinic_client(handler), interval=0.01)
        await heartbeat.start()
        for _ in range(100):
            if len(calls) >= 3:
                break
            await asyncio.sleep(0.01)
        await heartbeat.stop()

        stats = heartbeat.get_stats()
        assert len(calls) >= 3
        assert stats["failed_count"] == 1
        assert stats["ping_count"] >= 1
        assert not heartbeat.running
