"""
Tests for the JSON-file store.
"""

import json

import pytest

from relaybot.auto_reply.commands import CommandSpec, DEFAULT_COMMAND_SPECS
from relaybot.errors import StoreError
from relaybot.security.permissions import PermissionLevel
from relaybot.store.json_store import JsonStore

from conftest import make_message


class TestIdentities:

    @pytest.mark.asyncio
    async def test_get_or_create(self):
        store = JsonStore()

        created = await store.get_or_create_identity(100, "Alice")
        assert created.login == "alice"
        assert created.permission is PermissionLevel.USER

        again = await store.get_or_create_identity(100, "renamed")
        assert again == created

    @pytest.mark.asyncio
    async def test_set_column_counts_rows(self):
        store = JsonStore()
        await store.get_or_create_identity(100, "alice")

        assert await store.set_column("alice", "permissions", 2) == 1
        assert await store.set_column("nobody", "permissions", 2) == 0
        assert (await store.get_identity(100)).permission is PermissionLevel.SUPERUSER

    @pytest.mark.asyncio
    async def test_set_column_rejects_other_columns(self):
        store = JsonStore()
        await store.get_or_create_identity(100, "alice")

        with pytest.raises(StoreError):
            await store.set_column("alice", "login", "mallory")

    @pytest.mark.asyncio
    async def test_set_permission(self):
        store = JsonStore()
        await store.get_or_create_identity(100, "alice")

        assert await store.set_permission("alice", PermissionLevel.MODERATOR) == 1
        identity = await store.get_identity_by_login("ALICE")
        assert identity.permission is PermissionLevel.MODERATOR


class TestChannels:

    @pytest.mark.asyncio
    async def test_joined_channels(self):
        store = JsonStore()
        await store.set_channel_joined("One", True)
        await store.set_channel_joined("two", True)
        await store.set_channel_joined("two", False)

        assert await store.get_current_channels() == {"one"}


class TestCommands:

    @pytest.mark.asyncio
    async def test_seeded_with_defaults(self):
        store = JsonStore()
        specs = await store.get_command_registry()
        assert specs == DEFAULT_COMMAND_SPECS

    @pytest.mark.asyncio
    async def test_custom_seed(self):
        store = JsonStore(seed_commands=[CommandSpec("ping", "Pong", PermissionLevel.USER, 1.0)])
        assert [s.name for s in await store.get_command_registry()] == ["ping"]


class TestHistory:

    @pytest.mark.asyncio
    async def test_last_message(self):
        store = JsonStore()
        await store.log_message(make_message("one", timestamp=1))
        await store.log_message(make_message("two", timestamp=2))

        record = await store.get_last_message("TestChan", "Alice")
        assert record.text == "two"
        assert record.timestamp == 2

    @pytest.mark.asyncio
    async def test_history_limit(self):
        store = JsonStore(history_limit=2)
        for i in range(5):
            await store.log_message(make_message(f"m{i}", sender_login=f"user{i}"))

        assert await store.get_last_message("testchan", "user0") is None
        assert (await store.get_last_message("testchan", "user4")).text == "m4"


class TestPersistence:

    @pytest.mark.asyncio
    async def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonStore(path)
        await store.get_or_create_identity(100, "alice")
        await store.set_channel_joined("chan", True)

        reloaded = JsonStore(path)
        assert (await reloaded.get_identity(100)).login == "alice"
        assert await reloaded.get_current_channels() == {"chan"}

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")

        with pytest.raises(StoreError):
            JsonStore(path)

    def test_flush_writes_seed(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        JsonStore(path).flush()

        data = json.loads(path.read_text())
        assert len(data["commands"]) == len(DEFAULT_COMMAND_SPECS)

    @pytest.mark.asyncio
    async def test_history_written_in_batches(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonStore(path, history_flush_every=3)

        await store.log_message(make_message("one"))
        await store.log_message(make_message("two"))
        assert not path.exists()

        await store.log_message(make_message("three"))
        data = json.loads(path.read_text())
        assert [e["message"] for e in data["history"]["testchan"]] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_close_writes_pending_history(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonStore(path, history_flush_every=100)
        await store.get_or_create_identity(100, "alice")
        await store.log_message(make_message("pending"))

        await store.close()

        reloaded = JsonStore(path)
        assert (await reloaded.get_last_message("testchan", "alice")).text == "pending"

    @pytest.mark.asyncio
    async def test_other_writes_include_pending_history(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonStore(path, history_flush_every=100)
        await store.log_message(make_message("pending"))

        await store.set_channel_joined("chan", True)

        reloaded = JsonStore(path)
        assert (await reloaded.get_last_message("testchan", "alice")).text == "pending"
