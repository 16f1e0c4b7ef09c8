"""Unit tests for InMemoryKeyPool."""

import asyncio
from dataclasses import replace

import pytest

from keyrelay_core.config import SystemSettingsManager
from keyrelay_core.keypool import InMemoryKeyPool, KeyValidator
from keyrelay_core.types import Group, KeyStatus


class TestAddKeys:
    """Tests for adding and listing keys."""

    @pytest.mark.asyncio
    async def test_add_assigns_ids(self):
        """Test each new key gets a unique id."""
        pool = InMemoryKeyPool()
        keys = await pool.add_keys(1, ["sk-a", "sk-b"])

        assert [k.key_value for k in keys] == ["sk-a", "sk-b"]
        assert len({k.id for k in keys}) == 2
        assert all(k.status == KeyStatus.ACTIVE for k in keys)

    @pytest.mark.asyncio
    async def test_add_skips_blanks_and_duplicates(self):
        """Test blank and already-present values are ignored."""
        pool = InMemoryKeyPool()
        await pool.add_keys(1, ["sk-a"])

        added = await pool.add_keys(1, ["", "  ", "sk-a", " sk-b "])

        assert [k.key_value for k in added] == ["sk-b"]
        assert [k.key_value for k in await pool.list_keys(1)] == ["sk-a", "sk-b"]

    @pytest.mark.asyncio
    async def test_remove_keys(self):
        """Test removing keys reports how many were removed."""
        pool = InMemoryKeyPool()
        await pool.add_keys(1, ["sk-a", "sk-b"])

        assert await pool.remove_keys(1, ["sk-a", "sk-missing"]) == 1
        assert [k.key_value for k in await pool.list_keys(1)] == ["sk-b"]

    @pytest.mark.asyncio
    async def test_writes_wait_for_pool_lock(self):
        """Test adds and removes do not touch the pool while it is locked."""
        pool = InMemoryKeyPool()
        await pool.add_keys(1, ["sk-a"])

        async with pool._lock:
            adding = asyncio.create_task(pool.add_keys(1, ["sk-b"]))
            removing = asyncio.create_task(pool.remove_keys(1, ["sk-a"]))
            await asyncio.sleep(0)
            assert not adding.done()
            assert not removing.done()
            assert list(pool._keys[1]) == ["sk-a"]

        await asyncio.gather(adding, removing)
        assert [k.key_value for k in await pool.list_keys(1)] == ["sk-b"]


class TestFindKeys:
    """Tests for find_keys_by_group_and_values."""

    @pytest.mark.asyncio
    async def test_returns_stored_records(self):
        """Test matching records of the requested group are returned."""
        pool = InMemoryKeyPool()
        stored = await pool.add_keys(1, ["sk-a", "sk-b"])
        await pool.add_keys(2, ["sk-c"])

        found = await pool.find_keys_by_group_and_values(1, ["sk-b", "sk-c", "sk-a"])

        assert [k.key_value for k in found] == ["sk-b", "sk-a"]
        assert found[1] is stored[0]

    @pytest.mark.asyncio
    async def test_unknown_group(self):
        """Test an unknown group yields no keys."""
        pool = InMemoryKeyPool()
        assert await pool.find_keys_by_group_and_values(99, ["sk-a"]) == []


class TestUpdateStatus:
    """Tests for failure tracking and blacklisting."""

    @pytest.mark.asyncio
    async def test_failure_increments_count(self, group):
        """Test a failure is counted and its error recorded."""
        pool = InMemoryKeyPool()
        (key,) = await pool.add_keys(group.id, ["sk-a"])

        await pool.update_status(key, group, False, "rejected")

        assert key.failure_count == 1
        assert key.last_error == "rejected"
        assert key.status == KeyStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_threshold_blacklists(self, group):
        """Test reaching the blacklist threshold marks the key invalid."""
        pool = InMemoryKeyPool()
        (key,) = await pool.add_keys(group.id, ["sk-a"])

        for _ in range(3):
            await pool.update_status(key, group, False, "rejected")

        assert key.failure_count == 3
        assert key.status == KeyStatus.INVALID

    @pytest.mark.asyncio
    async def test_zero_threshold_never_blacklists(self):
        """Test a threshold of 0 disables blacklisting."""
        group = Group(id=1, name="lenient", config={"blacklist_threshold": 0})
        pool = InMemoryKeyPool()
        (key,) = await pool.add_keys(group.id, ["sk-a"])

        for _ in range(10):
            await pool.update_status(key, group, False, "rejected")

        assert key.status == KeyStatus.ACTIVE
        assert key.failure_count == 10

    @pytest.mark.asyncio
    async def test_success_resets(self, group):
        """Test a success reactivates the key and clears its failures."""
        pool = InMemoryKeyPool()
        (key,) = await pool.add_keys(group.id, ["sk-a"])
        for _ in range(3):
            await pool.update_status(key, group, False, "rejected")

        await pool.update_status(key, group, True, "")

        assert key.status == KeyStatus.ACTIVE
        assert key.failure_count == 0
        assert key.last_error == ""

    @pytest.mark.asyncio
    async def test_copy_updates_stored_record(self, group):
        """Test updating a detached copy also updates the pool's record."""
        pool = InMemoryKeyPool()
        (stored,) = await pool.add_keys(group.id, ["sk-a"])
        detached = replace(stored)

        await pool.update_status(detached, group, False, "rejected")

        assert detached.failure_count == 1
        assert stored.failure_count == 1


class TestPoolWithValidator:
    """KeyValidator backed by InMemoryKeyPool."""

    @pytest.mark.asyncio
    async def test_repeated_rejections_blacklist_key(self):
        """Test consecutive rejected validations blacklist the key."""

        class RejectingChannel:
            async def validate_key(self, key, group):
                return False

        class Channels:
            def get_channel(self, group):
                return RejectingChannel()

        settings_manager = SystemSettingsManager()
        pool = InMemoryKeyPool(settings_manager)
        group = Group(id=1, name="strict", config={"blacklist_threshold": 2})
        await pool.add_keys(group.id, ["sk-a"])
        validator = KeyValidator(pool, Channels(), settings_manager, pool)

        await validator.test_multiple_keys(group, ["sk-a"])
        (key,) = await pool.list_keys(group.id)
        assert key.status == KeyStatus.ACTIVE

        await validator.test_multiple_keys(group, ["sk-a"])
        assert key.status == KeyStatus.INVALID
        assert await pool.list_keys(group.id, KeyStatus.INVALID) == [key]
