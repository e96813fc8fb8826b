"""
Tests for storage providers.

Tests the abstract storage interface and the memory, file and Redis backends.
"""

import json
import os

import pytest

from membershipvc.exceptions import StorageError
from membershipvc.storage import (
    AbstractStorageProvider,
    FileStorageProvider,
    MemoryStorageProvider,
    RedisStorageProvider,
    StorageConfig,
    create_storage_provider,
)


@pytest.fixture
async def memory_provider():
    """Create and connect a memory storage provider."""
    provider = MemoryStorageProvider(StorageConfig(backend="memory"))
    await provider.connect()
    yield provider
    await provider.disconnect()


@pytest.fixture
def ledger_file(tmp_path):
    return tmp_path / "ledger" / "ledger.json"


@pytest.fixture
async def file_provider(ledger_file):
    provider = FileStorageProvider(StorageConfig(backend="file", path=str(ledger_file)))
    await provider.connect()
    yield provider
    await provider.disconnect()


class TestMemoryStorageProvider:
    """Test MemoryStorageProvider."""

    @pytest.mark.asyncio
    async def test_connect_disconnect(self, memory_provider):
        """Test connection lifecycle."""
        assert await memory_provider.health_check()
        await memory_provider.disconnect()
        assert not await memory_provider.health_check()

    @pytest.mark.asyncio
    async def test_key_value_operations(self, memory_provider):
        """Test basic key-value operations."""
        assert await memory_provider.set("test_key", "test_value")
        assert await memory_provider.get("test_key") == "test_value"

        assert await memory_provider.exists("test_key")
        assert not await memory_provider.exists("nonexistent")

        assert await memory_provider.delete("test_key")
        assert not await memory_provider.delete("test_key")
        assert await memory_provider.get("test_key") is None

    @pytest.mark.asyncio
    async def test_batch_operations(self, memory_provider):
        """mset writes every key; mget preserves order and reports gaps."""
        assert await memory_provider.mset({"a": "1", "b": "2"})
        assert await memory_provider.mget(["b", "missing", "a"]) == ["2", None, "1"]

    @pytest.mark.asyncio
    async def test_pattern_keys(self, memory_provider):
        await memory_provider.mset({
            "vc:x:issuer:alice": "true",
            "vc:x:issuer:bob": "false",
            "vc:x:meta:admin": "alice",
        })
        keys = await memory_provider.keys("vc:x:issuer:*")
        assert sorted(keys) == ["vc:x:issuer:alice", "vc:x:issuer:bob"]

    def test_default_config(self):
        provider = MemoryStorageProvider()
        assert provider.config.backend == "memory"
        assert isinstance(provider, AbstractStorageProvider)


class TestFileStorageProvider:
    """Test the JSON snapshot backend."""

    def test_requires_path(self):
        with pytest.raises(StorageError, match="path"):
            FileStorageProvider(StorageConfig(backend="file"))

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, file_provider, ledger_file):
        await file_provider.mset({"k1": "v1", "k2": "v2"})
        await file_provider.set("k3", "v3")
        await file_provider.delete("k1")

        reopened = FileStorageProvider(StorageConfig(backend="file", path=str(ledger_file)))
        await reopened.connect()
        assert await reopened.get("k1") is None
        assert await reopened.mget(["k2", "k3"]) == ["v2", "v3"]

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, file_provider, ledger_file):
        assert not ledger_file.parent.exists()
        await file_provider.set("k", "v")
        assert json.loads(ledger_file.read_text()) == {"k": "v"}

    @pytest.mark.asyncio
    async def test_delete_missing_key_does_not_write(self, file_provider, ledger_file):
        assert not await file_provider.delete("missing")
        assert not ledger_file.exists()

    @pytest.mark.asyncio
    async def test_failed_write_leaves_state_untouched(
        self, file_provider, ledger_file, monkeypatch
    ):
        await file_provider.set("k", "before")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(StorageError, match="disk full"):
            await file_provider.mset({"k": "after", "other": "x"})

        assert await file_provider.get("k") == "before"
        assert await file_provider.get("other") is None
        assert json.loads(ledger_file.read_text()) == {"k": "before"}

    @pytest.mark.asyncio
    async def test_corrupt_snapshot(self, ledger_file):
        ledger_file.parent.mkdir(parents=True)
        ledger_file.write_text("{not json")
        provider = FileStorageProvider(StorageConfig(backend="file", path=str(ledger_file)))
        with pytest.raises(StorageError, match="Cannot read"):
            await provider.connect()

    @pytest.mark.asyncio
    async def test_snapshot_must_be_object(self, ledger_file):
        ledger_file.parent.mkdir(parents=True)
        ledger_file.write_text("[1, 2, 3]")
        provider = FileStorageProvider(StorageConfig(backend="file", path=str(ledger_file)))
        with pytest.raises(StorageError, match="not a JSON object"):
            await provider.connect()


class TestRedisStorageProvider:
    """Redis backend against fakeredis; no live server required."""

    @pytest.fixture
    async def redis_provider(self):
        pytest.importorskip("redis")
        fakeredis = pytest.importorskip("fakeredis")
        provider = RedisStorageProvider(StorageConfig(backend="redis"))
        provider._client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        yield provider
        await provider._client.flushall()

    @pytest.mark.asyncio
    async def test_not_connected(self):
        provider = RedisStorageProvider(StorageConfig(backend="redis"))
        assert not await provider.health_check()
        with pytest.raises(StorageError, match="not connected"):
            await provider.get("k")

    @pytest.mark.asyncio
    async def test_key_value_and_batch(self, redis_provider):
        assert await redis_provider.health_check()
        assert await redis_provider.set("k", "v")
        assert await redis_provider.get("k") == "v"
        assert await redis_provider.exists("k")
        assert await redis_provider.delete("k")
        assert not await redis_provider.exists("k")

        assert await redis_provider.mset({"a": "1", "b": "2"})
        assert await redis_provider.mget(["a", "b", "c"]) == ["1", "2", None]
        assert await redis_provider.mget([]) == []

    @pytest.mark.asyncio
    async def test_pattern_keys(self, redis_provider):
        await redis_provider.mset({"vc:t:credential:1": "x", "vc:t:credential:2": "y", "other": "z"})
        keys = await redis_provider.keys("vc:t:credential:*")
        assert sorted(keys) == ["vc:t:credential:1", "vc:t:credential:2"]


class TestFactory:
    def test_memory(self):
        assert isinstance(create_storage_provider(StorageConfig()), MemoryStorageProvider)

    def test_file(self, tmp_path):
        provider = create_storage_provider(
            StorageConfig(backend="file", path=str(tmp_path / "l.json"))
        )
        assert isinstance(provider, FileStorageProvider)

    def test_redis(self):
        provider = create_storage_provider(StorageConfig(backend="redis"))
        assert isinstance(provider, RedisStorageProvider)

    def test_unknown_backend(self):
        config = StorageConfig.model_construct(backend="mongo")
        with pytest.raises(StorageError, match="mongo"):
            create_storage_provider(config)


class TestRedisErrorMapping:
    @pytest.mark.asyncio
    async def test_client_errors_become_storage_errors(self):
        class BrokenClient:
            async def get(self, key):
                raise ConnectionError("connection reset")

        provider = RedisStorageProvider(StorageConfig(backend="redis"))
        provider._client = BrokenClient()
        provider._redis_errors = (ConnectionError,)
        with pytest.raises(StorageError, match="GET failed"):
            await provider.get("k")

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self):
        closed = []

        class Client:
            async def aclose(self):
                closed.append("client")

        class Pool:
            async def disconnect(self):
                closed.append("pool")

        provider = RedisStorageProvider(StorageConfig(backend="redis"))
        provider._client = Client()
        provider._pool = Pool()
        await provider.disconnect()
        assert closed == ["client", "pool"]
        assert not await provider.health_check()
