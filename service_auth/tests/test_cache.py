"""
Unit tests for the key-value stores and the validation cache.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from service_auth.app.cache.store import (
    CacheKeyNotFound,
    InMemoryKeyValueStore,
    ReadOnlyTransaction,
    RedisKeyValueStore,
)
from service_auth.app.cache.validation_cache import ValidationCache, token_fingerprint
from shared.errors import AccessLayerException, CachePersistenceError

RAW_TOKEN = "eyJhbGciOiJIUzI1NiJ9.eyJzdWIiOiJ4In0.c2ln"


class TestInMemoryKeyValueStore:
    """Test cases for InMemoryKeyValueStore."""

    @pytest.mark.asyncio
    async def test_commit_on_success(self):
        store = InMemoryKeyValueStore()

        async with store.transaction(write=True) as tx:
            await tx.set("a", "1")
            assert await tx.get("a") == "1"

        async with store.transaction() as tx:
            assert await tx.get("a") == "1"
        assert store.size() == 1

    @pytest.mark.asyncio
    async def test_rollback_on_error(self):
        store = InMemoryKeyValueStore()

        with pytest.raises(RuntimeError):
            async with store.transaction(write=True) as tx:
                await tx.set("a", "1")
                raise RuntimeError("boom")

        async with store.transaction() as tx:
            with pytest.raises(CacheKeyNotFound):
                await tx.get("a")

    @pytest.mark.asyncio
    async def test_delete(self):
        store = InMemoryKeyValueStore()
        async with store.transaction(write=True) as tx:
            await tx.set("a", "1")

        async with store.transaction(write=True) as tx:
            await tx.delete("a")
            await tx.delete("never-set")
            with pytest.raises(CacheKeyNotFound):
                await tx.get("a")

        assert store.size() == 0

    @pytest.mark.asyncio
    async def test_read_transaction_rejects_writes(self):
        store = InMemoryKeyValueStore()

        with pytest.raises(ReadOnlyTransaction):
            async with store.transaction() as tx:
                await tx.set("a", "1")

    @pytest.mark.asyncio
    async def test_concurrent_idempotent_writes(self):
        store = InMemoryKeyValueStore()
        cache = ValidationCache(store)

        await asyncio.gather(*(cache.remember(RAW_TOKEN) for _ in range(10)))

        assert store.size() == 1
        assert await cache.contains(RAW_TOKEN) is True


class TestRedisKeyValueStore:
    """Test cases for RedisKeyValueStore with a mocked client."""

    @pytest.fixture
    def pipeline(self):
        pipeline = MagicMock()
        pipeline.execute = AsyncMock(return_value=[True])
        pipeline.reset = AsyncMock()
        return pipeline

    @pytest.fixture
    def redis_client(self, pipeline):
        client = MagicMock()
        client.pipeline.return_value = pipeline
        client.get = AsyncMock(return_value=None)
        client.ping = AsyncMock(return_value=True)
        client.aclose = AsyncMock()
        return client

    @pytest.fixture
    def store(self, redis_client):
        return RedisKeyValueStore("redis://localhost:6379/0", client=redis_client)

    @pytest.mark.asyncio
    async def test_get_hit(self, store, redis_client):
        redis_client.get = AsyncMock(return_value=RAW_TOKEN)

        async with store.transaction() as tx:
            assert await tx.get(RAW_TOKEN) == RAW_TOKEN

        redis_client.get.assert_awaited_once_with(RAW_TOKEN)

    @pytest.mark.asyncio
    async def test_get_miss(self, store):
        async with store.transaction() as tx:
            with pytest.raises(CacheKeyNotFound):
                await tx.get(RAW_TOKEN)

    @pytest.mark.asyncio
    async def test_write_executes_pipeline(self, store, redis_client, pipeline):
        async with store.transaction(write=True) as tx:
            await tx.set("k", "v")
            await tx.delete("old")

        redis_client.pipeline.assert_called_once_with(transaction=True)
        pipeline.set.assert_called_once_with("k", "v")
        pipeline.delete.assert_called_once_with("old")
        pipeline.execute.assert_awaited_once()
        pipeline.reset.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_rolls_back_on_error(self, store, pipeline):
        with pytest.raises(RuntimeError):
            async with store.transaction(write=True) as tx:
                await tx.set("k", "v")
                raise RuntimeError("boom")

        pipeline.execute.assert_not_awaited()
        pipeline.reset.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_read_transaction_does_not_execute(self, store, pipeline):
        async with store.transaction() as tx:
            with pytest.raises(ReadOnlyTransaction):
                await tx.set("k", "v")

        pipeline.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transaction_requires_start(self):
        store = RedisKeyValueStore("redis://localhost:6379/0")

        with pytest.raises(AccessLayerException):
            async with store.transaction():
                pass

    @pytest.mark.asyncio
    async def test_health_and_stop(self, store, redis_client):
        assert await store.health_check() is True

        await store.stop()

        redis_client.aclose.assert_awaited_once()
        assert store.redis is None


class TestValidationCache:
    """Test cases for ValidationCache."""

    @pytest.mark.asyncio
    async def test_remember_then_contains(self):
        store = InMemoryKeyValueStore()
        cache = ValidationCache(store)

        assert await cache.contains(RAW_TOKEN) is False
        await cache.remember(RAW_TOKEN)

        assert await cache.contains(RAW_TOKEN) is True
        async with store.transaction() as tx:
            assert await tx.get(RAW_TOKEN) == RAW_TOKEN

    @pytest.mark.asyncio
    async def test_forget(self):
        cache = ValidationCache(InMemoryKeyValueStore())
        await cache.remember(RAW_TOKEN)

        await cache.forget(RAW_TOKEN)
        await cache.forget(RAW_TOKEN)

        assert await cache.contains(RAW_TOKEN) is False

    @pytest.mark.asyncio
    async def test_key_prefix(self):
        store = InMemoryKeyValueStore()
        cache = ValidationCache(store, key_prefix="gate:token:")

        await cache.remember(RAW_TOKEN)

        async with store.transaction() as tx:
            assert await tx.get("gate:token:" + RAW_TOKEN) == RAW_TOKEN

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self):
        store = MagicMock()
        store.transaction.side_effect = ConnectionError("redis down")
        cache = ValidationCache(store)

        assert await cache.contains(RAW_TOKEN) is False

    @pytest.mark.asyncio
    async def test_write_failure_raises(self):
        store = MagicMock()
        store.transaction.side_effect = ConnectionError("redis down")
        cache = ValidationCache(store)

        with pytest.raises(CachePersistenceError) as exc_info:
            await cache.remember(RAW_TOKEN)
        assert exc_info.value.details == {"error": "redis down"}

        with pytest.raises(CachePersistenceError):
            await cache.forget(RAW_TOKEN)

    def test_fingerprint_hides_token(self):
        fingerprint = token_fingerprint(RAW_TOKEN)

        assert len(fingerprint) == 12
        assert fingerprint not in RAW_TOKEN
