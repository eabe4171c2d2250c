"""
Transactional key-value stores backing the validation cache.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Dict, Optional, Protocol

import redis.asyncio as redis

from shared.errors import AccessLayerException
from shared.logging import get_logger


class CacheKeyNotFound(KeyError):
    """Raised by ``Transaction.get`` for an absent key."""


class ReadOnlyTransaction(Exception):
    """Raised when writing through a read transaction."""


class Transaction(Protocol):
    async def get(self, key: str) -> str:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class KeyValueStore(Protocol):
    """Store whose operations run inside a scoped transaction.

    ``transaction()`` commits when the block exits cleanly and rolls back
    when it raises.
    """

    def transaction(self, write: bool = False) -> AsyncContextManager[Transaction]:
        ...


class _MemoryTransaction:
    """Buffers writes until the owning store commits them."""

    _DELETED = object()

    def __init__(self, data: Dict[str, str], writable: bool):
        self._data = data
        self._writable = writable
        self._pending: Dict[str, object] = {}

    async def get(self, key: str) -> str:
        value = self._pending.get(key, self._data.get(key, self._DELETED))
        if value is self._DELETED:
            raise CacheKeyNotFound(key)
        return value

    async def set(self, key: str, value: str) -> None:
        self._check_writable()
        self._pending[key] = value

    async def delete(self, key: str) -> None:
        self._check_writable()
        self._pending[key] = self._DELETED

    def _check_writable(self) -> None:
        if not self._writable:
            raise ReadOnlyTransaction("transaction is read-only")

    def commit(self) -> None:
        for key, value in self._pending.items():
            if value is self._DELETED:
                self._data.pop(key, None)
            else:
                self._data[key] = value
        self._pending.clear()


class InMemoryKeyValueStore:
    """Process-local store; writers are serialised, readers never block."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._write_lock = asyncio.Lock()
        self.logger = get_logger("auth.cache.memory")

    @asynccontextmanager
    async def transaction(self, write: bool = False) -> AsyncIterator[_MemoryTransaction]:
        if not write:
            yield _MemoryTransaction(self._data, writable=False)
            return

        async with self._write_lock:
            tx = _MemoryTransaction(self._data, writable=True)
            try:
                yield tx
            except Exception:
                self.logger.debug("Rolling back memory transaction")
                raise
            tx.commit()

    def size(self) -> int:
        return len(self._data)


class _RedisTransaction:
    """Reads go straight to Redis; writes queue on a MULTI/EXEC pipeline."""

    def __init__(self, client: "redis.Redis", pipeline, writable: bool):
        self._client = client
        self._pipeline = pipeline
        self._writable = writable

    async def get(self, key: str) -> str:
        value = await self._client.get(key)
        if value is None:
            raise CacheKeyNotFound(key)
        return value

    async def set(self, key: str, value: str) -> None:
        self._check_writable()
        self._pipeline.set(key, value)

    async def delete(self, key: str) -> None:
        self._check_writable()
        self._pipeline.delete(key)

    def _check_writable(self) -> None:
        if not self._writable:
            raise ReadOnlyTransaction("transaction is read-only")


class RedisKeyValueStore:
    """Redis-backed store shared by every replica of the service."""

    def __init__(self, redis_url: str, client: Optional["redis.Redis"] = None):
        self.redis_url = redis_url
        self.logger = get_logger("auth.cache.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Start the Redis connection."""
        if self.redis is not None:
            return
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

            # Test connection
            await self.redis.ping()

            self.logger.info("Redis cache started")

        except Exception as e:
            self.logger.error("Failed to start Redis cache", error=str(e))
            raise AccessLayerException("REDIS_START_FAILED", str(e))

    async def stop(self):
        """Stop the Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    @asynccontextmanager
    async def transaction(self, write: bool = False) -> AsyncIterator[_RedisTransaction]:
        if self.redis is None:
            raise AccessLayerException("REDIS_NOT_STARTED", "Redis cache has not been started")

        pipeline = self.redis.pipeline(transaction=True)
        try:
            yield _RedisTransaction(self.redis, pipeline, writable=write)
            if write:
                await pipeline.execute()
        finally:
            await pipeline.reset()

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self.redis.ping()
            return True
        except Exception:
            return False
