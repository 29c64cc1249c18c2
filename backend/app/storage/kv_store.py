"""
PURPOSE: Key-value persistence backends for strategy collections and user profiles.

The lifecycle service stores whole serialized collections under a handful of
keys ("savedStrategies", "publishedStrategies", "userProfile_<address>").
Every mutation rewrites the full value; there are no per-record writes.

Backends:
    - InMemoryKVStore: process-local dict, used by default and in tests
    - RedisKVStore: shared store via redis.asyncio, enabled with STORAGE_BACKEND=redis

CALLED BY:
    - services/strategy_service.py
    - main.py (backend selection at startup)
"""

from typing import Optional, Protocol

import redis.asyncio as redis

from app.config.constants import StorageBackend
from app.config.settings import Settings
from app.utils.logger import get_logger

logger = get_logger("storage.kv_store")


class KeyValueStore(Protocol):
    """Async key-value contract consumed by the lifecycle service."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...


class InMemoryKVStore:
    """Process-local store. Values are kept as the serialized strings written."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class RedisKVStore:
    """
    Redis-backed store so several API processes share one strategy collection.

    Attributes:
        _redis_url: Redis connection URL.
        _prefix: Namespace prepended to every key.
        _redis: Async Redis client, created lazily or injected.
    """

    def __init__(
        self,
        redis_url: str,
        prefix: str = "forge:",
        client: Optional[redis.Redis] = None,
    ) -> None:
        self._redis_url = redis_url
        self._prefix = prefix
        self._redis: Optional[redis.Redis] = client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def connect(self) -> None:
        """
        Establish the Redis connection and verify it with PING.

        Raises:
            redis.RedisError: If the server is unreachable.
        """
        try:
            if self._redis is None:
                self._redis = redis.from_url(self._redis_url, decode_responses=True)
            await self._redis.ping()
            logger.info("redis_connected", redis_url=self._redis_url)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            raise

    async def disconnect(self) -> None:
        if self._redis:
            try:
                await self._redis.aclose()
                logger.info("redis_disconnected")
            except Exception as e:
                logger.error("redis_disconnection_failed", error=str(e))

    async def get(self, key: str) -> Optional[str]:
        if self._redis is None:
            await self.connect()
        return await self._redis.get(self._key(key))

    async def set(self, key: str, value: str) -> bool:
        if self._redis is None:
            await self.connect()
        try:
            return bool(await self._redis.set(self._key(key), value))
        except redis.RedisError as e:
            logger.error("redis_set_failed", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        if self._redis is None:
            await self.connect()
        return bool(await self._redis.delete(self._key(key)))


def build_store(config: Settings) -> KeyValueStore:
    """
    PURPOSE: Instantiate the persistence backend named by STORAGE_BACKEND.

    Args:
        config: Application settings.

    Returns:
        KeyValueStore: RedisKVStore for "redis", InMemoryKVStore otherwise.
    """
    backend = config.STORAGE_BACKEND.strip().lower()
    if backend == StorageBackend.REDIS.value:
        logger.info("storage_backend_selected", backend=backend)
        return RedisKVStore(config.REDIS_URL, prefix=config.REDIS_KEY_PREFIX)

    if backend != StorageBackend.MEMORY.value:
        logger.warning("unknown_storage_backend", backend=backend, fallback="memory")
    return InMemoryKVStore()
