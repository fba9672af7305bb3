"""Durable key-value storage backends for the cart."""
import logging
from typing import Dict, Optional, Protocol, runtime_checkable

from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential
from upstash_redis.asyncio import Redis as AsyncRedis

from cartstore.db import CART_WRITE_RETRIES, TTL, get_redis
from cartstore.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class KeyValueStorage(Protocol):
    """What the cart store needs from durable storage."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class RedisStorage:
    """
    Upstash Redis backed storage.

    Features:
    - Lazy client initialization from UPSTASH_* env vars
    - Optional TTL on the cart key
    - Retries with exponential backoff on write
    """

    def __init__(
        self,
        redis: Optional[AsyncRedis] = None,
        ttl: int = TTL.CART,
        retries: int = CART_WRITE_RETRIES,
        backoff: float = 0.5,
    ):
        self._redis = redis
        self._ttl = ttl
        self._retries = max(1, retries)
        self._backoff = backoff

    @property
    def redis(self) -> AsyncRedis:
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis()
            except ValueError as e:
                raise ValueError(f"Redis not available: {e}") from e
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(key)
        except Exception as e:
            logger.error(f"Failed to read {key} from Redis: {e}")
            raise

    async def set(self, key: str, value: str) -> None:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=self._backoff, max=5),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                if self._ttl:
                    await self.redis.set(key, value, ex=self._ttl)
                else:
                    await self.redis.set(key, value)


class MemoryStorage:
    """Process-local storage. Survives store restarts, not process restarts."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value
