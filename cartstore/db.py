"""
Storage Configuration - Upstash Redis Client

Provides the environment configuration for cart persistence and a
singleton async Upstash Redis client used as the durable key-value store.
"""

import os
from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis


# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart persistence
CART_STORAGE_KEY = os.environ.get("CART_STORAGE_KEY", "products")
CART_TTL_SECONDS = int(os.environ.get("CART_TTL_SECONDS", "0"))
CART_WRITE_RETRIES = int(os.environ.get("CART_WRITE_RETRIES", "3"))


_redis_client: Optional[AsyncRedis] = None


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


class RedisKeys:
    """Redis keys used by the cart store."""

    # Whole cart, serialized as a JSON array of line items
    PRODUCTS = CART_STORAGE_KEY

    @staticmethod
    def cart_key(namespace: str | None = None) -> str:
        if not namespace:
            return RedisKeys.PRODUCTS
        return f"{namespace}:{RedisKeys.PRODUCTS}"


class TTL:
    """Time-to-live constants for Redis keys (0 disables expiry)."""

    CART = CART_TTL_SECONDS
