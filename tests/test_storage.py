"""Tests for storage backends"""
import pytest
from unittest.mock import AsyncMock

from cartstore import db
from cartstore.cart.storage import KeyValueStorage, MemoryStorage, RedisStorage


@pytest.fixture
def mock_redis():
    """Mock async Upstash Redis client"""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    return redis


def test_backends_satisfy_protocol(mock_redis):
    """Test both backends implement the storage protocol"""
    assert isinstance(MemoryStorage(), KeyValueStorage)
    assert isinstance(RedisStorage(redis=mock_redis), KeyValueStorage)


@pytest.mark.asyncio
async def test_memory_storage_get_set():
    """Test memory storage stores strings by key"""
    storage = MemoryStorage()

    assert await storage.get("products") is None
    await storage.set("products", "[]")
    assert await storage.get("products") == "[]"


@pytest.mark.asyncio
async def test_redis_get(mock_redis):
    """Test reading a key from Redis"""
    mock_redis.get.return_value = "[]"
    storage = RedisStorage(redis=mock_redis)

    assert await storage.get("products") == "[]"
    mock_redis.get.assert_awaited_once_with("products")


@pytest.mark.asyncio
async def test_redis_get_error_propagates(mock_redis):
    """Test read failures are raised to the caller"""
    mock_redis.get.side_effect = ConnectionError("down")
    storage = RedisStorage(redis=mock_redis)

    with pytest.raises(ConnectionError):
        await storage.get("products")


@pytest.mark.asyncio
async def test_redis_set_without_ttl(mock_redis):
    """Test writes without expiry"""
    storage = RedisStorage(redis=mock_redis, ttl=0)

    await storage.set("products", "[]")

    mock_redis.set.assert_awaited_once_with("products", "[]")


@pytest.mark.asyncio
async def test_redis_set_with_ttl(mock_redis):
    """Test writes carry the configured TTL"""
    storage = RedisStorage(redis=mock_redis, ttl=86400)

    await storage.set("products", "[]")

    mock_redis.set.assert_awaited_once_with("products", "[]", ex=86400)


@pytest.mark.asyncio
async def test_redis_set_retries(mock_redis):
    """Test a transient write failure is retried"""
    mock_redis.set.side_effect = [ConnectionError("blip"), True]
    storage = RedisStorage(redis=mock_redis, ttl=0, retries=3, backoff=0)

    await storage.set("products", "[]")

    assert mock_redis.set.await_count == 2


@pytest.mark.asyncio
async def test_redis_set_gives_up(mock_redis):
    """Test the last error is raised once retries are exhausted"""
    mock_redis.set.side_effect = ConnectionError("down")
    storage = RedisStorage(redis=mock_redis, ttl=0, retries=2, backoff=0)

    with pytest.raises(ConnectionError):
        await storage.set("products", "[]")
    assert mock_redis.set.await_count == 2


def test_redis_requires_credentials(monkeypatch):
    """Test a clear error when Upstash credentials are missing"""
    monkeypatch.setattr(db, "UPSTASH_REDIS_REST_URL", "")
    monkeypatch.setattr(db, "UPSTASH_REDIS_REST_TOKEN", "")
    monkeypatch.setattr(db, "_redis_client", None)

    with pytest.raises(ValueError, match="Redis not available"):
        RedisStorage().redis


def test_cart_key_namespace():
    """Test namespaced cart keys"""
    assert db.RedisKeys.cart_key() == "products"
    assert db.RedisKeys.cart_key("user-1") == "user-1:products"
