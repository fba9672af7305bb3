"""Pytest configuration and fixtures"""
import asyncio
import os
import json
import pytest
from typing import Optional

# Keep Redis credentials out of the test run
os.environ.pop("UPSTASH_REDIS_REST_URL", None)
os.environ.pop("UPSTASH_REDIS_REST_TOKEN", None)
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from cartstore.cart import service
from cartstore.cart.storage import MemoryStorage


class GatedStorage(MemoryStorage):
    """Memory storage whose writes block until the gate is opened."""

    def __init__(self, data=None):
        super().__init__(data)
        self.gate = asyncio.Event()
        self.writes = []

    async def set(self, key: str, value: str) -> None:
        await self.gate.wait()
        self.writes.append(value)
        await super().set(key, value)


class FailingStorage(MemoryStorage):
    """Memory storage whose writes always fail."""

    async def set(self, key: str, value: str) -> None:
        raise ConnectionError("storage offline")


class SlowReadStorage(MemoryStorage):
    """Memory storage whose reads block until the gate is opened."""

    def __init__(self, data=None):
        super().__init__(data)
        self.gate = asyncio.Event()
        self.reads = 0

    async def get(self, key: str) -> Optional[str]:
        self.reads += 1
        await self.gate.wait()
        return await super().get(key)


class BrokenReadStorage(MemoryStorage):
    """Memory storage whose reads always fail."""

    async def get(self, key: str) -> Optional[str]:
        raise ConnectionError("storage offline")


@pytest.fixture
def storage():
    """Empty memory storage"""
    return MemoryStorage()


@pytest.fixture
def gated_storage():
    """Storage with blocking writes"""
    return GatedStorage()


@pytest.fixture
def failing_storage():
    """Storage with failing writes"""
    return FailingStorage()


@pytest.fixture
def broken_read_storage():
    """Storage with failing reads"""
    return BrokenReadStorage()


@pytest.fixture
def slow_read_storage(stored_cart):
    """Storage holding a cart, with blocking reads"""
    return SlowReadStorage({"products": stored_cart})


@pytest.fixture
def sample_product():
    """Sample product descriptor, as sent by the catalog"""
    return {
        "id": "p1",
        "title": "Shirt",
        "image_url": "u",
        "price": 10,
    }


@pytest.fixture
def other_product():
    """Second product descriptor"""
    return {
        "id": "p2",
        "title": "Hat",
        "image_url": "https://cdn.example.com/hat.png",
        "price": 24.5,
    }


@pytest.fixture
def stored_cart():
    """Serialized cart as found in durable storage"""
    return json.dumps([
        {"id": "p1", "title": "Shirt", "image_url": "u", "price": 10, "quantity": 2},
        {"id": "p2", "title": "Hat", "image_url": "h", "price": 24.5, "quantity": 1},
    ])


@pytest.fixture(autouse=True)
def reset_cart_store(monkeypatch):
    """Isolate the process-wide cart store between tests"""
    monkeypatch.setattr(service, "_cart_store", None)
    yield
