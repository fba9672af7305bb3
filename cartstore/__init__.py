"""cartstore - in-memory shopping cart with durable key-value persistence."""
from cartstore.cart import (
    Cart,
    CartStore,
    LineItem,
    MemoryStorage,
    ProductInput,
    RedisStorage,
    close_cart_store,
    get_cart_store,
    init_cart_store,
)
from cartstore.errors import CartError, HydrationError, StorageWriteError, UsageError

__version__ = "0.1.0"

__all__ = [
    "Cart",
    "CartStore",
    "LineItem",
    "MemoryStorage",
    "ProductInput",
    "RedisStorage",
    "init_cart_store",
    "get_cart_store",
    "close_cart_store",
    "CartError",
    "HydrationError",
    "StorageWriteError",
    "UsageError",
]
