"""Cart package: models, storage, subscriptions and the store."""
from .models import Cart, LineItem, ProductInput
from .events import Subscribers
from .storage import KeyValueStorage, MemoryStorage, RedisStorage
from .service import CartStore, close_cart_store, get_cart_store, init_cart_store

__all__ = [
    "Cart",
    "LineItem",
    "ProductInput",
    "Subscribers",
    "KeyValueStorage",
    "MemoryStorage",
    "RedisStorage",
    "CartStore",
    "init_cart_store",
    "get_cart_store",
    "close_cart_store",
]
