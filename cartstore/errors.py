"""
Cart Errors

Error message constants (kept in one place to avoid string duplication)
and the exception types raised by the cart store.
"""

# Lifetime errors
ERROR_STORE_NOT_INITIALIZED = "Cart store is not initialized; call init_cart_store() first"
ERROR_STORE_CLOSED = "Cart store is closed"
ERROR_STORE_ALREADY_INITIALIZED = "Cart store is already initialized"

# Hydration errors
ERROR_INVALID_JSON = "Stored cart is not valid JSON"
ERROR_NOT_A_LIST = "Stored cart must be a JSON array"
ERROR_INVALID_ITEM = "Stored cart contains an invalid line item"
ERROR_DUPLICATE_ID = "Stored cart contains duplicate product id"

# Storage errors
ERROR_STORAGE_WRITE = "Failed to persist cart"


class CartError(Exception):
    """Base class for cart store errors."""


class HydrationError(CartError):
    """Persisted cart data could not be parsed at startup."""


class StorageWriteError(CartError):
    """Writing the cart to durable storage failed.

    The in-memory cart is left as it was after the mutation; only the
    durable copy is stale.
    """

    def __init__(self, message: str, key: str):
        super().__init__(message)
        self.key = key


class UsageError(CartError):
    """Cart store used outside its lifetime (not initialized or closed)."""


__all__ = [
    "CartError",
    "HydrationError",
    "StorageWriteError",
    "UsageError",
    "ERROR_STORE_NOT_INITIALIZED",
    "ERROR_STORE_CLOSED",
    "ERROR_STORE_ALREADY_INITIALIZED",
    "ERROR_INVALID_JSON",
    "ERROR_NOT_A_LIST",
    "ERROR_INVALID_ITEM",
    "ERROR_DUPLICATE_ID",
    "ERROR_STORAGE_WRITE",
]
