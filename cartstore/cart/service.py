"""Cart store: in-memory cart with write-behind persistence."""
import asyncio
import contextlib
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from cartstore.cart.events import Disposer, Listener, Subscribers
from cartstore.cart.models import Cart, LineItem, ProductInput
from cartstore.cart.storage import KeyValueStorage, RedisStorage
from cartstore.db import RedisKeys
from cartstore.errors import (
    ERROR_STORAGE_WRITE,
    ERROR_STORE_ALREADY_INITIALIZED,
    ERROR_STORE_CLOSED,
    ERROR_STORE_NOT_INITIALIZED,
    HydrationError,
    StorageWriteError,
    UsageError,
)
from cartstore.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

WriteErrorHandler = Callable[[StorageWriteError], None]


class CartStore:
    """
    Owns the cart for one session and keeps durable storage in sync.

    Mutations apply to memory synchronously, notify subscribers and queue
    a write of the full cart. A single background task drains the queue,
    so writes from this store reach storage in the order they were issued.
    Write failures never roll back memory; they are logged, kept in
    ``last_write_error`` and passed to ``on_write_error``.

    Lifecycle: construct, ``await load()`` once, mutate, ``await close()``.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        key: Optional[str] = None,
        on_write_error: Optional[WriteErrorHandler] = None,
        namespace: Optional[str] = None,
    ):
        self._storage = storage if storage is not None else RedisStorage()
        # An explicit key wins over a namespaced one
        self._key = key or RedisKeys.cart_key(namespace)
        self._on_write_error = on_write_error
        self._cart = Cart()
        self._subscribers = Subscribers()
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._hydration: Optional[asyncio.Task] = None
        self._ready = False
        self._closed = False
        # Mutated before hydration finished
        self._dirty = False
        self.hydration_error: Optional[HydrationError] = None
        self.last_write_error: Optional[StorageWriteError] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def key(self) -> str:
        return self._key

    @property
    def ready(self) -> bool:
        """True once hydration has finished, successfully or not."""
        return self._ready

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def products(self) -> Tuple[LineItem, ...]:
        """Read-only snapshot of the cart in display order."""
        self._check_open()
        return self._cart.snapshot()

    @property
    def total_quantity(self) -> int:
        self._check_open()
        return self._cart.total_quantity

    @property
    def pending_writes(self) -> int:
        return self._queue.qsize()

    def get(self, product_id: str) -> Optional[LineItem]:
        self._check_open()
        return self._cart.get(product_id)

    def __len__(self) -> int:
        self._check_open()
        return len(self._cart)

    def __contains__(self, product_id: object) -> bool:
        self._check_open()
        return product_id in self._cart

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    async def load(self) -> Tuple[LineItem, ...]:
        """
        Hydrate the cart from durable storage.

        Storage is read once. Concurrent and later calls wait for that first
        hydration and return the current snapshot without reading again.

        Unparsable data or a failed read leaves the cart empty instead of
        raising; the parse error is kept in ``hydration_error``.
        """
        self._check_open()
        if self._hydration is None:
            self._hydration = asyncio.get_running_loop().create_task(self._hydrate())
        # Shield so a cancelled caller does not cancel hydration for the others
        await asyncio.shield(self._hydration)
        return self._cart.snapshot()

    async def _hydrate(self) -> None:
        stored = Cart()
        try:
            raw = await self._storage.get(self._key)
            if raw is not None:
                stored = Cart.from_json(raw)
        except HydrationError as e:
            self.hydration_error = e
            logger.warning(f"Corrupted cart under {self._key!r}, starting empty: {e}")
        except Exception as e:
            logger.error(f"Failed to read cart under {self._key!r}, starting empty: {e}", exc_info=True)

        if self._dirty:
            logger.warning(
                f"Cart changed before hydration finished; keeping in-memory cart "
                f"({len(self._cart)} items) over stored one ({len(stored)} items)"
            )
        else:
            self._cart = stored

        self._ready = True
        self._start_writer()
        logger.info(f"Cart hydrated from {self._key!r}: {len(self._cart)} items")
        self._subscribers.emit(self._cart.snapshot())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_to_cart(self, product: Union[ProductInput, Mapping[str, Any]]) -> LineItem:
        """
        Add one unit of a product.

        A product not yet in the cart is inserted with quantity 1; a product
        already in the cart has its quantity increased by 1.

        Raises:
            pydantic.ValidationError: product descriptor is malformed
        """
        self._check_open()
        if not isinstance(product, ProductInput):
            product = ProductInput.model_validate(product)

        item = self._cart.add(product)
        logger.debug(f"Added {sanitize_id_for_logging(item.id)} (quantity={item.quantity})")
        self._commit()
        return item

    def increment(self, product_id: str) -> Optional[LineItem]:
        """Add one unit of a product already in the cart. Missing ids are ignored."""
        self._check_open()
        if not self._cart.increment(product_id):
            logger.debug(f"Increment ignored, {sanitize_id_for_logging(product_id)} not in cart")
            return None
        self._commit()
        return self._cart.get(product_id)

    def decrement(self, product_id: str) -> Optional[LineItem]:
        """
        Remove one unit of a product; the line item is dropped at zero.

        Returns the updated item, or None if it was removed or never there.
        """
        self._check_open()
        if not self._cart.decrement(product_id):
            logger.debug(f"Decrement ignored, {sanitize_id_for_logging(product_id)} not in cart")
            return None
        self._commit()
        return self._cart.get(product_id)

    def _commit(self) -> None:
        if not self._ready:
            self._dirty = True
        self._queue.put_nowait(self._cart.to_json())
        self._subscribers.emit(self._cart.snapshot())

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Disposer:
        """
        Call ``listener`` with the latest snapshot after every change.

        Returns a function that unregisters the listener.
        """
        self._check_open()
        return self._subscribers.add(listener)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _start_writer(self) -> None:
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(self._write_loop())

    async def _write_loop(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self._storage.set(self._key, payload)
            except Exception as e:
                self._report_write_error(e)
            finally:
                self._queue.task_done()

    def _report_write_error(self, cause: Exception) -> None:
        error = StorageWriteError(f"{ERROR_STORAGE_WRITE} under {self._key!r}: {cause}", self._key)
        error.__cause__ = cause
        self.last_write_error = error
        logger.error(str(error), exc_info=cause)

        if self._on_write_error is not None:
            try:
                self._on_write_error(error)
            except Exception:
                logger.exception("Cart write error handler failed")

    async def flush(self) -> None:
        """Wait until every queued write has been attempted."""
        self._start_writer()
        await self._queue.join()

    async def close(self) -> None:
        """Flush pending writes, stop the writer and drop subscribers."""
        if self._closed:
            return
        await self.flush()
        if self._writer is not None:
            self._writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer
            self._writer = None
        self._subscribers.clear()
        self._closed = True
        logger.debug(f"Cart store for {self._key!r} closed")

    def _check_open(self) -> None:
        if self._closed:
            raise UsageError(ERROR_STORE_CLOSED)


# Process-wide handle
_cart_store: Optional[CartStore] = None


async def init_cart_store(
    storage: Optional[KeyValueStorage] = None,
    key: Optional[str] = None,
    on_write_error: Optional[WriteErrorHandler] = None,
    namespace: Optional[str] = None,
) -> CartStore:
    """
    Create, hydrate and register the process-wide cart store.

    ``namespace`` (e.g. a session id) prefixes the storage key:
    ``<namespace>:products``.
    """
    global _cart_store
    if _cart_store is not None:
        raise UsageError(ERROR_STORE_ALREADY_INITIALIZED)

    store = CartStore(
        storage=storage, key=key, on_write_error=on_write_error, namespace=namespace
    )
    _cart_store = store
    await store.load()
    return store


def get_cart_store() -> CartStore:
    """Get the process-wide cart store. Raises UsageError before init."""
    if _cart_store is None:
        raise UsageError(ERROR_STORE_NOT_INITIALIZED)
    return _cart_store


async def close_cart_store() -> None:
    """Close and unregister the process-wide cart store, if any."""
    global _cart_store
    store, _cart_store = _cart_store, None
    if store is not None:
        await store.close()
