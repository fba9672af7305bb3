"""Observer list for cart snapshot updates."""
from typing import Callable, List, Sequence, Tuple

from cartstore.cart.models import LineItem
from cartstore.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[Sequence[LineItem]], None]
Disposer = Callable[[], None]


class Subscribers:
    """
    Synchronous observer list.

    Listeners are called in registration order. An exception raised by one
    listener is logged and does not stop delivery to the rest.
    """

    def __init__(self):
        # (token, listener); the token tells apart repeat registrations of one callable
        self._listeners: List[Tuple[object, Listener]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: Listener) -> Disposer:
        """Register a listener and return a function that unregisters it."""
        token = object()
        self._listeners.append((token, listener))

        def dispose() -> None:
            self._listeners[:] = [entry for entry in self._listeners if entry[0] is not token]

        return dispose

    def emit(self, items: Sequence[LineItem]) -> None:
        # Copy so listeners may unsubscribe while being notified
        for _, listener in list(self._listeners):
            try:
                listener(items)
            except Exception:
                logger.exception(f"Cart listener {listener!r} failed")

    def clear(self) -> None:
        self._listeners.clear()
