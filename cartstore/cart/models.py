"""Cart models and the JSON codec used for durable storage."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from cartstore.errors import (
    ERROR_DUPLICATE_ID,
    ERROR_INVALID_ITEM,
    ERROR_INVALID_JSON,
    ERROR_NOT_A_LIST,
    HydrationError,
)


class ProductInput(BaseModel):
    """Product descriptor passed to add_to_cart (no quantity)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str
    image_url: str = Field(validation_alias=AliasChoices("image_url", "imageUrl"))
    price: float


class LineItem(ProductInput):
    """Single product in the cart. Quantity is always >= 1."""

    quantity: int = Field(ge=1)

    @classmethod
    def from_product(cls, product: ProductInput, quantity: int = 1) -> "LineItem":
        return cls(
            id=product.id,
            title=product.title,
            image_url=product.image_url,
            price=product.price,
            quantity=quantity,
        )

    def with_quantity(self, quantity: int) -> "LineItem":
        """Return a copy with a new quantity; id, title, image and price are kept."""
        return self.model_copy(update={"quantity": quantity})


_line_items = TypeAdapter(list[LineItem])


@dataclass
class Cart:
    """
    Ordered mapping of product id to line item.

    Insertion order is kept for display. Entries are frozen models, so the
    tuples returned by snapshot() can be handed to consumers as-is.
    """

    entries: Dict[str, LineItem] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self.entries

    def get(self, product_id: str) -> Optional[LineItem]:
        return self.entries.get(product_id)

    @property
    def total_quantity(self) -> int:
        """Total number of units across all line items."""
        return sum(item.quantity for item in self.entries.values())

    def snapshot(self) -> Tuple[LineItem, ...]:
        return tuple(self.entries.values())

    def add(self, product: ProductInput) -> LineItem:
        """Insert a new product with quantity 1, or bump an existing one."""
        existing = self.entries.get(product.id)
        if existing is None:
            item = LineItem.from_product(product)
        else:
            item = existing.with_quantity(existing.quantity + 1)
        self.entries[product.id] = item
        return item

    def increment(self, product_id: str) -> bool:
        """Add one unit. Returns False when the product is not in the cart."""
        existing = self.entries.get(product_id)
        if existing is None:
            return False
        self.entries[product_id] = existing.with_quantity(existing.quantity + 1)
        return True

    def decrement(self, product_id: str) -> bool:
        """
        Remove one unit, dropping the line item when it reaches zero.

        Returns False when the product is not in the cart.
        """
        existing = self.entries.get(product_id)
        if existing is None:
            return False
        if existing.quantity <= 1:
            del self.entries[product_id]
        else:
            self.entries[product_id] = existing.with_quantity(existing.quantity - 1)
        return True

    def to_list(self) -> list[dict[str, Any]]:
        """Convert to a list of plain records for storage."""
        return [item.model_dump() for item in self.entries.values()]

    def to_json(self) -> str:
        """Serialize as a JSON array of line items."""
        return json.dumps(self.to_list())

    @classmethod
    def from_list(cls, data: Any) -> "Cart":
        """
        Build a cart from decoded storage records.

        Raises:
            HydrationError: data is not a list, a record is invalid, or an
                id appears twice
        """
        if not isinstance(data, list):
            raise HydrationError(ERROR_NOT_A_LIST)
        try:
            items = _line_items.validate_python(data)
        except ValidationError as e:
            raise HydrationError(f"{ERROR_INVALID_ITEM}: {e.error_count()} error(s)") from e

        entries: Dict[str, LineItem] = {}
        for item in items:
            if item.id in entries:
                raise HydrationError(f"{ERROR_DUPLICATE_ID}: {item.id!r}")
            entries[item.id] = item
        return cls(entries=entries)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Cart":
        """Deserialize a stored JSON array. Raises HydrationError on bad data."""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
            raise HydrationError(ERROR_INVALID_JSON) from e
        return cls.from_list(data)
