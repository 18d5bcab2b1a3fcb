import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from freshcart.client.storage import KeyValueStorage
from freshcart.pricing import display_amount, subtotal_of, to_decimal

log = logging.getLogger("cart")

CART_KEY = "cart"


@dataclass
class CartLine:
    product_id: int
    name: str
    price: Decimal
    image_url: Optional[str]
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_storage(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "image_url": self.image_url,
            "quantity": self.quantity,
        }

    @classmethod
    def from_storage(cls, raw: Dict[str, Any]) -> "CartLine":
        return cls(
            product_id=int(raw["productId"]),
            name=raw.get("name", ""),
            price=to_decimal(raw["price"]),
            image_url=raw.get("image_url"),
            quantity=int(raw["quantity"]),
        )


class Cart:
    """
    The shopper's basket: one line per product, quantities >= 1.

    Every mutation first re-reads storage and then writes straight through,
    so the cart survives restarts and picks up edits made by another
    storefront sharing the same profile.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self._lines: List[CartLine] = []
        self._load()

    def _load(self) -> None:
        raw = self.storage.get(CART_KEY) or []
        lines: List[CartLine] = []
        for entry in raw:
            try:
                line = CartLine.from_storage(entry)
            except (KeyError, TypeError, ValueError, ArithmeticError):
                log.warning("dropping unreadable cart entry %r", entry)
                continue
            if line.quantity >= 1 and all(l.product_id != line.product_id for l in lines):
                lines.append(line)
        self._lines = lines

    def _save(self) -> None:
        self.storage.set(CART_KEY, [l.to_storage() for l in self._lines])

    def _find(self, product_id: int) -> Optional[CartLine]:
        return next((l for l in self._lines if l.product_id == int(product_id)), None)

    def add_item(self, product: Any) -> CartLine:
        """Add one unit of ``product`` (an item dict or object with id/name/price)."""
        get = product.get if isinstance(product, dict) else lambda k: getattr(product, k, None)
        product_id = int(get("id"))
        self._load()
        line = self._find(product_id)
        if line:
            line.quantity += 1
        else:
            line = CartLine(
                product_id=product_id,
                name=get("name") or "",
                price=to_decimal(get("price")),
                image_url=get("image_url"),
                quantity=1,
            )
            self._lines.append(line)
        self._save()
        log.debug("cart add product_id=%s quantity=%s", product_id, line.quantity)
        return line

    def set_quantity(self, product_id: int, quantity: int) -> None:
        """Zero or less removes the line; unknown products are ignored."""
        self._load()
        line = self._find(product_id)
        if not line:
            return
        if quantity <= 0:
            self.remove(product_id)
            return
        line.quantity = int(quantity)
        self._save()

    def remove(self, product_id: int) -> None:
        self._load()
        before = len(self._lines)
        self._lines = [l for l in self._lines if l.product_id != int(product_id)]
        if len(self._lines) != before:
            self._save()

    def clear(self) -> None:
        self._lines = []
        self.storage.remove(CART_KEY)

    def lines(self) -> List[CartLine]:
        return list(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def item_count(self) -> int:
        return sum(l.quantity for l in self._lines)

    def total(self) -> Decimal:
        """Unrounded sum; use :meth:`display_total` for presentation."""
        return subtotal_of(self._lines)

    def display_total(self) -> Decimal:
        return display_amount(self.total())
