import threading
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..models.models import CartItem, Product, items_total


class CartStore:
    """In-memory shopping cart for one user.

    Holds at most one line per product id, every line with quantity >= 1,
    in the order products were first added. Totals are derived from the
    lines on every read. All mutations go through an RLock, so interleaved
    calls never see a half-applied change. Unknown ids are silently
    ignored; no method raises for them.
    """

    def __init__(self, items: Optional[Iterable[CartItem]] = None):
        self._lock = threading.RLock()
        self._items: Dict[str, CartItem] = {}
        if items:
            self.merge(items)

    def add_item(self, product: Product) -> None:
        with self._lock:
            item = self._items.get(product.id)
            if item:
                item.quantity += 1
            else:
                self._items[product.id] = CartItem(product=product, quantity=1)

    def update_quantity(self, product_id: str, quantity: int) -> None:
        with self._lock:
            if quantity <= 0:
                self._items.pop(product_id, None)
                return
            item = self._items.get(product_id)
            if item:
                item.quantity = quantity

    def remove_item(self, product_id: str) -> None:
        with self._lock:
            self._items.pop(product_id, None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def merge(self, items: Iterable[CartItem]) -> None:
        """Fold items into the cart, summing quantities for known ids."""
        with self._lock:
            for incoming in items:
                if incoming.quantity <= 0:
                    continue
                item = self._items.get(incoming.id)
                if item:
                    item.quantity += incoming.quantity
                else:
                    self._items[incoming.id] = incoming.copy()

    def get(self, product_id: str) -> Optional[CartItem]:
        with self._lock:
            item = self._items.get(product_id)
            return item.copy() if item else None

    @property
    def items(self) -> List[CartItem]:
        with self._lock:
            return [item.copy() for item in self._items.values()]

    @property
    def total(self) -> Decimal:
        with self._lock:
            return items_total(list(self._items.values()))

    @property
    def item_count(self) -> int:
        with self._lock:
            return sum(item.quantity for item in self._items.values())

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [item.to_dict() for item in self._items.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[CartItem]:
        return iter(self.items)

    def __contains__(self, product_id: object) -> bool:
        with self._lock:
            return product_id in self._items

    # Locks can't be pickled; persistence stores only the lines.
    def __getstate__(self):
        with self._lock:
            return {'items': [item.copy() for item in self._items.values()]}

    def __setstate__(self, state):
        self._lock = threading.RLock()
        self._items = {}
        self.merge(state.get('items', []))

    def __repr__(self) -> str:
        return f"CartStore(lines={len(self)}, total={self.total})"
