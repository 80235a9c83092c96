"""
Pure cart aggregation.

A ``Cart`` accumulates menu item lines for one restaurant and computes the
totals shown at checkout. It knows nothing about storage: the cart session
service loads lines into a ``Cart``, applies a mutation and writes the lines
back. Malformed mutations raise ``InvalidInput`` rather than being ignored.
"""
from dataclasses import dataclass, field
from typing import Iterable, Optional

from shared.exceptions import InvalidInput, NotFound


@dataclass
class CartLine:
    item_id: int
    name: str
    unit_price: float
    quantity: int
    restaurant_id: int
    image: Optional[str] = None

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


@dataclass
class CartSummary:
    subtotal: float
    delivery_fee: float
    total: float
    item_count: int


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)

    @classmethod
    def from_lines(cls, lines: Iterable[CartLine]) -> "Cart":
        return cls(lines=list(lines))

    @property
    def restaurant_id(self) -> Optional[int]:
        return self.lines[0].restaurant_id if self.lines else None

    def find(self, item_id: int) -> Optional[CartLine]:
        return next((line for line in self.lines if line.item_id == item_id), None)

    def add(self, item: CartLine, quantity: int = 1) -> "Cart":
        """Add ``quantity`` of ``item``, merging with an existing line for the same item."""
        if item is None or item.item_id is None:
            raise InvalidInput("Cart item must have an identifier")
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1")
        if item.unit_price is None or item.unit_price < 0:
            raise InvalidInput("Cart item must have a non-negative price")
        if self.restaurant_id is not None and item.restaurant_id != self.restaurant_id:
            raise InvalidInput(
                "Cart already holds items from another restaurant; clear it first"
            )

        existing = self.find(item.item_id)
        if existing:
            existing.quantity += quantity
        else:
            self.lines.append(
                CartLine(
                    item_id=item.item_id,
                    name=item.name,
                    unit_price=item.unit_price,
                    quantity=quantity,
                    restaurant_id=item.restaurant_id,
                    image=item.image,
                )
            )
        return self

    def update_quantity(self, item_id: int, quantity: int) -> "Cart":
        if item_id is None:
            raise InvalidInput("Cart item must have an identifier")
        if quantity < 1:
            return self.remove(item_id)
        line = self.find(item_id)
        if line is None:
            raise NotFound("Item is not in the cart")
        line.quantity = quantity
        return self

    def remove(self, item_id: int) -> "Cart":
        self.lines = [line for line in self.lines if line.item_id != item_id]
        return self

    def clear(self) -> "Cart":
        self.lines = []
        return self

    def total(self) -> float:
        """Sum of line totals, without the delivery fee."""
        return round(sum(line.unit_price * line.quantity for line in self.lines), 2)

    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def summary(self, delivery_fee: float) -> CartSummary:
        subtotal = self.total()
        fee = delivery_fee if self.lines else 0.0
        return CartSummary(
            subtotal=subtotal,
            delivery_fee=fee,
            total=round(subtotal + fee, 2),
            item_count=self.count(),
        )

    def checkout_payload(self, delivery_fee: float) -> dict:
        """Order-creation lines (``itemId``, ``quantity``, display name and price) plus the totals."""
        if not self.lines:
            raise InvalidInput("Cart is empty")
        summary = self.summary(delivery_fee)
        return {
            "restaurantId": self.restaurant_id,
            "items": [
                {
                    "itemId": line.item_id,
                    "name": line.name,
                    "price": line.unit_price,
                    "quantity": line.quantity,
                }
                for line in self.lines
            ],
            "subtotal": summary.subtotal,
            "deliveryFee": summary.delivery_fee,
            "total": summary.total,
        }
