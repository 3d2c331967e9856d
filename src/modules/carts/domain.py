"""Shopping cart aggregate.

The cart lives only in the cache store (key ``cart:<user_id>``), so it is
a pydantic model serialised to JSON rather than a Django model.  Line
prices are snapshots taken when the product was added.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from django.utils import timezone
from pydantic import BaseModel, Field

from modules.orders.pricing import line_subtotal

ZERO = Decimal("0.00")


class CartItem(BaseModel):
    product_id: UUID
    quantity: int
    price: Decimal
    subtotal: Decimal
    added_at: datetime = Field(default_factory=timezone.now)


class Cart(BaseModel):
    user_id: UUID
    items: List[CartItem] = Field(default_factory=list)
    total: Decimal = ZERO
    item_count: int = 0
    created_at: datetime = Field(default_factory=timezone.now)
    updated_at: datetime = Field(default_factory=timezone.now)

    def find_item(self, product_id: UUID) -> Optional[CartItem]:
        return next((i for i in self.items if i.product_id == product_id), None)

    def quantity_of(self, product_id: UUID) -> int:
        item = self.find_item(product_id)
        return item.quantity if item else 0

    def add_item(self, product_id: UUID, quantity: int, price: Decimal) -> None:
        """Add a line, or grow the existing line for the same product.

        An existing line keeps its original price snapshot.
        """
        item = self.find_item(product_id)
        if item:
            item.quantity += quantity
            item.subtotal = line_subtotal(item.price, item.quantity)
        else:
            self.items.append(
                CartItem(
                    product_id=product_id,
                    quantity=quantity,
                    price=price,
                    subtotal=line_subtotal(price, quantity),
                )
            )
        self._touch()

    def update_item_quantity(self, product_id: UUID, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(product_id)
            return
        item = self.find_item(product_id)
        if item:
            item.quantity = quantity
            item.subtotal = line_subtotal(item.price, quantity)
            self._touch()

    def remove_item(self, product_id: UUID) -> None:
        self.items = [i for i in self.items if i.product_id != product_id]
        self._touch()

    def clear(self) -> None:
        self.items = []
        self._touch()

    def is_empty(self) -> bool:
        return not self.items

    def _touch(self) -> None:
        self.total = sum((i.subtotal for i in self.items), ZERO)
        self.item_count = sum(i.quantity for i in self.items)
        self.updated_at = timezone.now()
