"""Unit tests for the Cart aggregate."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.carts.domain import Cart

pytestmark = pytest.mark.unit


@pytest.fixture()
def cart():
    return Cart(user_id=uuid4())


class TestCart:
    def test_new_cart_is_empty(self, cart):
        assert cart.is_empty()
        assert cart.total == Decimal("0.00")
        assert cart.item_count == 0

    def test_add_item_recalculates_totals(self, cart):
        pid = uuid4()
        cart.add_item(pid, 2, Decimal("12.50"))
        assert cart.total == Decimal("25.00")
        assert cart.item_count == 2
        assert cart.find_item(pid).subtotal == Decimal("25.00")

    def test_adding_same_product_merges_and_keeps_price(self, cart):
        pid = uuid4()
        cart.add_item(pid, 1, Decimal("10.00"))
        cart.add_item(pid, 2, Decimal("99.00"))
        assert len(cart.items) == 1
        assert cart.quantity_of(pid) == 3
        assert cart.total == Decimal("30.00")

    def test_update_quantity(self, cart):
        pid = uuid4()
        cart.add_item(pid, 1, Decimal("4.00"))
        cart.update_item_quantity(pid, 5)
        assert cart.total == Decimal("20.00")

    def test_update_to_zero_removes_line(self, cart):
        pid = uuid4()
        cart.add_item(pid, 1, Decimal("4.00"))
        cart.update_item_quantity(pid, 0)
        assert cart.is_empty()

    def test_remove_and_clear(self, cart):
        a, b = uuid4(), uuid4()
        cart.add_item(a, 1, Decimal("1.00"))
        cart.add_item(b, 1, Decimal("2.00"))
        cart.remove_item(a)
        assert cart.quantity_of(a) == 0
        assert cart.total == Decimal("2.00")
        cart.clear()
        assert cart.is_empty()
        assert cart.item_count == 0

    def test_json_round_trip(self, cart):
        cart.add_item(uuid4(), 3, Decimal("1.10"))
        restored = Cart.model_validate_json(cart.model_dump_json())
        assert restored == cart
