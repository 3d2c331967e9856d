"""Unit tests for the Order and OrderItem models.

Covers:
- Forward transitions of the order status machine.
- Cancellation from every cancellable state.
- Payment transitions, refunds and terminal payment states.
- Totals calculation, structural validation and order number format.
"""

from __future__ import annotations

import re
from decimal import Decimal
from uuid import uuid4

import pytest
from freezegun import freeze_time

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.exceptions import InvalidOrderStatus, InvalidPaymentStatus
from modules.orders.models import Order, OrderItem

pytestmark = pytest.mark.unit

ADDRESS = {
    "street": "1 Elm St",
    "city": "Portland",
    "state": "OR",
    "zip_code": "97201",
    "country": "US",
}


def _order(status=OrderStatus.PENDING, payment_status=PaymentStatus.PENDING) -> Order:
    return Order(
        user_id=uuid4(),
        status=status,
        payment_status=payment_status,
        shipping_address=dict(ADDRESS),
    )


def _item(unit_price="10.00", quantity=1) -> OrderItem:
    item = OrderItem(
        product_id=uuid4(),
        product_name="Widget",
        unit_price=Decimal(unit_price),
        quantity=quantity,
    )
    item.calculate_subtotal()
    return item


# ---------------------------------------------------------------------------
# Order status machine
# ---------------------------------------------------------------------------


class TestForwardTransitions:
    def test_full_lifecycle(self):
        order = _order()
        order.confirm()
        order.process()
        order.ship()
        order.deliver()
        assert order.status == OrderStatus.DELIVERED
        assert order.is_completed
        assert order.is_terminal

    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        ],
    )
    def test_confirm_only_from_pending(self, status):
        order = _order(status=status)
        with pytest.raises(InvalidOrderStatus, match="Only pending orders can be confirmed"):
            order.confirm()
        assert order.status == status

    @pytest.mark.parametrize(
        "status, method",
        [
            (OrderStatus.PENDING, "process"),
            (OrderStatus.CONFIRMED, "ship"),
            (OrderStatus.PROCESSING, "deliver"),
            (OrderStatus.DELIVERED, "ship"),
        ],
    )
    def test_step_from_wrong_state_is_rejected(self, status, method):
        order = _order(status=status)
        with pytest.raises(InvalidOrderStatus):
            getattr(order, method)()
        assert order.status == status

    def test_error_message_names_expected_state(self):
        order = _order(status=OrderStatus.PENDING)
        with pytest.raises(InvalidOrderStatus, match="Only processing orders can be shipped"):
            order.ship()

    @freeze_time("2026-03-01 12:00:00")
    def test_ship_and_deliver_stamp_times(self):
        order = _order(status=OrderStatus.PROCESSING)
        order.ship()
        assert order.shipped_at.isoformat().startswith("2026-03-01T12:00:00")
        order.deliver()
        assert order.delivered_at == order.shipped_at


class TestCancel:
    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
        ],
    )
    def test_cancellable_states(self, status):
        order = _order(status=status)
        assert order.can_be_cancelled
        order.cancel("changed my mind")
        assert order.status == OrderStatus.CANCELLED
        assert order.cancellation_reason == "changed my mind"

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED],
    )
    def test_non_cancellable_states(self, status):
        order = _order(status=status)
        assert not order.can_be_cancelled
        with pytest.raises(InvalidOrderStatus, match="cannot be cancelled"):
            order.cancel()
        assert order.status == status


# ---------------------------------------------------------------------------
# Payment status machine
# ---------------------------------------------------------------------------


class TestPaymentTransitions:
    def test_mark_as_paid(self):
        order = _order()
        order.mark_as_paid()
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.PENDING

    def test_mark_payment_failed(self):
        order = _order()
        order.mark_payment_failed()
        assert order.payment_status == PaymentStatus.FAILED

    def test_failed_payment_is_terminal(self):
        order = _order(payment_status=PaymentStatus.FAILED)
        with pytest.raises(InvalidPaymentStatus):
            order.mark_as_paid()

    def test_cannot_pay_twice(self):
        order = _order(payment_status=PaymentStatus.PAID)
        with pytest.raises(InvalidPaymentStatus):
            order.mark_as_paid()

    def test_refund_moves_order_to_refunded(self):
        order = _order(status=OrderStatus.DELIVERED, payment_status=PaymentStatus.PAID)
        order.refund()
        assert order.payment_status == PaymentStatus.REFUNDED
        assert order.status == OrderStatus.REFUNDED

    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        ],
    )
    def test_paid_order_is_refundable_from_any_live_status(self, status):
        order = _order(status=status, payment_status=PaymentStatus.PAID)
        order.refund()
        assert order.status == OrderStatus.REFUNDED

    def test_refund_requires_paid(self):
        order = _order(status=OrderStatus.SHIPPED)
        with pytest.raises(InvalidPaymentStatus, match="Only paid orders can be refunded"):
            order.refund()

    def test_refund_of_cancelled_order_is_rejected(self):
        order = _order(status=OrderStatus.CANCELLED, payment_status=PaymentStatus.PAID)
        with pytest.raises(InvalidOrderStatus):
            order.refund()
        assert order.payment_status == PaymentStatus.PAID


# ---------------------------------------------------------------------------
# Totals & validation
# ---------------------------------------------------------------------------


class TestTotalsAndValidation:
    def test_calculate_totals(self):
        order = _order()
        order.calculate_totals([_item("50.00", 2)])
        assert order.subtotal == Decimal("100.00")
        assert order.taxes == Decimal("10.00")
        assert order.shipping == Decimal("10.00")
        assert order.total == Decimal("120.00")

    def test_valid_order_has_no_errors(self):
        order = _order()
        items = [_item("20.00", 1)]
        order.calculate_totals(items)
        assert order.validate(items) == []

    def test_validation_reports_every_problem(self):
        order = Order(shipping_address={"street": "1 Elm St"})
        errors = order.validate([])
        assert "User ID is required" in errors
        assert "Order must have at least one item" in errors
        assert "Shipping address city is required" in errors
        assert "Shipping address country is required" in errors

    def test_validation_catches_inconsistent_total(self):
        order = _order()
        items = [_item("20.00", 1)]
        order.calculate_totals(items)
        order.total = Decimal("1.00")
        assert "Order total must equal subtotal + taxes + shipping" in order.validate(items)

    def test_validation_rejects_bad_lines(self):
        order = _order()
        bad = OrderItem(product_id=uuid4(), product_name="X", unit_price=Decimal("-1"), quantity=0)
        errors = order.validate([bad])
        assert "Item 1: Quantity must be positive" in errors
        assert "Item 1: Unit price cannot be negative" in errors


class TestOrderNumber:
    @freeze_time("2026-07-04")
    def test_format(self):
        number = Order.generate_order_number()
        assert re.fullmatch(r"ORD-20260704-[0-9A-F]{6}", number)

    def test_assigned_on_save(self, account):
        order = Order(user=account, shipping_address=dict(ADDRESS))
        order.save()
        assert order.order_number.startswith("ORD-")


class TestOrderItem:
    def test_subtotal_recomputed(self):
        item = _item("2.50", 4)
        assert item.subtotal == Decimal("10.00")
