"""Unit tests for OrderService against the real Django repositories.

Covers:
- Checkout pricing and stock decrement.
- Checkout rejections leave neither an order nor a stock change behind.
- Order and payment status updates through the service.
- Payment confirmation auto-confirming a pending order.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, ShippingAddressDTO
from modules.orders.exceptions import (
    InactiveProduct,
    InactiveUser,
    InsufficientStock,
    InvalidOrderRequest,
    InvalidOrderStatus,
    InvalidPaymentStatus,
    OrderNotFound,
    ProductNotFound,
    UserNotFound,
)
from modules.orders.models import Order, OrderItem
from modules.products.models import Product
from tests.fakes import SHIPPING_ADDRESS

pytestmark = pytest.mark.unit


def _dto(user_id, *lines) -> CreateOrderDTO:
    return CreateOrderDTO(
        user_id=user_id,
        items=[CreateOrderItemDTO(product_id=p.id, quantity=q) for p, q in lines],
        shipping_address=ShippingAddressDTO(**SHIPPING_ADDRESS),
    )


def _stock(product: Product) -> int:
    product.refresh_from_db()
    return product.stock


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_prices_order_and_decrements_stock(self, order_service, account, make_product):
        product = make_product(price="50.00", stock=5)

        order = order_service.create_order(_dto(account.id, (product, 2)))

        assert order.subtotal == Decimal("100.00")
        assert order.taxes == Decimal("10.00")
        assert order.shipping == Decimal("10.00")
        assert order.total == Decimal("120.00")
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.order_number.startswith("ORD-")
        assert _stock(product) == 3

    def test_free_shipping_above_threshold(self, order_service, account, make_product):
        a = make_product(price="100.00")
        b = make_product(price="25.00")

        order = order_service.create_order(_dto(account.id, (a, 1), (b, 2)))

        assert order.subtotal == Decimal("150.00")
        assert order.shipping == Decimal("0.00")
        assert order.total == Decimal("165.00")

    def test_items_snapshot_name_and_price(self, order_service, account, make_product):
        product = make_product(price="12.50", name="Desk Lamp")
        order = order_service.create_order(_dto(account.id, (product, 2)))

        Product.objects.filter(id=product.id).update(price=Decimal("99.00"), name="Renamed")

        item = OrderItem.objects.get(order_id=order.id)
        assert item.product_name == "Desk Lamp"
        assert item.unit_price == Decimal("12.50")
        assert item.subtotal == Decimal("25.00")

    def test_repeated_lines_are_summed(self, order_service, account, make_product):
        product = make_product(price="50.00", stock=5)

        order = order_service.create_order(_dto(account.id, (product, 1), (product, 1)))

        assert order.subtotal == Decimal("100.00")
        assert order.total == Decimal("120.00")
        assert len(order.items) == 1
        assert order.items[0].quantity == 2
        assert _stock(product) == 3

    def test_repeated_lines_are_checked_against_stock_together(
        self, order_service, account, make_product
    ):
        product = make_product(stock=5)

        with pytest.raises(InsufficientStock):
            order_service.create_order(_dto(account.id, (product, 3), (product, 3)))

        assert Order.objects.count() == 0
        assert _stock(product) == 5

    def test_insufficient_stock_persists_nothing(self, order_service, account, make_product):
        product = make_product(stock=5)

        with pytest.raises(InsufficientStock):
            order_service.create_order(_dto(account.id, (product, 10)))

        assert Order.objects.count() == 0
        assert _stock(product) == 5

    def test_failure_on_later_line_rolls_back_earlier_lines(
        self, order_service, account, make_product
    ):
        ok = make_product(stock=10)
        short = make_product(stock=1)

        with pytest.raises(InsufficientStock):
            order_service.create_order(_dto(account.id, (ok, 2), (short, 5)))

        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0
        assert _stock(ok) == 10
        assert _stock(short) == 1

    def test_unknown_user(self, order_service, make_product):
        product = make_product()
        with pytest.raises(UserNotFound):
            order_service.create_order(_dto(uuid4(), (product, 1)))

    def test_inactive_user(self, order_service, inactive_account, make_product):
        product = make_product()
        with pytest.raises(InactiveUser):
            order_service.create_order(_dto(inactive_account.id, (product, 1)))

    def test_unknown_product(self, order_service, account):
        dto = CreateOrderDTO(
            user_id=account.id,
            items=[CreateOrderItemDTO(product_id=uuid4(), quantity=1)],
            shipping_address=ShippingAddressDTO(**SHIPPING_ADDRESS),
        )
        with pytest.raises(ProductNotFound):
            order_service.create_order(dto)

    def test_inactive_product(self, order_service, account, make_product):
        product = make_product(is_active=False)
        with pytest.raises(InactiveProduct):
            order_service.create_order(_dto(account.id, (product, 1)))
        assert Order.objects.count() == 0


# ---------------------------------------------------------------------------
# Status machine through the service
# ---------------------------------------------------------------------------


@pytest.fixture()
def pending_order(order_service, account, make_product):
    product = make_product(price="30.00", stock=10)
    return order_service.create_order(_dto(account.id, (product, 2)))


class TestUpdateOrderStatus:
    def test_forward_path(self, order_service, pending_order):
        order_id = str(pending_order.id)
        for target in (
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        ):
            result = order_service.update_order_status(order_id, target)
            assert result.status == target

        stored = Order.objects.get(id=order_id)
        assert stored.status == OrderStatus.DELIVERED
        assert stored.shipped_at is not None
        assert stored.delivered_at is not None

    def test_skipping_a_step_is_rejected(self, order_service, pending_order):
        with pytest.raises(InvalidOrderStatus):
            order_service.update_order_status(str(pending_order.id), OrderStatus.SHIPPED)
        assert Order.objects.get(id=pending_order.id).status == OrderStatus.PENDING

    @pytest.mark.parametrize("target", ["PENDING", "REFUNDED", "LOST"])
    def test_unsupported_target(self, order_service, pending_order, target):
        with pytest.raises(InvalidOrderRequest):
            order_service.update_order_status(str(pending_order.id), target)

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.update_order_status(str(uuid4()), OrderStatus.CONFIRMED)


class TestUpdatePaymentStatus:
    def test_paid_confirms_pending_order(self, order_service, pending_order):
        result = order_service.update_payment_status(str(pending_order.id), PaymentStatus.PAID)
        assert result.payment_status == PaymentStatus.PAID
        assert result.status == OrderStatus.CONFIRMED

    def test_paid_leaves_other_statuses_alone(self, order_service, pending_order):
        order_id = str(pending_order.id)
        order_service.update_order_status(order_id, OrderStatus.CONFIRMED)
        order_service.update_order_status(order_id, OrderStatus.PROCESSING)

        result = order_service.update_payment_status(order_id, PaymentStatus.PAID)

        assert result.status == OrderStatus.PROCESSING

    def test_failed_payment(self, order_service, pending_order):
        result = order_service.update_payment_status(
            str(pending_order.id), PaymentStatus.FAILED
        )
        assert result.payment_status == PaymentStatus.FAILED
        assert result.status == OrderStatus.PENDING

    def test_refund_requires_paid(self, order_service, pending_order):
        with pytest.raises(InvalidPaymentStatus):
            order_service.update_payment_status(
                str(pending_order.id), PaymentStatus.REFUNDED
            )

    def test_pending_is_not_a_target(self, order_service, pending_order):
        with pytest.raises(InvalidOrderRequest):
            order_service.update_payment_status(str(pending_order.id), "PENDING")

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.update_payment_status(str(uuid4()), PaymentStatus.PAID)
