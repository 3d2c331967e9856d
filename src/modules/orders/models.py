"""Order and OrderItem models.

Business rules implemented:
- Order status follows PENDING -> CONFIRMED -> PROCESSING -> SHIPPED ->
  DELIVERED; each step is legal only from its predecessor.
- Cancellation is allowed from every state except DELIVERED, CANCELLED
  and REFUNDED.
- Payment status follows PENDING -> PAID | FAILED and PAID -> REFUNDED.
  A refund also moves the order to REFUNDED.
- ``total == subtotal + taxes + shipping`` (see ``modules.orders.pricing``).
- Order number auto-generated as a human-readable identifier.
- The account FK uses PROTECT to preserve financial history.
- OrderItem snapshots product id, name and price at checkout time; it
  keeps no foreign key to the product.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any, Iterable, List

import structlog
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    NON_CANCELLABLE_STATES,
    ORDER_NUMBER_MAX_RETRIES,
    PAYMENT_TRANSITIONS,
    SHIPPING_ADDRESS_FIELDS,
    TERMINAL_STATES,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.exceptions import InvalidOrderStatus, InvalidPaymentStatus
from modules.orders.pricing import line_subtotal, totals_for_lines

logger = structlog.get_logger(__name__)


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for
    all internal references and API lookups.

    The transition methods only mutate the instance; persisting it is the
    caller's job.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    user: models.ForeignKey = models.ForeignKey(
        "accounts.Account",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    shipping: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    taxes: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    shipping_address: models.JSONField = models.JSONField(default=dict)
    cancellation_reason: models.TextField = models.TextField(blank=True, default="")
    shipped_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    delivered_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["payment_status"], name="orders_payment_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0),
                name="orders_subtotal_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Order status transitions
    # ------------------------------------------------------------------

    def _advance(self, expected: str, target: str, verb: str) -> None:
        if self.status != expected:
            raise InvalidOrderStatus(
                f"Only {expected.lower()} orders can be {verb}",
                details={"current_status": self.status, "target_status": target},
            )
        self.status = target

    def confirm(self) -> None:
        self._advance(OrderStatus.PENDING, OrderStatus.CONFIRMED, "confirmed")

    def process(self) -> None:
        self._advance(OrderStatus.CONFIRMED, OrderStatus.PROCESSING, "processed")

    def ship(self) -> None:
        self._advance(OrderStatus.PROCESSING, OrderStatus.SHIPPED, "shipped")
        self.shipped_at = timezone.now()

    def deliver(self) -> None:
        self._advance(OrderStatus.SHIPPED, OrderStatus.DELIVERED, "delivered")
        self.delivered_at = timezone.now()

    def cancel(self, reason: str = "") -> None:
        if not self.can_be_cancelled:
            raise InvalidOrderStatus(
                f"Order cannot be cancelled in its current status ({self.status})",
                details={"current_status": self.status},
            )
        self.status = OrderStatus.CANCELLED
        self.cancellation_reason = reason or ""

    # ------------------------------------------------------------------
    # Payment status transitions
    # ------------------------------------------------------------------

    def _check_payment_transition(self, target: str) -> None:
        if target not in PAYMENT_TRANSITIONS.get(self.payment_status, frozenset()):
            raise InvalidPaymentStatus(
                f"Cannot change payment status from {self.payment_status} to {target}",
                details={"current_payment_status": self.payment_status, "target": target},
            )

    def mark_as_paid(self) -> None:
        self._check_payment_transition(PaymentStatus.PAID)
        self.payment_status = PaymentStatus.PAID

    def mark_payment_failed(self) -> None:
        self._check_payment_transition(PaymentStatus.FAILED)
        self.payment_status = PaymentStatus.FAILED

    def refund(self) -> None:
        if self.payment_status != PaymentStatus.PAID:
            raise InvalidPaymentStatus(
                "Only paid orders can be refunded",
                details={"current_payment_status": self.payment_status},
            )
        if self.status == OrderStatus.CANCELLED:
            raise InvalidOrderStatus(
                "Cancelled orders cannot be refunded",
                details={"current_status": self.status},
            )
        self.payment_status = PaymentStatus.REFUNDED
        self.status = OrderStatus.REFUNDED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def can_be_cancelled(self) -> bool:
        return self.status not in NON_CANCELLABLE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_completed(self) -> bool:
        return self.status == OrderStatus.DELIVERED

    def calculate_totals(self, items: Iterable[OrderItem]) -> None:
        """Recompute subtotal, taxes, shipping and total from *items*."""
        totals = totals_for_lines((item.unit_price, item.quantity) for item in items)
        self.subtotal = totals.subtotal
        self.taxes = totals.taxes
        self.shipping = totals.shipping
        self.total = totals.total

    def validate(self, items: Iterable[OrderItem]) -> List[str]:
        """Structural validation; returns a list of human-readable problems."""
        items = list(items)
        errors: List[str] = []

        if not self.user_id:
            errors.append("User ID is required")
        if not items:
            errors.append("Order must have at least one item")

        address = self.shipping_address or {}
        for field in SHIPPING_ADDRESS_FIELDS:
            if not str(address.get(field) or "").strip():
                errors.append(f"Shipping address {field} is required")

        for index, item in enumerate(items, start=1):
            if not item.product_id:
                errors.append(f"Item {index}: Product ID is required")
            if item.quantity is None or item.quantity <= 0:
                errors.append(f"Item {index}: Quantity must be positive")
            if item.unit_price is None or item.unit_price < 0:
                errors.append(f"Item {index}: Unit price cannot be negative")

        if self.total != self.subtotal + self.taxes + self.shipping:
            errors.append("Order total must equal subtotal + taxes + shipping")

        return errors

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item of an Order.

    ``product_id``, ``product_name`` and ``unit_price`` are **snapshots**
    taken at checkout: they never change even if the product is later
    updated or deleted.  ``subtotal`` is always ``quantity * unit_price``,
    recalculated on every save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product_id: models.UUIDField = models.UUIDField(db_index=True)
    product_name: models.CharField = models.CharField(max_length=255)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def calculate_subtotal(self) -> Decimal:
        self.subtotal = line_subtotal(self.unit_price, self.quantity)
        return self.subtotal

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.calculate_subtotal()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (${self.subtotal})"
