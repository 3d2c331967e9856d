"""Order domain constants.

Status choices, the allowed transitions of both state machines and the
checkout pricing rules.
"""

from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    REFUNDED = "REFUNDED", "Refunded"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


# Forward lifecycle: each step is only legal from its single predecessor.
FORWARD_TRANSITIONS: dict[str, str] = {
    OrderStatus.CONFIRMED: OrderStatus.PENDING,
    OrderStatus.PROCESSING: OrderStatus.CONFIRMED,
    OrderStatus.SHIPPED: OrderStatus.PROCESSING,
    OrderStatus.DELIVERED: OrderStatus.SHIPPED,
}

# Targets accepted by ``OrderService.update_order_status``.
STATUS_UPDATE_TARGETS: frozenset[str] = frozenset(
    {*FORWARD_TRANSITIONS, OrderStatus.CANCELLED}
)

NON_CANCELLABLE_STATES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)

TERMINAL_STATES = NON_CANCELLABLE_STATES

PAYMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}

# Orders whose next step is on the merchant side.
REQUIRING_ACTION = (
    {"status": OrderStatus.CONFIRMED, "payment_status": PaymentStatus.PAID},
    {"status": OrderStatus.PROCESSING},
    {"payment_status": PaymentStatus.FAILED},
)

# Statuses counted as realised revenue.
REVENUE_STATES: frozenset[str] = frozenset(
    {OrderStatus.SHIPPED, OrderStatus.DELIVERED}
)

TAX_RATE = Decimal("0.10")
FREE_SHIPPING_THRESHOLD = Decimal("100")
FLAT_SHIPPING_FEE = Decimal("10.00")

SHIPPING_ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")

ORDER_NUMBER_MAX_RETRIES = 5

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
