"""Order domain exceptions.

Raised by the service layer and the ``Order`` model when business rules
are violated.  Each subclasses one of the error kinds in
``modules.core.exceptions`` so the API layer can map it to a status code.
"""

from __future__ import annotations

from modules.core.exceptions import (
    BusinessLogicError,
    DomainValidationError,
    NotFoundError,
)
from modules.products.exceptions import (  # noqa: F401
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"


class UserNotFound(NotFoundError):
    """The account placing the order does not exist."""

    code = "USER_NOT_FOUND"


class InactiveUser(BusinessLogicError):
    """The account is inactive and cannot place orders."""

    code = "INACTIVE_USER"


class InvalidOrderStatus(BusinessLogicError):
    """The order's current status does not allow the requested transition."""

    code = "INVALID_ORDER_STATUS"


class InvalidPaymentStatus(BusinessLogicError):
    code = "INVALID_PAYMENT_STATUS"


class InvalidOrderRequest(DomainValidationError):
    """Malformed order input: empty items, bad quantity, unknown target status."""

    code = "INVALID_ORDER_REQUEST"
