"""Cart domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BusinessLogicError, NotFoundError


class CartItemNotFound(NotFoundError):
    code = "CART_ITEM_NOT_FOUND"


class CartNotReadyForCheckout(BusinessLogicError):
    """The cart is empty or some of its lines can no longer be fulfilled.

    ``details`` carries every problem found.
    """

    code = "CART_NOT_READY_FOR_CHECKOUT"
