"""Product domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BusinessLogicError, NotFoundError


class ProductAlreadyExists(BusinessLogicError):
    """A product with the same SKU already exists."""

    code = "PRODUCT_ALREADY_EXISTS"


class ProductNotFound(NotFoundError):
    code = "PRODUCT_NOT_FOUND"


class InactiveProduct(BusinessLogicError):
    """The product exists but is not available for sale."""

    code = "INACTIVE_PRODUCT"


class InsufficientStock(BusinessLogicError):
    """Requested quantity exceeds the stock on hand."""

    code = "INSUFFICIENT_STOCK"
