"""Account domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BusinessLogicError, NotFoundError


class AccountAlreadyExists(BusinessLogicError):
    """An account with the same email already exists."""

    code = "ACCOUNT_ALREADY_EXISTS"


class AccountNotFound(NotFoundError):
    """The requested account does not exist."""

    code = "ACCOUNT_NOT_FOUND"


class AccountHasOrders(BusinessLogicError):
    """The account is referenced by orders and cannot be removed."""

    code = "ACCOUNT_HAS_ORDERS"
