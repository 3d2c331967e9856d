"""Error taxonomy shared by every module.

Services raise subclasses of these four kinds; the API layer maps the
kind to an HTTP status in ``modules.core.exception_handler``.

- ``NotFoundError``: a referenced account, product or order is absent.
- ``DomainValidationError``: malformed input (empty items, bad quantity,
  missing address field, unknown status target).
- ``BusinessLogicError``: well-formed but semantically invalid request
  (insufficient stock, illegal transition, inactive product/account).
- ``InternalError``: unexpected infrastructure failure.
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base class for typed errors raised by the service layer."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "", details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "detail": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    status_code = 404


class DomainValidationError(DomainError):
    code = "VALIDATION_ERROR"
    status_code = 400


class BusinessLogicError(DomainError):
    code = "BUSINESS_LOGIC_ERROR"
    status_code = 409


class InternalError(DomainError):
    code = "INTERNAL_ERROR"
    status_code = 500
