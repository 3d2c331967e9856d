"""Unit tests for the error taxonomy and the DRF exception handler."""

from __future__ import annotations

import pytest
from rest_framework.exceptions import NotAuthenticated

from modules.core.exception_handler import domain_exception_handler
from modules.core.exceptions import (
    BusinessLogicError,
    DomainValidationError,
    InternalError,
    NotFoundError,
)
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound, UserNotFound
from modules.products.exceptions import InsufficientStock

pytestmark = pytest.mark.unit


class TestErrorKinds:
    @pytest.mark.parametrize(
        "exc_class, status_code",
        [
            (NotFoundError, 404),
            (DomainValidationError, 400),
            (BusinessLogicError, 409),
            (InternalError, 500),
        ],
    )
    def test_status_codes(self, exc_class, status_code):
        assert exc_class.status_code == status_code

    @pytest.mark.parametrize(
        "exc_class, kind",
        [
            (OrderNotFound, NotFoundError),
            (UserNotFound, NotFoundError),
            (InvalidOrderStatus, BusinessLogicError),
            (InsufficientStock, BusinessLogicError),
        ],
    )
    def test_domain_errors_map_to_kinds(self, exc_class, kind):
        assert issubclass(exc_class, kind)

    def test_to_dict_includes_details_when_present(self):
        exc = InsufficientStock("not enough", details={"available": 1})
        assert exc.to_dict() == {
            "code": "INSUFFICIENT_STOCK",
            "detail": "not enough",
            "details": {"available": 1},
        }

    def test_to_dict_omits_empty_details(self):
        assert "details" not in OrderNotFound("gone").to_dict()


class TestExceptionHandler:
    def test_domain_error_envelope(self):
        response = domain_exception_handler(OrderNotFound("Order not found"), {})
        assert response.status_code == 404
        assert response.data["type"] == "ORDER_NOT_FOUND"
        assert response.data["errors"][0]["detail"] == "Order not found"

    def test_drf_error_envelope(self):
        response = domain_exception_handler(NotAuthenticated(), {})
        assert response.status_code == 401
        assert response.data["type"] == "NOT_AUTHENTICATED"
        assert response.data["errors"][0]["code"] == "not_authenticated"

    def test_unknown_exception_is_left_to_django(self):
        assert domain_exception_handler(RuntimeError("boom"), {}) is None
