"""Unit tests for Order DTOs.

Covers:
- CreateOrderItemDTO: quantity validation, frozen immutability.
- CreateOrderDTO: items list validation, repeated product lines, address.
- Status DTOs: normalisation of the requested target.
- StockRestoreResult: completeness flag.
"""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from modules.core.dtos import parse_payload
from modules.core.exceptions import DomainValidationError
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    ShippingAddressDTO,
    StockRestoreFailure,
    StockRestoreResult,
    UpdateOrderStatusDTO,
    UpdatePaymentStatusDTO,
)
from tests.fakes import SHIPPING_ADDRESS

pytestmark = pytest.mark.unit


# ===========================================================================
# CreateOrderItemDTO
# ===========================================================================


class TestCreateOrderItemDTO:
    def test_valid_item(self):
        dto = CreateOrderItemDTO(product_id=uuid4(), quantity=3)
        assert dto.quantity == 3

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_raises(self, quantity):
        with pytest.raises(ValidationError, match="Quantity must be at least 1"):
            CreateOrderItemDTO(product_id=uuid4(), quantity=quantity)

    def test_is_frozen(self):
        dto = CreateOrderItemDTO(product_id=uuid4(), quantity=1)
        with pytest.raises(ValidationError):
            dto.quantity = 5


# ===========================================================================
# CreateOrderDTO
# ===========================================================================


class TestCreateOrderDTO:
    def _payload(self, **overrides):
        payload = {
            "user_id": str(uuid4()),
            "items": [{"product_id": str(uuid4()), "quantity": 1}],
            "shipping_address": dict(SHIPPING_ADDRESS),
        }
        payload.update(overrides)
        return payload

    def test_valid_payload(self):
        dto = CreateOrderDTO.model_validate(self._payload())
        assert len(dto.items) == 1
        assert dto.shipping_address.city == "Springfield"

    def test_empty_items_raises(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO.model_validate(self._payload(items=[]))

    def test_repeated_products_are_summed(self):
        pid = str(uuid4())
        other = str(uuid4())
        items = [
            {"product_id": pid, "quantity": 1},
            {"product_id": other, "quantity": 4},
            {"product_id": pid, "quantity": 2},
        ]
        dto = CreateOrderDTO.model_validate(self._payload(items=items))
        assert len(dto.items) == 3
        assert dto.quantities_by_product() == {UUID(pid): 3, UUID(other): 4}

    @pytest.mark.parametrize("field", ["street", "city", "state", "zip_code", "country"])
    def test_missing_address_field_raises(self, field):
        address = dict(SHIPPING_ADDRESS)
        del address[field]
        with pytest.raises(ValidationError):
            CreateOrderDTO.model_validate(self._payload(shipping_address=address))

    def test_blank_address_field_raises(self):
        with pytest.raises(ValidationError):
            ShippingAddressDTO(**{**SHIPPING_ADDRESS, "city": "   "})

    def test_parse_payload_maps_to_domain_error(self):
        with pytest.raises(DomainValidationError) as exc_info:
            parse_payload(CreateOrderDTO, self._payload(items=[]))
        assert "items" in exc_info.value.message
        assert exc_info.value.details


# ===========================================================================
# Status DTOs
# ===========================================================================


class TestStatusDTOs:
    def test_order_status_is_upper_cased(self):
        assert UpdateOrderStatusDTO(status=" shipped ").status == "SHIPPED"

    def test_payment_status_is_upper_cased(self):
        assert UpdatePaymentStatusDTO(payment_status="paid").payment_status == "PAID"


class TestStockRestoreResult:
    def test_complete_without_failures(self):
        assert StockRestoreResult(order_id=uuid4(), restored=[uuid4()]).is_complete

    def test_incomplete_with_failures(self):
        failure = StockRestoreFailure(product_id=uuid4(), quantity=2, reason="gone")
        assert not StockRestoreResult(order_id=uuid4(), failed=[failure]).is_complete
