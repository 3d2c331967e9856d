"""Cart DTOs for the Service Layer (pydantic v2, immutable)."""

from __future__ import annotations

from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from modules.orders.dtos import ShippingAddressDTO


class AddCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemDTO(BaseModel):
    """``quantity == 0`` removes the line."""

    model_config = ConfigDict(frozen=True)

    quantity: int = Field(ge=0)


class GuestCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = Field(gt=0)


class MergeCartDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[GuestCartItemDTO]


class CheckoutDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    shipping_address: ShippingAddressDTO


class CartSummaryItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class CartSummaryDTO(BaseModel):
    """Cart contents priced with the checkout rules (taxes and shipping)."""

    model_config = ConfigDict(frozen=True)

    item_count: int
    subtotal: Decimal
    taxes: Decimal
    shipping: Decimal
    estimated_total: Decimal
    items: List[CartSummaryItemDTO]


class CartValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: List[str]
