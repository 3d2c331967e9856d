"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).  Output DTOs double as the cache format:
they round-trip through ``model_dump_json`` / ``model_validate_json``.

- ``ShippingAddressDTO``: embedded delivery address.
- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: checkout input.
- ``OrderItemDTO`` / ``OrderDTO``: order output.
- ``OrderSummaryDTO``: aggregate report.
- ``StockRestoreResult``: outcome of an inventory reversal.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ShippingAddressDTO(BaseModel):
    """All five fields are required and must not be blank."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


class CreateOrderItemDTO(BaseModel):
    """A single line in a checkout request.

    ``unit_price`` is resolved by the service layer from the product catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Checkout request.

    Validates:
    - ``items`` must contain at least one item.
    - Each item quantity must be positive.
    - The shipping address is complete.
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    items: List[CreateOrderItemDTO]
    shipping_address: ShippingAddressDTO

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must contain at least one item.")
        return v

    def quantities_by_product(self) -> Dict[UUID, int]:
        """Requested quantity per product; repeated lines are summed."""
        quantities: Dict[UUID, int] = {}
        for item in self.items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
        return quantities


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str

    @field_validator("status")
    @classmethod
    def normalise(cls, v: str) -> str:
        return v.strip().upper()


class UpdatePaymentStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_status: str

    @field_validator("payment_status")
    @classmethod
    def normalise(cls, v: str) -> str:
        return v.strip().upper()


class CancelOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderDTO(BaseModel):
    """Read model of an order, also the cached representation."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    user_id: UUID
    items: List[OrderItemDTO]
    subtotal: Decimal
    shipping: Decimal
    taxes: Decimal
    total: Decimal
    status: str
    payment_status: str
    shipping_address: ShippingAddressDTO
    cancellation_reason: str = ""
    created_at: datetime
    updated_at: datetime
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order: Order) -> OrderDTO:
        """Build the DTO from an ``Order``; assumes ``items`` is prefetched."""
        items = [
            OrderItemDTO(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
            )
            for item in order.items.all()
        ]
        return cls(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            items=items,
            subtotal=order.subtotal,
            shipping=order.shipping,
            taxes=order.taxes,
            total=order.total,
            status=order.status,
            payment_status=order.payment_status,
            shipping_address=ShippingAddressDTO.model_validate(order.shipping_address),
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
        )


OrderListAdapter = TypeAdapter(List[OrderDTO])


class OrderSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_orders: int
    total_revenue: Decimal
    average_order_value: Decimal
    orders_by_status: Dict[str, int]


class TopSellingProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    total_sold: int
    revenue: Decimal


class StockRestoreFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    reason: str


class StockRestoreResult(BaseModel):
    """Per-item outcome of returning an order's quantities to stock.

    Restoration is best-effort: failures are collected here instead of
    being raised to the caller.
    """

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    restored: List[UUID] = []
    failed: List[StockRestoreFailure] = []

    @property
    def is_complete(self) -> bool:
        return not self.failed
