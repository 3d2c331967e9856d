"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: input for partial product updates.
- ``UpdateStockDTO``: absolute stock level for the stock endpoint.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests."""

    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    description: str = ""
    stock: int = Field(default=0, ge=0)
    category_id: str = ""
    is_active: bool = True

    @field_validator("sku", "name")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be empty.")
        return v.strip()

    @field_validator("sku")
    @classmethod
    def normalise_sku(cls, v: str) -> str:
        return v.upper()


class UpdateProductDTO(BaseModel):
    """Partial update: only supplied fields are applied."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    description: str | None = None
    category_id: str | None = None
    is_active: bool | None = None


class UpdateStockDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    stock: int = Field(ge=0)

