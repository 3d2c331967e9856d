"""Account DTOs for the Service Layer.

Framework-agnostic pydantic v2 contracts between the API layer and the
service layer.  DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator


class AccountRoleEnum(StrEnum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"
    MODERATOR = "MODERATOR"


class CreateAccountDTO(BaseModel):
    """Immutable DTO for account creation requests."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    first_name: str
    last_name: str = ""
    role: AccountRoleEnum = AccountRoleEnum.CUSTOMER

    @field_validator("first_name")
    @classmethod
    def first_name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("First name must not be empty.")
        return v.strip()


class UpdateAccountDTO(BaseModel):
    """Partial update: only supplied fields are applied."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: AccountRoleEnum | None = None
    is_active: bool | None = None

