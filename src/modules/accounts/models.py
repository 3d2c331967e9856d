"""Account model: the storefront user that places orders.

Business rules implemented:
- Email must be unique in the system (normalised to lower case on save).
- Inactive accounts cannot place orders (enforced at the order service).
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class AccountRole(models.TextChoices):
    ADMIN = "ADMIN", "Admin"
    CUSTOMER = "CUSTOMER", "Customer"
    MODERATOR = "MODERATOR", "Moderator"


class Account(BaseModel):
    """Account aggregate root.

    Authentication is handled outside this module; an account here is the
    record orders and carts are attached to.
    """

    email = models.EmailField(max_length=254, unique=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150, blank=True, default="")
    role = models.CharField(
        max_length=20,
        choices=AccountRole.choices,
        default=AccountRole.CUSTOMER,
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "accounts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active"], name="accounts_active_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    @property
    def can_manage_products(self) -> bool:
        return self.role in (AccountRole.ADMIN, AccountRole.MODERATOR)

    def activate(self) -> None:
        self.is_active = True

    def deactivate(self) -> None:
        self.is_active = False

    def save(self, *args, **kwargs) -> None:
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}>"
