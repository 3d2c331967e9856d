"""Account service layer (Use Cases).

Business rules enforced here:
- Email must be unique (case-insensitive).
- Accounts referenced by orders cannot be deleted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.accounts.exceptions import AccountAlreadyExists, AccountNotFound
from modules.accounts.models import Account

if TYPE_CHECKING:
    from modules.accounts.dtos import CreateAccountDTO, UpdateAccountDTO
    from modules.accounts.repositories.interfaces import IAccountRepository

logger = structlog.get_logger(__name__)


class AccountService:
    """Application service for Account use-cases.

    Receives an ``IAccountRepository`` via constructor injection.
    """

    def __init__(self, repository: IAccountRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_account(self, dto: CreateAccountDTO) -> Account:
        """Create a new account.

        Raises:
            AccountAlreadyExists: if the email is already registered.
        """
        log = logger.bind(email=dto.email)

        if self._repo.get_by_email(dto.email):
            log.warning("account.duplicate_email")
            raise AccountAlreadyExists("Email already registered.")

        account = Account(
            email=dto.email,
            first_name=dto.first_name,
            last_name=dto.last_name,
            role=dto.role.value,
        )
        account = self._repo.save(account)
        log.info("account.created", account_id=str(account.id))
        return account

    @transaction.atomic
    def update_account(self, id: str, dto: UpdateAccountDTO) -> Account:
        """Apply the supplied fields to an existing account.

        Raises:
            AccountNotFound: if the account does not exist.
            AccountAlreadyExists: if the new email collides.
        """
        account = self.get_account(id)
        log = logger.bind(account_id=str(id))

        if dto.email is not None and dto.email.lower() != account.email:
            if self._repo.get_by_email(dto.email):
                log.warning("account.duplicate_email")
                raise AccountAlreadyExists("Email already registered.")

        for field in ("email", "first_name", "last_name", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(account, field, value)
        if dto.role is not None:
            account.role = dto.role.value

        account = self._repo.save(account)
        log.info("account.updated")
        return account

    @transaction.atomic
    def delete_account(self, id: str) -> None:
        if not self._repo.delete(id):
            raise AccountNotFound(f"Account {id} not found.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_accounts(self, filters: Optional[Dict[str, Any]] = None) -> List[Account]:
        return self._repo.list(filters)

    def get_account(self, id: str) -> Account:
        """Raises ``AccountNotFound`` when the account does not exist."""
        account = self._repo.get_by_id(id)
        if not account:
            raise AccountNotFound(f"Account {id} not found.")
        return account
