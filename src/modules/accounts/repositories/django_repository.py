"""Django ORM implementation of the Account repository.

Methods return ``None`` for missing rows instead of raising; the service
layer decides how to translate a missing entity.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import ProtectedError

from modules.accounts.exceptions import AccountHasOrders
from modules.accounts.models import Account
from modules.accounts.repositories.interfaces import IAccountRepository

logger = structlog.get_logger(__name__)


class AccountDjangoRepository(IAccountRepository):
    """Concrete Account repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Account]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return Account.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Account]:
        queryset = Account.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Account) -> Account:
        is_new = entity._state.adding
        entity.save()
        logger.info("account.saved", account_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an account.

        Accounts referenced by orders are protected and raise
        ``AccountHasOrders``.
        """
        account = self.get_by_id(id)
        if not account:
            return False
        try:
            account.delete()
        except ProtectedError as exc:
            raise AccountHasOrders(
                f"Account {id} has orders and cannot be deleted."
            ) from exc
        logger.info("account.deleted", account_id=str(id))
        return True

    def get_by_email(self, email: str) -> Optional[Account]:
        return Account.objects.filter(email__iexact=email.strip()).first()
