"""Unit tests for AccountService and AccountDjangoRepository."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.accounts.dtos import AccountRoleEnum, CreateAccountDTO, UpdateAccountDTO
from modules.accounts.exceptions import (
    AccountAlreadyExists,
    AccountHasOrders,
    AccountNotFound,
)
from modules.accounts.models import Account
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.accounts.services import AccountService
from modules.orders.models import Order
from tests.fakes import SHIPPING_ADDRESS

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return AccountService(repository=AccountDjangoRepository())


class TestAccountModel:
    def test_email_is_lower_cased(self):
        account = Account.objects.create(email="Mixed@Example.COM", first_name="M")
        assert account.email == "mixed@example.com"

    def test_full_name_and_roles(self):
        account = Account(email="a@b.co", first_name="Ada", last_name="Lovelace", role="ADMIN")
        assert account.full_name == "Ada Lovelace"
        assert account.is_admin
        assert account.can_manage_products


class TestCreateAccount:
    def test_creates_customer_by_default(self, service):
        account = service.create_account(CreateAccountDTO(email="new@example.com", first_name="New"))
        assert account.role == AccountRoleEnum.CUSTOMER
        assert account.is_active

    def test_duplicate_email_is_case_insensitive(self, service, account):
        with pytest.raises(AccountAlreadyExists):
            service.create_account(
                CreateAccountDTO(email=account.email.upper(), first_name="Dup")
            )

    def test_invalid_email_rejected_by_dto(self):
        with pytest.raises(ValidationError):
            CreateAccountDTO(email="not-an-email", first_name="X")

    def test_blank_first_name_rejected_by_dto(self):
        with pytest.raises(ValidationError, match="First name must not be empty"):
            CreateAccountDTO(email="x@example.com", first_name=" ")


class TestUpdateAccount:
    def test_partial_update(self, service, account):
        updated = service.update_account(
            str(account.id), UpdateAccountDTO(last_name="Changed", is_active=False)
        )
        assert updated.last_name == "Changed"
        assert not updated.is_active
        assert updated.first_name == account.first_name

    def test_email_collision(self, service, account, inactive_account):
        with pytest.raises(AccountAlreadyExists):
            service.update_account(
                str(account.id), UpdateAccountDTO(email=inactive_account.email)
            )

    def test_missing_account(self, service):
        with pytest.raises(AccountNotFound):
            service.update_account(str(uuid4()), UpdateAccountDTO(first_name="x"))


class TestDeleteAccount:
    def test_delete(self, service, account):
        service.delete_account(str(account.id))
        assert not Account.objects.filter(id=account.id).exists()

    def test_missing_account(self, service):
        with pytest.raises(AccountNotFound):
            service.delete_account(str(uuid4()))

    def test_account_with_orders_is_protected(self, service, account):
        Order.objects.create(user=account, shipping_address=SHIPPING_ADDRESS)
        with pytest.raises(AccountHasOrders):
            service.delete_account(str(account.id))
        assert Account.objects.filter(id=account.id).exists()


class TestQueries:
    def test_get_account_with_malformed_id(self, service):
        with pytest.raises(AccountNotFound):
            service.get_account("garbage")

    def test_list_accounts_filters(self, service, account, inactive_account):
        assert [a.id for a in service.list_accounts({"is_active": False})] == [inactive_account.id]
