"""Account API views.

Exposes ``AccountService`` over HTTP.  Domain exceptions propagate to
``modules.core.exception_handler`` which renders the error envelope.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.dtos import CreateAccountDTO, UpdateAccountDTO
from modules.accounts.filters import AccountFilter
from modules.accounts.models import Account
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.accounts.serializers import AccountSerializer
from modules.accounts.services import AccountService
from modules.core.dtos import parse_payload


class AccountViewSet(ListModelMixin, GenericViewSet):
    """Account CRUD through ``AccountService`` with ``AccountDjangoRepository``."""

    filterset_class = AccountFilter
    search_fields = ["email", "first_name", "last_name"]
    ordering_fields = ["created_at", "email", "first_name"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Account.objects.all()
    serializer_class = AccountSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService(repository=AccountDjangoRepository())

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/accounts/{pk}/"""
        account = self._service.get_account(pk)
        return Response(AccountSerializer(account).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/accounts/"""
        dto = parse_payload(CreateAccountDTO, request.data)
        account = self._service.create_account(dto)
        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/accounts/{pk}/"""
        dto = parse_payload(UpdateAccountDTO, request.data)
        account = self._service.update_account(pk, dto)
        return Response(AccountSerializer(account).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/accounts/{pk}/"""
        self._service.delete_account(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
