"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions propagate to ``modules.core.exception_handler``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.core.cache import DjangoCacheStore
from modules.core.dtos import parse_payload
from modules.core.exceptions import DomainValidationError
from modules.orders.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from modules.orders.dtos import (
    CancelOrderDTO,
    CreateOrderDTO,
    UpdateOrderStatusDTO,
    UpdatePaymentStatusDTO,
)
from modules.orders.exceptions import OrderNotFound
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import CreateOrderSerializer, OrderListSerializer
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise DomainValidationError(f"'{name}' must be an integer.") from exc


def _datetime_param(request: Request, name: str) -> Optional[datetime]:
    raw = request.query_params.get(name)
    if not raw:
        return None
    value = parse_datetime(raw)
    if value is None:
        raise DomainValidationError(f"'{name}' must be an ISO 8601 datetime.")
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories and cache store.
    Does **not** extend ``ModelViewSet``: all writes go through the
    service layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            account_repository=AccountDjangoRepository(),
            cache=DjangoCacheStore(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        dto = parse_payload(CreateOrderDTO, create_serializer.validated_data)
        order = self._service.create_order(dto)
        return Response(order.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        ``?user_id=`` and ``?status=`` go through the cached service reads
        (``page``/``limit`` pagination).  Without them the filtered,
        paginated admin listing is returned.
        """
        page = _int_param(request, "page", DEFAULT_PAGE)
        limit = _int_param(request, "limit", DEFAULT_PAGE_SIZE)

        user_id = request.query_params.get("user_id")
        if user_id:
            orders = self._service.get_user_orders(user_id, page=page, limit=limit)
            return Response([o.model_dump(mode="json") for o in orders])

        status_value = request.query_params.get("status")
        if status_value:
            orders = self._service.get_orders_by_status(
                status_value.upper(), page=page, limit=limit
            )
            return Response([o.model_dump(mode="json") for o in orders])

        queryset = self.filter_queryset(self.get_queryset())
        page_items = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page_items, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order_by_id(pk)
        if order is None:
            raise OrderNotFound("Order not found", details={"order_id": pk})
        return Response(order.model_dump(mode="json"))

    @action(
        detail=False,
        methods=["get"],
        url_path=r"by-number/(?P<order_number>[A-Za-z0-9-]+)",
    )
    def by_number(self, request: Request, order_number: str) -> Response:
        """GET /api/v1/orders/by-number/{order_number}/"""
        order = self._service.get_order_by_number(order_number)
        if order is None:
            raise OrderNotFound(
                "Order not found", details={"order_number": order_number}
            )
        return Response(order.model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def summary(self, request: Request) -> Response:
        """GET /api/v1/orders/summary/?start_date=&end_date="""
        result = self._service.get_order_summary(
            _datetime_param(request, "start_date"),
            _datetime_param(request, "end_date"),
        )
        return Response(result.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/ with ``{"status": ...}``."""
        dto = parse_payload(UpdateOrderStatusDTO, request.data)
        order = self._service.update_order_status(pk, dto.status)
        return Response(order.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/ with optional ``{"reason": ...}``."""
        dto = parse_payload(CancelOrderDTO, request.data)
        order = self._service.cancel_order(pk, reason=dto.reason)
        return Response(order.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def payment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/payment/ with ``{"payment_status": ...}``."""
        dto = parse_payload(UpdatePaymentStatusDTO, request.data)
        order = self._service.update_payment_status(pk, dto.payment_status)
        return Response(order.model_dump(mode="json"))
