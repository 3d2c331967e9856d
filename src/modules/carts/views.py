"""Cart API views.

One cart per account, addressed by the account id:
``/api/v1/cart/{user_id}/``.  Domain exceptions propagate to the project
exception handler.
"""

from __future__ import annotations

from uuid import UUID

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.carts.dtos import AddCartItemDTO, CheckoutDTO, MergeCartDTO, UpdateCartItemDTO
from modules.carts.exceptions import CartItemNotFound
from modules.carts.services import CartService
from modules.core.cache import DjangoCacheStore
from modules.core.dtos import parse_payload
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


def _product_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise CartItemNotFound(
            "Item not found in cart", details={"product_id": value}
        ) from exc


class CartViewSet(ViewSet):
    """ViewSet for the account's shopping cart."""

    lookup_field = "user_id"
    lookup_value_regex = "[^/]+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        cart_cache = DjangoCacheStore(alias="carts")
        product_repository = ProductDjangoRepository()
        account_repository = AccountDjangoRepository()
        self._service = CartService(
            product_repository=product_repository,
            account_repository=account_repository,
            cache=cart_cache,
            order_service=OrderService(
                order_repository=OrderDjangoRepository(),
                product_repository=product_repository,
                account_repository=account_repository,
                cache=DjangoCacheStore(),
            ),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "cart_checkout" if self.action == "checkout" else None
        return super().get_throttles()

    def retrieve(self, request: Request, user_id: str | None = None) -> Response:
        """GET /api/v1/cart/{user_id}/"""
        cart = self._service.get_cart(user_id)
        return Response(cart.model_dump(mode="json"))

    def destroy(self, request: Request, user_id: str | None = None) -> Response:
        """DELETE /api/v1/cart/{user_id}/ empties the cart."""
        cart = self._service.clear_cart(user_id)
        return Response(cart.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def items(self, request: Request, user_id: str | None = None) -> Response:
        """POST /api/v1/cart/{user_id}/items/ with ``{"product_id", "quantity"}``."""
        dto = parse_payload(AddCartItemDTO, request.data)
        cart = self._service.add_item(user_id, dto.product_id, dto.quantity)
        return Response(cart.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["patch", "delete"],
        url_path=r"items/(?P<product_id>[^/.]+)",
    )
    def item(
        self, request: Request, product_id: str, user_id: str | None = None
    ) -> Response:
        """PATCH or DELETE /api/v1/cart/{user_id}/items/{product_id}/"""
        product_uuid = _product_uuid(product_id)
        if request.method == "DELETE":
            cart = self._service.remove_item(user_id, product_uuid)
        else:
            dto = parse_payload(UpdateCartItemDTO, request.data)
            cart = self._service.update_item_quantity(user_id, product_uuid, dto.quantity)
        return Response(cart.model_dump(mode="json"))

    @action(detail=True, methods=["get"])
    def summary(self, request: Request, user_id: str | None = None) -> Response:
        """GET /api/v1/cart/{user_id}/summary/"""
        return Response(self._service.get_cart_summary(user_id).model_dump(mode="json"))

    @action(detail=True, methods=["get"])
    def validate(self, request: Request, user_id: str | None = None) -> Response:
        """GET /api/v1/cart/{user_id}/validate/"""
        result = self._service.validate_cart_for_checkout(user_id)
        return Response(result.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def checkout(self, request: Request, user_id: str | None = None) -> Response:
        """POST /api/v1/cart/{user_id}/checkout/ with ``{"shipping_address": {...}}``."""
        dto = parse_payload(CheckoutDTO, request.data)
        order = self._service.checkout(user_id, dto.shipping_address)
        return Response(order.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def merge(self, request: Request, user_id: str | None = None) -> Response:
        """POST /api/v1/cart/{user_id}/merge/ with ``{"items": [...]}``."""
        dto = parse_payload(MergeCartDTO, request.data)
        cart = self._service.merge_guest_cart(user_id, dto.items)
        return Response(cart.model_dump(mode="json"))
