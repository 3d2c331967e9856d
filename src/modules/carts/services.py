"""Cart service layer (Use Cases).

The cart is a cache-resident staging area: it is created lazily on first
access, refreshed to a 24 hour TTL on every write and handed to
``OrderService.create_order`` at checkout.

Business rules enforced here:
- The cart owner must be an existing account.
- Only active products can be added, and never beyond the stock on hand.
- Checkout is refused while any line is stale (product gone, inactive,
  out of stock or repriced by more than one cent).
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from pydantic import ValidationError as PydanticValidationError

from modules.carts.domain import Cart
from modules.carts.dtos import (
    CartSummaryDTO,
    CartSummaryItemDTO,
    CartValidationResult,
)
from modules.carts.exceptions import CartItemNotFound, CartNotReadyForCheckout
from modules.core.exceptions import DomainValidationError
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import UserNotFound
from modules.orders.pricing import calculate_totals
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)

if TYPE_CHECKING:
    from modules.accounts.repositories.interfaces import IAccountRepository
    from modules.carts.dtos import GuestCartItemDTO
    from modules.core.cache import ICacheStore
    from modules.orders.dtos import OrderDTO, ShippingAddressDTO
    from modules.orders.services import OrderService
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

PRICE_TOLERANCE = Decimal("0.01")


def cart_key(user_id: UUID | str) -> str:
    return f"cart:{user_id}"


class CartService:
    """Application service for cart use-cases."""

    def __init__(
        self,
        product_repository: IProductRepository,
        account_repository: IAccountRepository,
        cache: ICacheStore,
        order_service: OrderService,
        cart_ttl: Optional[int] = None,
    ) -> None:
        self._product_repo = product_repository
        self._account_repo = account_repository
        self._cache = cache
        self._order_service = order_service
        self._cart_ttl = cart_ttl if cart_ttl is not None else settings.CART_TTL

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, user_id: UUID | str) -> Cart:
        """Return the account's cart, creating an empty one on first access.

        Raises:
            UserNotFound: the account does not exist.
        """
        if not self._account_repo.get_by_id(str(user_id)):
            raise UserNotFound("User not found", details={"user_id": str(user_id)})

        raw = self._cache.get(cart_key(user_id))
        if raw is not None:
            try:
                return Cart.model_validate_json(raw)
            except PydanticValidationError:
                logger.warning("cart.corrupt_entry_discarded", user_id=str(user_id))

        cart = Cart(user_id=user_id)
        self._store(cart)
        logger.info("cart.created", user_id=str(user_id))
        return cart

    def get_cart_summary(self, user_id: UUID | str) -> CartSummaryDTO:
        """Cart lines with product names and the checkout price estimate."""
        cart = self.get_cart(user_id)
        if cart.is_empty():
            zero = Decimal("0.00")
            return CartSummaryDTO(
                item_count=0,
                subtotal=zero,
                taxes=zero,
                shipping=zero,
                estimated_total=zero,
                items=[],
            )

        items = []
        for item in cart.items:
            product = self._product_repo.get_by_id(str(item.product_id))
            items.append(
                CartSummaryItemDTO(
                    product_id=item.product_id,
                    product_name=product.name if product else "Unknown Product",
                    quantity=item.quantity,
                    unit_price=item.price,
                    subtotal=item.subtotal,
                )
            )

        totals = calculate_totals(cart.total)
        return CartSummaryDTO(
            item_count=cart.item_count,
            subtotal=totals.subtotal,
            taxes=totals.taxes,
            shipping=totals.shipping,
            estimated_total=totals.total,
            items=items,
        )

    def validate_cart_for_checkout(self, user_id: UUID | str) -> CartValidationResult:
        """Collect every reason the cart cannot be checked out right now."""
        cart = self.get_cart(user_id)
        if cart.is_empty():
            return CartValidationResult(is_valid=False, errors=["Cart is empty"])

        errors: List[str] = []
        for item in cart.items:
            product = self._product_repo.get_by_id(str(item.product_id))
            if not product:
                errors.append(f"Product {item.product_id} no longer exists")
                continue
            if not product.is_active:
                errors.append(f"Product {product.name} is no longer available")
                continue
            if not product.can_fulfill_quantity(item.quantity):
                errors.append(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.stock}, Requested: {item.quantity}"
                )
            if abs(item.price - product.price) > PRICE_TOLERANCE:
                errors.append(
                    f"Price has changed for {product.name}. "
                    f"Current: ${product.price}, Cart: ${item.price}"
                )

        return CartValidationResult(is_valid=not errors, errors=errors)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_item(self, user_id: UUID | str, product_id: UUID, quantity: int) -> Cart:
        """Add *quantity* of a product, merging with an existing line.

        Raises:
            DomainValidationError: quantity is not positive.
            ProductNotFound / InactiveProduct: the product cannot be sold.
            InsufficientStock: cart quantity would exceed the stock on hand.
        """
        if quantity <= 0:
            raise DomainValidationError("Quantity must be positive")

        cart = self.get_cart(user_id)
        product = self._require_product(product_id)
        if not product.is_active:
            raise InactiveProduct(
                "Product is not available", details={"product_id": str(product_id)}
            )

        in_cart = cart.quantity_of(product.id)
        requested = in_cart + quantity
        if not product.can_fulfill_quantity(requested):
            raise InsufficientStock(
                f"Insufficient stock. Available: {product.stock}, "
                f"Requested: {requested}, Currently in cart: {in_cart}",
                details={
                    "product_id": str(product_id),
                    "available": product.stock,
                    "requested": requested,
                },
            )

        cart.add_item(product.id, quantity, product.price)
        self._store(cart)
        logger.info(
            "cart.item_added",
            user_id=str(user_id),
            product_id=str(product_id),
            quantity=quantity,
        )
        return cart

    def update_item_quantity(
        self, user_id: UUID | str, product_id: UUID, quantity: int
    ) -> Cart:
        """Set a line's quantity; ``0`` removes the line."""
        if quantity < 0:
            raise DomainValidationError("Quantity cannot be negative")

        cart = self.get_cart(user_id)
        if not cart.find_item(product_id):
            raise CartItemNotFound(
                "Item not found in cart", details={"product_id": str(product_id)}
            )
        if quantity == 0:
            return self.remove_item(user_id, product_id)

        product = self._require_product(product_id)
        if not product.can_fulfill_quantity(quantity):
            raise InsufficientStock(
                f"Insufficient stock. Available: {product.stock}, Requested: {quantity}",
                details={
                    "product_id": str(product_id),
                    "available": product.stock,
                    "requested": quantity,
                },
            )

        cart.update_item_quantity(product_id, quantity)
        self._store(cart)
        logger.info(
            "cart.item_updated",
            user_id=str(user_id),
            product_id=str(product_id),
            quantity=quantity,
        )
        return cart

    def remove_item(self, user_id: UUID | str, product_id: UUID) -> Cart:
        cart = self.get_cart(user_id)
        if not cart.find_item(product_id):
            raise CartItemNotFound(
                "Item not found in cart", details={"product_id": str(product_id)}
            )
        cart.remove_item(product_id)
        self._store(cart)
        logger.info("cart.item_removed", user_id=str(user_id), product_id=str(product_id))
        return cart

    def clear_cart(self, user_id: UUID | str) -> Cart:
        cart = self.get_cart(user_id)
        cart.clear()
        self._store(cart)
        logger.info("cart.cleared", user_id=str(user_id))
        return cart

    def merge_guest_cart(
        self, user_id: UUID | str, guest_items: List[GuestCartItemDTO]
    ) -> Cart:
        """Fold an anonymous cart into the account's cart.

        Lines for missing or inactive products are skipped; merged lines
        take the current product price.
        """
        cart = self.get_cart(user_id)
        skipped = 0
        for guest_item in guest_items:
            product = self._product_repo.get_by_id(str(guest_item.product_id))
            if not product or not product.is_active:
                skipped += 1
                continue
            cart.add_item(product.id, guest_item.quantity, product.price)

        self._store(cart)
        logger.info(
            "cart.guest_merged",
            user_id=str(user_id),
            merged=len(guest_items) - skipped,
            skipped=skipped,
        )
        return cart

    def checkout(
        self, user_id: UUID | str, shipping_address: ShippingAddressDTO
    ) -> OrderDTO:
        """Turn the cart into an order, then empty the cart.

        Raises:
            CartNotReadyForCheckout: validation found problems; all of them
                are listed in ``details``.
        """
        validation = self.validate_cart_for_checkout(user_id)
        if not validation.is_valid:
            logger.info(
                "cart.checkout_rejected",
                user_id=str(user_id),
                errors=validation.errors,
            )
            raise CartNotReadyForCheckout(
                "Cart cannot be checked out: " + "; ".join(validation.errors),
                details=validation.errors,
            )

        cart = self.get_cart(user_id)
        order = self._order_service.create_order(
            CreateOrderDTO(
                user_id=cart.user_id,
                items=[
                    CreateOrderItemDTO(product_id=i.product_id, quantity=i.quantity)
                    for i in cart.items
                ],
                shipping_address=shipping_address,
            )
        )
        self.clear_cart(user_id)
        logger.info(
            "cart.checked_out",
            user_id=str(user_id),
            order_id=str(order.id),
            order_number=order.order_number,
        )
        return order

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_product(self, product_id: UUID):
        product = self._product_repo.get_by_id(str(product_id))
        if not product:
            raise ProductNotFound(
                "Product not found", details={"product_id": str(product_id)}
            )
        return product

    def _store(self, cart: Cart) -> None:
        self._cache.set_with_ttl(
            cart_key(cart.user_id), cart.model_dump_json(), self._cart_ttl
        )
