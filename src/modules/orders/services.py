"""Order service layer: the checkout and order lifecycle workflow.

Orchestrates order creation, the order/payment state machines, stock
restoration and cache-aside reads.  Write operations run inside one
database transaction; the service defines the unit-of-work boundary.

Business rules enforced:
- The ordering account must exist and be active.
- Every product must exist, be active and have enough stock.
- Products are locked in ascending id order to avoid deadlocks, and the
  stock decrement is a conditional update that can never overdraw.
- Status transitions are validated by the ``Order`` state machine.
- Cancel and refund return the ordered quantities to stock; a failed
  restoration is logged and reported, never raised.
- Cache entries are invalidated after every write; cache failures never
  fail the operation.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, TypeVar

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from pydantic import ValidationError as PydanticValidationError

from modules.orders import cache_keys
from modules.orders.constants import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    STATUS_UPDATE_TARGETS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.dtos import (
    OrderDTO,
    OrderListAdapter,
    OrderSummaryDTO,
    StockRestoreFailure,
    StockRestoreResult,
)
from modules.orders.exceptions import (
    InactiveProduct,
    InactiveUser,
    InsufficientStock,
    InvalidOrderRequest,
    InvalidOrderStatus,
    OrderNotFound,
    ProductNotFound,
    UserNotFound,
)
from modules.orders.models import Order, OrderItem

if TYPE_CHECKING:
    from modules.accounts.repositories.interfaces import IAccountRepository
    from modules.core.cache import ICacheStore
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


class OrderService:
    """Application service for Order use-cases.

    Receives its repositories and the cache store via constructor
    injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        account_repository: IAccountRepository,
        cache: ICacheStore,
        cache_ttl: Optional[int] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._account_repo = account_repository
        self._cache = cache
        self._cache_ttl = cache_ttl if cache_ttl is not None else settings.ORDER_CACHE_TTL

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> OrderDTO:
        """Create a new order and take its quantities out of stock.

        Steps:
        1. Validate the account exists and is active.
        2. Sum repeated lines per product. For each product (sorted by id):
           lock it, check it is active and in stock, snapshot name and price.
        3. Price the order and run structural validation.
        4. Persist order + items, then decrement stock.
        5. After commit, invalidate every order-listing cache entry.

        Raises:
            UserNotFound / InactiveUser: account missing or inactive.
            ProductNotFound / InactiveProduct: a product is unusable.
            InsufficientStock: not enough stock for a line.
            InvalidOrderRequest: the assembled order fails validation.
        """
        log = logger.bind(user_id=str(dto.user_id), line_count=len(dto.items))
        log.info("order.creation_started")

        with transaction.atomic():
            user = self._account_repo.get_by_id(str(dto.user_id))
            if not user:
                raise UserNotFound(
                    "User not found", details={"user_id": str(dto.user_id)}
                )
            if not user.is_active:
                raise InactiveUser(
                    "User account is inactive", details={"user_id": str(dto.user_id)}
                )

            items: List[OrderItem] = []
            quantities = dto.quantities_by_product()
            for product_id in sorted(quantities, key=str):
                quantity = quantities[product_id]
                product = self._product_repo.get_for_update(str(product_id))
                if not product:
                    raise ProductNotFound(
                        f"Product {product_id} not found",
                        details={"product_id": str(product_id)},
                    )
                if not product.is_active:
                    raise InactiveProduct(
                        f"Product {product.name} is not available",
                        details={"product_id": str(product.id)},
                    )
                if not product.can_fulfill_quantity(quantity):
                    raise InsufficientStock(
                        f"Insufficient stock for product {product.name}. "
                        f"Available: {product.stock}, Requested: {quantity}",
                        details={
                            "product_id": str(product.id),
                            "available": product.stock,
                            "requested": quantity,
                        },
                    )

                item = OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=product.price,
                )
                item.calculate_subtotal()
                items.append(item)

            order = Order(
                user_id=user.id,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                shipping_address=dto.shipping_address.model_dump(),
            )
            order.calculate_totals(items)

            errors = order.validate(items)
            if errors:
                raise InvalidOrderRequest(
                    f"Order validation failed: {', '.join(errors)}", details=errors
                )

            order = self._order_repo.create(order, items)

            for item in items:
                if not self._product_repo.decrement_stock(str(item.product_id), item.quantity):
                    raise InsufficientStock(
                        f"Insufficient stock for product {item.product_name}",
                        details={"product_id": str(item.product_id)},
                    )

            result = OrderDTO.from_entity(order)

        self._invalidate_order_caches()
        log.info(
            "order.created",
            order_id=str(result.id),
            order_number=result.order_number,
            total=str(result.total),
        )
        return result

    # ------------------------------------------------------------------
    # State machines
    # ------------------------------------------------------------------

    def update_order_status(self, order_id: str, status: str) -> OrderDTO:
        """Drive the order status machine.

        Accepts CONFIRMED, PROCESSING, SHIPPED, DELIVERED or CANCELLED;
        cancellation also restores stock.

        Raises:
            InvalidOrderRequest: *status* is not an accepted target.
            OrderNotFound: the order does not exist.
            InvalidOrderStatus: the current status forbids the transition.
        """
        if status not in STATUS_UPDATE_TARGETS:
            raise InvalidOrderRequest(
                f"Invalid status transition: {status}", details={"status": status}
            )

        with transaction.atomic():
            order = self._load_for_update(order_id)
            previous = order.status
            transitions: Dict[str, Callable[[], None]] = {
                OrderStatus.CONFIRMED: order.confirm,
                OrderStatus.PROCESSING: order.process,
                OrderStatus.SHIPPED: order.ship,
                OrderStatus.DELIVERED: order.deliver,
                OrderStatus.CANCELLED: order.cancel,
            }
            transitions[status]()
            if status == OrderStatus.CANCELLED:
                self.restore_stock(order)
            self._order_repo.save(order)
            result = OrderDTO.from_entity(order)

        self._invalidate_order_caches(order_id)
        logger.info(
            "order.status_updated",
            order_id=str(order_id),
            order_number=result.order_number,
            old_status=previous,
            new_status=status,
        )
        return result

    def update_payment_status(self, order_id: str, payment_status: str) -> OrderDTO:
        """Drive the payment status machine.

        - PAID: marks the payment and confirms a PENDING order.
        - FAILED: marks the payment only.
        - REFUNDED: requires a PAID payment; moves the order to REFUNDED
          and restores stock.

        Raises:
            InvalidOrderRequest: *payment_status* is not an accepted target.
            OrderNotFound: the order does not exist.
            InvalidPaymentStatus / InvalidOrderStatus: illegal transition.
        """
        if payment_status not in (
            PaymentStatus.PAID,
            PaymentStatus.FAILED,
            PaymentStatus.REFUNDED,
        ):
            raise InvalidOrderRequest(
                f"Invalid payment status: {payment_status}",
                details={"payment_status": payment_status},
            )

        with transaction.atomic():
            order = self._load_for_update(order_id)
            previous = order.payment_status

            if payment_status == PaymentStatus.PAID:
                order.mark_as_paid()
                if order.status == OrderStatus.PENDING:
                    order.confirm()
            elif payment_status == PaymentStatus.FAILED:
                order.mark_payment_failed()
            else:
                order.refund()
                self.restore_stock(order)

            self._order_repo.save(order)
            result = OrderDTO.from_entity(order)

        self._invalidate_order_caches(order_id)
        logger.info(
            "order.payment_status_updated",
            order_id=str(order_id),
            order_number=result.order_number,
            old_payment_status=previous,
            new_payment_status=payment_status,
            status=result.status,
        )
        return result

    def cancel_order(self, order_id: str, reason: Optional[str] = None) -> OrderDTO:
        """Cancel an order and return its quantities to stock.

        Raises:
            OrderNotFound: the order does not exist.
            InvalidOrderStatus: the order is DELIVERED, CANCELLED or REFUNDED.
        """
        with transaction.atomic():
            order = self._load_for_update(order_id)
            if not order.can_be_cancelled:
                raise InvalidOrderStatus(
                    "Order cannot be cancelled in its current status",
                    details={"current_status": order.status},
                )
            order.cancel(reason or "")
            restore = self.restore_stock(order)
            self._order_repo.save(order)
            result = OrderDTO.from_entity(order)

        self._invalidate_order_caches(order_id)
        logger.info(
            "order.cancelled",
            order_id=str(order_id),
            order_number=result.order_number,
            reason=reason or "",
            restored_items=len(restore.restored),
            failed_items=len(restore.failed),
        )
        return result

    def restore_stock(self, order: Order) -> StockRestoreResult:
        """Add every item's quantity back to its product.

        Each item runs in its own savepoint so one failure cannot undo the
        others or the enclosing transition.  Failures are logged and
        collected in the result.
        """
        log = logger.bind(order_id=str(order.id), order_number=order.order_number)
        restored = []
        failed = []

        for item in sorted(order.items.all(), key=lambda i: str(i.product_id)):
            try:
                with transaction.atomic():
                    found = self._product_repo.increment_stock(
                        str(item.product_id), item.quantity
                    )
            except Exception as exc:  # noqa: BLE001 - restoration is best-effort
                log.exception(
                    "order.stock_restore_failed",
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                )
                failed.append(
                    StockRestoreFailure(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        reason=str(exc) or type(exc).__name__,
                    )
                )
                continue

            if found:
                restored.append(item.product_id)
            else:
                log.warning(
                    "order.stock_restore_failed",
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    reason="product_not_found",
                )
                failed.append(
                    StockRestoreFailure(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        reason="Product not found",
                    )
                )

        log.info("order.stock_restored", restored=len(restored), failed=len(failed))
        return StockRestoreResult(order_id=order.id, restored=restored, failed=failed)

    # ------------------------------------------------------------------
    # Cache-aside reads
    # ------------------------------------------------------------------

    def get_order_by_id(self, order_id: str) -> Optional[OrderDTO]:
        """Return the order or ``None``; cached under ``order:<id>``."""
        key = cache_keys.order_key(order_id)
        cached = self._read_cache(key, OrderDTO.model_validate_json)
        if cached is not None:
            return cached

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            return None

        result = OrderDTO.from_entity(order)
        self._write_cache(key, result.model_dump_json())
        return result

    def get_order_by_number(self, order_number: str) -> Optional[OrderDTO]:
        order = self._order_repo.get_by_order_number(order_number)
        return OrderDTO.from_entity(order) if order else None

    def get_user_orders(
        self, user_id: str, page: int = DEFAULT_PAGE, limit: int = DEFAULT_PAGE_SIZE
    ) -> List[OrderDTO]:
        """Raises ``UserNotFound`` when the account does not exist."""
        self._check_pagination(page, limit)
        if not self._account_repo.get_by_id(str(user_id)):
            raise UserNotFound("User not found", details={"user_id": str(user_id)})

        key = cache_keys.user_orders_key(str(user_id), page, limit)
        cached = self._read_cache(key, OrderListAdapter.validate_json)
        if cached is not None:
            return cached

        orders = [
            OrderDTO.from_entity(o)
            for o in self._order_repo.find_by_user(str(user_id), page, limit)
        ]
        self._write_cache(key, OrderListAdapter.dump_json(orders).decode())
        return orders

    def get_orders_by_status(
        self, status: str, page: int = DEFAULT_PAGE, limit: int = DEFAULT_PAGE_SIZE
    ) -> List[OrderDTO]:
        self._check_pagination(page, limit)
        if status not in OrderStatus.values:
            raise InvalidOrderRequest(
                f"Invalid order status: {status}", details={"status": status}
            )

        key = cache_keys.status_orders_key(status, page, limit)
        cached = self._read_cache(key, OrderListAdapter.validate_json)
        if cached is not None:
            return cached

        orders = [
            OrderDTO.from_entity(o)
            for o in self._order_repo.find_by_status(status, page, limit)
        ]
        self._write_cache(key, OrderListAdapter.dump_json(orders).decode())
        return orders

    def get_order_summary(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> OrderSummaryDTO:
        """Order counts and revenue; each date bound applies independently."""
        start_date = _aware(start_date)
        end_date = _aware(end_date)
        if start_date and end_date and start_date > end_date:
            raise InvalidOrderRequest("start_date must not be after end_date")

        key = cache_keys.summary_key(start_date, end_date)
        cached = self._read_cache(key, OrderSummaryDTO.model_validate_json)
        if cached is not None:
            return cached

        summary = self._order_repo.get_order_summary(start_date, end_date)
        self._write_cache(key, summary.model_dump_json())
        return summary

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_for_update(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound("Order not found", details={"order_id": str(order_id)})
        return order

    @staticmethod
    def _check_pagination(page: int, limit: int) -> None:
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidOrderRequest(
                f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}",
                details={"page": page, "limit": limit},
            )

    def _read_cache(self, key: str, parse: Callable[[str], T]) -> Optional[T]:
        try:
            raw = self._cache.get(key)
        except Exception:  # noqa: BLE001 - a cache outage degrades to a miss
            logger.warning("order.cache_read_failed", cache_key=key, exc_info=True)
            return None
        if raw is None:
            logger.debug("order.cache_miss", cache_key=key)
            return None
        try:
            value = parse(raw)
        except PydanticValidationError:
            logger.warning("order.cache_entry_corrupt", cache_key=key)
            self._safe_cache_call(self._cache.delete, key)
            return None
        logger.debug("order.cache_hit", cache_key=key)
        return value

    def _write_cache(self, key: str, value: str) -> None:
        self._safe_cache_call(self._cache.set_with_ttl, key, value, self._cache_ttl)

    def _invalidate_order_caches(self, order_id: Optional[str] = None) -> None:
        if order_id is not None:
            self._safe_cache_call(self._cache.delete, cache_keys.order_key(str(order_id)))
        for pattern in cache_keys.ORDER_LIST_PATTERNS:
            self._safe_cache_call(self._cache.delete_by_pattern, pattern)

    @staticmethod
    def _safe_cache_call(func: Callable[..., object], *args: object) -> None:
        try:
            func(*args)
        except Exception:  # noqa: BLE001 - the store stays authoritative
            logger.warning(
                "order.cache_operation_failed",
                operation=getattr(func, "__name__", repr(func)),
                cache_key=args[0] if args else None,
                exc_info=True,
            )
