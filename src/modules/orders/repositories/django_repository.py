"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Write
operations are wrapped in ``transaction.atomic()`` so the Order aggregate
(Order + OrderItems) is persisted atomically.

Concurrency control on status updates uses ``select_for_update()``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from functools import reduce
from operator import or_
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, QuerySet, Sum

from modules.orders.constants import (
    DEFAULT_PAGE_SIZE,
    REQUIRING_ACTION,
    REVENUE_STATES,
    OrderStatus,
)
from modules.orders.dtos import OrderSummaryDTO, TopSellingProductDTO
from modules.orders.exceptions import OrderNotFound
from modules.orders.models import Order, OrderItem
from modules.orders.pricing import quantize_money
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _paginate(queryset: QuerySet, page: int, limit: int) -> List[Order]:
    page = max(page, 1)
    offset = (page - 1) * limit
    return list(queryset[offset : offset + limit])


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    @staticmethod
    def _base_queryset() -> QuerySet:
        return Order.objects.prefetch_related("items")

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, order: Order, items: Sequence[OrderItem]) -> Order:
        order.save()
        for item in items:
            item.order = order
            item.save()

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return self.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @transaction.atomic
    def update(self, id: UUID, data: Dict[str, Any]) -> Order:
        """Update order fields using ``select_for_update`` for safety."""
        order = self.get_for_update(str(id))
        if not order:
            raise OrderNotFound(f"Order {id} not found.")

        for field, value in data.items():
            if value is not None:
                setattr(order, field, value)

        order.save()
        logger.info("order.updated", order_id=str(id), fields=sorted(data))
        return order

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info(
            "order.saved",
            order_id=str(entity.id),
            status=entity.status,
            payment_status=entity.payment_status,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an order; items cascade."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its items prefetched.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        return self._base_queryset().filter(order_number=order_number).first()

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must run inside a transaction.  Items are prefetched so the caller
        can iterate them while the row is locked.
        """
        try:
            return (
                Order.objects.select_for_update()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        try:
            return Order.objects.filter(id=id).exists()
        except (ValueError, ValidationError):
            return False

    def count(self) -> int:
        return Order.objects.count()

    def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        """List orders with optional Django ORM look-ups.

        Examples of valid filters::

            {"status": "PENDING"}
            {"user_id": "..."}
        """
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        if page is None:
            return list(queryset)
        return _paginate(queryset, page, limit or DEFAULT_PAGE_SIZE)

    # ------------------------------------------------------------------
    # Finders
    # ------------------------------------------------------------------

    def find_by_user(self, user_id: str, page: int, limit: int) -> List[Order]:
        return _paginate(self._base_queryset().filter(user_id=user_id), page, limit)

    def find_by_status(self, status: str, page: int, limit: int) -> List[Order]:
        return _paginate(self._base_queryset().filter(status=status), page, limit)

    def find_by_payment_status(
        self, payment_status: str, page: int, limit: int
    ) -> List[Order]:
        return _paginate(
            self._base_queryset().filter(payment_status=payment_status), page, limit
        )

    def find_by_date_range(
        self, start: datetime, end: datetime, page: int, limit: int
    ) -> List[Order]:
        return _paginate(
            self._base_queryset().filter(created_at__gte=start, created_at__lte=end),
            page,
            limit,
        )

    def find_pending(self, page: int, limit: int) -> List[Order]:
        return self.find_by_status(OrderStatus.PENDING, page, limit)

    def find_recent(self, user_id: str, limit: int = 5) -> List[Order]:
        return list(self._base_queryset().filter(user_id=user_id)[:limit])

    def find_requiring_action(self, page: int, limit: int) -> List[Order]:
        condition = reduce(or_, (Q(**clause) for clause in REQUIRING_ACTION))
        queryset = self._base_queryset().filter(condition).order_by("created_at", "id")
        return _paginate(queryset, page, limit)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_order_summary(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> OrderSummaryDTO:
        queryset = Order.objects.all()
        if start is not None:
            queryset = queryset.filter(created_at__gte=start)
        if end is not None:
            queryset = queryset.filter(created_at__lte=end)

        totals = queryset.aggregate(total_orders=Count("id"), total_revenue=Sum("total"))
        total_orders = totals["total_orders"] or 0
        total_revenue = quantize_money(totals["total_revenue"] or ZERO)
        average = quantize_money(total_revenue / total_orders) if total_orders else ZERO

        return OrderSummaryDTO(
            total_orders=total_orders,
            total_revenue=total_revenue,
            average_order_value=average,
            orders_by_status=self._count_by_status(queryset),
        )

    def get_revenue_by_period(self, start: datetime, end: datetime) -> Decimal:
        result = Order.objects.filter(
            created_at__gte=start,
            created_at__lte=end,
            status__in=REVENUE_STATES,
        ).aggregate(revenue=Sum("total"))
        return quantize_money(result["revenue"] or ZERO)

    def get_order_count_by_status(self) -> Dict[str, int]:
        return self._count_by_status(Order.objects.all())

    def get_top_selling_products(self, limit: int = 10) -> List[TopSellingProductDTO]:
        rows = (
            OrderItem.objects.values("product_id", "product_name")
            .annotate(total_sold=Sum("quantity"), revenue=Sum("subtotal"))
            .order_by("-total_sold", "product_name")[:limit]
        )
        return [
            TopSellingProductDTO(
                product_id=row["product_id"],
                product_name=row["product_name"],
                total_sold=row["total_sold"] or 0,
                revenue=quantize_money(row["revenue"] or ZERO),
            )
            for row in rows
        ]

    @staticmethod
    def _count_by_status(queryset: QuerySet) -> Dict[str, int]:
        counts = {status: 0 for status in OrderStatus.values}
        rows = queryset.order_by().values("status").annotate(n=Count("id"))
        for row in rows:
            counts[row["status"]] = row["n"]
        return counts
