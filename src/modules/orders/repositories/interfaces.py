"""Order repository interface.

Extends ``IRepository[Order]`` with the finders and reporting queries the
order workflow needs.  The service layer depends exclusively on this
contract.  Paginated finders take a 1-based ``page`` and a ``limit`` and
return newest orders first unless stated otherwise.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import OrderSummaryDTO, TopSellingProductDTO
    from modules.orders.models import Order, OrderItem


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes its ``OrderItem`` children; mutations of the
    aggregate must be atomic.
    """

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order by its human-readable number."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock, items prefetched."""

    @abstractmethod
    def create(self, order: Order, items: Sequence[OrderItem]) -> Order:
        """Persist a new order together with its items."""

    @abstractmethod
    def update(self, id: UUID, data: Dict[str, Any]) -> Order:
        """Update order fields (e.g. status, payment_status)."""

    @abstractmethod
    def exists(self, id: str) -> bool:
        """Return ``True`` if an order with *id* exists."""

    @abstractmethod
    def count(self) -> int:
        """Total number of orders."""

    @abstractmethod
    def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        """List orders with optional filters; paginated when *page* is given."""

    # ------------------------------------------------------------------
    # Finders
    # ------------------------------------------------------------------

    @abstractmethod
    def find_by_user(self, user_id: str, page: int, limit: int) -> List[Order]:
        """Orders placed by one account."""

    @abstractmethod
    def find_by_status(self, status: str, page: int, limit: int) -> List[Order]:
        """Orders currently in *status*."""

    @abstractmethod
    def find_by_payment_status(
        self, payment_status: str, page: int, limit: int
    ) -> List[Order]:
        """Orders currently in *payment_status*."""

    @abstractmethod
    def find_by_date_range(
        self, start: datetime, end: datetime, page: int, limit: int
    ) -> List[Order]:
        """Orders created between *start* and *end* (inclusive)."""

    @abstractmethod
    def find_pending(self, page: int, limit: int) -> List[Order]:
        """Orders still in PENDING."""

    @abstractmethod
    def find_recent(self, user_id: str, limit: int = 5) -> List[Order]:
        """The latest *limit* orders of an account."""

    @abstractmethod
    def find_requiring_action(self, page: int, limit: int) -> List[Order]:
        """Paid-and-confirmed, processing or payment-failed orders, oldest first."""

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @abstractmethod
    def get_order_summary(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> OrderSummaryDTO:
        """Counts and revenue; each bound is applied independently when set."""

    @abstractmethod
    def get_revenue_by_period(self, start: datetime, end: datetime) -> Decimal:
        """Sum of totals of shipped and delivered orders in the period."""

    @abstractmethod
    def get_order_count_by_status(self) -> Dict[str, int]:
        """Count per status, every status present (zero when absent)."""

    @abstractmethod
    def get_top_selling_products(self, limit: int = 10) -> List[TopSellingProductDTO]:
        """Products ranked by quantity sold."""
