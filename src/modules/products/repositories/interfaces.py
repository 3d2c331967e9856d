"""Product repository interface.

Extends ``IRepository[Product]`` with the SKU look-up and the stock
operations used by the order workflow.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  Returns ``None`` if the
        product does not exist.
        """

    @abstractmethod
    def check_stock(self, id: str, quantity: int) -> bool:
        """Check whether sufficient stock exists for the requested quantity."""

    @abstractmethod
    def decrement_stock(self, id: str, quantity: int) -> bool:
        """Atomically subtract *quantity* if enough stock remains.

        Returns ``False`` (and changes nothing) when the product is missing
        or its stock is below *quantity*.
        """

    @abstractmethod
    def increment_stock(self, id: str, quantity: int) -> bool:
        """Atomically add *quantity*.  Returns ``False`` if the product is missing."""
