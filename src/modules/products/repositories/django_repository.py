"""Django ORM implementation of the Product repository.

Methods return ``None``/``False`` for missing rows instead of raising;
the service layer decides how to translate a missing entity.
Stock mutations are single conditional ``UPDATE`` statements built on
``F()`` expressions, so two concurrent writers can never overdraw a row.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"stock__lte": 10}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.deleted", product_id=str(id))
        return True

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Case-insensitive via upper normalisation."""
        return Product.objects.filter(sku=sku.strip().upper()).first()

    def check_stock(self, id: str, quantity: int) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        return product.can_fulfill_quantity(quantity)

    def decrement_stock(self, id: str, quantity: int) -> bool:
        try:
            updated = Product.objects.filter(id=id, stock__gte=quantity).update(
                stock=F("stock") - quantity,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return False
        if updated:
            logger.info("product.stock_decremented", product_id=str(id), quantity=quantity)
        return bool(updated)

    def increment_stock(self, id: str, quantity: int) -> bool:
        try:
            updated = Product.objects.filter(id=id).update(
                stock=F("stock") + quantity,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return False
        if updated:
            logger.info("product.stock_incremented", product_id=str(id), quantity=quantity)
        return bool(updated)
