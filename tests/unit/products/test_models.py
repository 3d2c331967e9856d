"""Unit tests for the Product model."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import IntegrityError

from modules.products.constants import StockStatus
from modules.products.exceptions import InsufficientStock
from modules.products.models import Product

pytestmark = pytest.mark.unit


def _product(stock=10, **kwargs) -> Product:
    return Product(sku="sku-1", name="Widget", price=Decimal("9.99"), stock=stock, **kwargs)


class TestStock:
    def test_reduce_stock(self):
        product = _product(stock=5)
        product.reduce_stock(2)
        assert product.stock == 3

    def test_reduce_stock_never_goes_negative(self):
        product = _product(stock=2)
        with pytest.raises(InsufficientStock):
            product.reduce_stock(3)
        assert product.stock == 2

    def test_increase_stock(self):
        product = _product(stock=0)
        product.increase_stock(4)
        assert product.stock == 4

    @pytest.mark.parametrize("method", ["reduce_stock", "increase_stock"])
    def test_non_positive_quantity_is_rejected(self, method):
        with pytest.raises(ValueError):
            getattr(_product(), method)(0)

    @pytest.mark.parametrize(
        "stock, expected",
        [
            (0, StockStatus.OUT_OF_STOCK),
            (10, StockStatus.LOW_STOCK),
            (11, StockStatus.IN_STOCK),
        ],
    )
    def test_stock_status(self, stock, expected):
        assert _product(stock=stock).stock_status == expected

    def test_can_fulfill_quantity(self):
        product = _product(stock=3)
        assert product.can_fulfill_quantity(3)
        assert not product.can_fulfill_quantity(4)


class TestLifecycle:
    def test_activate_and_deactivate(self):
        product = _product(is_active=True)
        product.deactivate()
        assert not product.is_active
        product.activate()
        assert product.is_active


class TestPersistence:
    def test_sku_is_upper_cased(self):
        product = _product()
        product.save()
        assert product.sku == "SKU-1"

    def test_sku_is_unique(self):
        _product().save()
        with pytest.raises(IntegrityError):
            Product.objects.create(sku="SKU-1", name="Other", price=Decimal("1.00"))

    def test_negative_price_is_rejected_by_the_database(self):
        with pytest.raises(IntegrityError):
            Product.objects.create(sku="NEG", name="Neg", price=Decimal("-1.00"))
