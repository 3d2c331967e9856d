from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from django.core.cache import caches

from rest_framework.test import APIClient

from modules.accounts.models import Account
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from tests.fakes import SHIPPING_ADDRESS, InMemoryCacheStore


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_caches():
    """Local-memory caches outlive a single test; start every test empty."""
    for alias in ("default", "carts"):
        caches[alias].clear()
    yield


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client():
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    user = get_user_model().objects.create_user(username="apiuser", password="testpass123")
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture()
def account():
    return Account.objects.create(
        email="buyer@example.com", first_name="Bea", last_name="Buyer"
    )


@pytest.fixture()
def inactive_account():
    return Account.objects.create(
        email="dormant@example.com", first_name="Dan", is_active=False
    )


@pytest.fixture()
def make_product():
    """Factory for products; SKUs are generated when not given."""
    counter = {"n": 0}

    def _make(price="10.00", stock=100, is_active=True, **kwargs):
        counter["n"] += 1
        kwargs.setdefault("sku", f"SKU-{counter['n']:04d}")
        kwargs.setdefault("name", f"Product {counter['n']}")
        return Product.objects.create(
            price=Decimal(price), stock=stock, is_active=is_active, **kwargs
        )

    return _make


@pytest.fixture()
def cache_store():
    return InMemoryCacheStore()


@pytest.fixture()
def order_service(cache_store):
    """``OrderService`` over the Django repositories and an in-memory cache."""
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        account_repository=AccountDjangoRepository(),
        cache=cache_store,
        cache_ttl=300,
    )
