from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.products.models import Product


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


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
    user = get_user_model().objects.create_user(username="staff", password="testpass123")
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def make_customer():
    counter = {"n": 0}

    def _make(**overrides) -> Customer:
        counter["n"] += 1
        defaults = {
            "name": f"Customer {counter['n']}",
            "phone": f"09000000{counter['n']:02d}",
        }
        defaults.update(overrides)
        return Customer.objects.create(**defaults)

    return _make


@pytest.fixture()
def customer(make_customer):
    return make_customer(name="Nguyen Van A", phone="0901234567")


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        defaults = {
            "name": f"Home Shirt {counter['n']}",
            "team_name": f"Team {counter['n']}",
            "category": "Club",
            "size": "M",
            "price": Decimal("100.00"),
            "quantity": 10,
        }
        defaults.update(overrides)
        return Product.objects.create(**defaults)

    return _make


@pytest.fixture()
def product(make_product):
    return make_product(name="Arsenal Home 24/25", team_name="Arsenal", quantity=5)
