from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.orders.models import DeliveryMethod
from modules.products.models import Product

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters and cart entries live in the cache."""
    cache.clear()
    yield
    cache.clear()


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
def shopper():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="staff", password="testpass123", is_staff=True
    )


@pytest.fixture()
def staff_client(staff_user):
    """APIClient force-authenticated as a staff member."""
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def make_product():
    def _make(name="Riso Print", price="50.00", stock=5, **extra):
        return Product.objects.create(
            name=name, price=Decimal(price), stock=stock, **extra
        )

    return _make


@pytest.fixture()
def express():
    """Seeded by the delivery-method data migration."""
    return DeliveryMethod.objects.get(code="express")


@pytest.fixture()
def standard():
    return DeliveryMethod.objects.get(code="standard")


@pytest.fixture()
def shipping_address():
    return {
        "fullName": "Ana Souza",
        "phone": "(503) 555-0100",
        "email": "ana@example.com",
        "addressLine1": "100 Main Street",
        "addressLine2": "Apt 4",
        "city": "Portland",
        "state": "OR",
        "postalCode": "97201",
        "country": "United States",
    }


@pytest.fixture()
def order_payload(shipping_address):
    """Build a commit payload for ``(product, quantity)`` lines.

    Totals follow the default 8% tax rate and the given delivery method.
    """

    def _build(lines, delivery_method, payment_method="credit_card", **overrides):
        subtotal = sum(
            (product.price * quantity for product, quantity in lines), Decimal("0.00")
        )
        tax = (subtotal * Decimal("0.08")).quantize(Decimal("0.01"))
        cod_fee = Decimal("2.99") if payment_method == "cash_on_delivery" else Decimal("0")
        payload = {
            "items": [
                {
                    "productId": str(product.id),
                    "name": product.name,
                    "quantity": quantity,
                    "unitPrice": str(product.price),
                }
                for product, quantity in lines
            ],
            "shippingAddress": shipping_address,
            "deliveryMethodId": str(delivery_method.id),
            "paymentMethod": payment_method,
            "subtotal": str(subtotal),
            "shippingCost": str(delivery_method.price),
            "taxAmount": str(tax),
            "codFee": str(cod_fee),
            "total": str(subtotal + delivery_method.price + tax + cod_fee),
            "orderNotes": "Leave at the door",
            "customerEmail": shipping_address["email"],
        }
        payload.update(overrides)
        return payload

    return _build
