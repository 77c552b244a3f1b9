"""Integration tests for the staff order endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest
from rest_framework.test import APIClient

from modules.orders.models import Order, OrderStatusHistory
from modules.products.models import Product

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"
ADMIN_URL = "/api/v1/admin/orders/"


@pytest.fixture()
def place(api_client, make_product, express, order_payload):
    """Place one order through the public API and return its data."""
    product = make_product(stock=50)

    def _place(**overrides):
        payload = order_payload([(product, 1)], express, **overrides)
        response = api_client.post(ORDERS_URL, payload, format="json")
        assert response.status_code == 201, response.json()
        return response.json()["data"]

    return _place


def status_url(order_id):
    return f"{ADMIN_URL}{order_id}/status/"


class TestPermissions:
    def test_anonymous_cannot_list(self, api_client):
        assert api_client.get(ADMIN_URL).status_code == 401

    def test_customer_cannot_change_status(self, place, shopper):
        order = place()
        client = APIClient()
        client.force_authenticate(user=shopper)

        response = client.put(status_url(order["orderId"]), {"status": "paid"}, format="json")

        assert response.status_code == 403
        assert Order.objects.get().status == "pending"


class TestStatusTransitions:
    def test_forward_path(self, place, staff_client, staff_user):
        order = place()

        paid = staff_client.put(
            status_url(order["orderId"]), {"status": "paid", "notes": "Captured"}, format="json"
        )
        assert paid.status_code == 200
        assert paid.json()["message"] == "Order status updated to paid"
        assert paid.json()["data"]["nextStatus"] == "shipped"

        shipped = staff_client.put(status_url(order["orderId"]), {"status": "shipped"}, format="json")
        assert shipped.status_code == 200
        assert shipped.json()["data"]["nextStatus"] is None

        history = OrderStatusHistory.objects.filter(order_id=order["orderId"]).order_by("created_at")
        assert [(h.old_status, h.new_status) for h in history] == [
            (None, "pending"),
            ("pending", "paid"),
            ("paid", "shipped"),
        ]
        assert history[1].user == staff_user
        assert history[1].notes == "Captured"

    def test_cancel_from_pending(self, place, staff_client):
        order = place()
        response = staff_client.put(
            status_url(order["orderId"]), {"status": "cancelled"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

    def test_skip_ahead_is_rejected(self, place, staff_client):
        order = place()
        response = staff_client.put(status_url(order["orderId"]), {"status": "shipped"}, format="json")

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Cannot transition from pending to shipped."
        assert body["errors"][0]["code"] == "invalid_transition"
        assert Order.objects.get().status == "pending"
        assert OrderStatusHistory.objects.count() == 1

    def test_terminal_state_is_final(self, place, staff_client):
        order = place()
        staff_client.put(status_url(order["orderId"]), {"status": "cancelled"}, format="json")

        response = staff_client.put(status_url(order["orderId"]), {"status": "paid"}, format="json")

        assert response.status_code == 400
        assert Order.objects.get().status == "cancelled"

    def test_cancellation_does_not_restock(self, place, staff_client):
        order = place()
        product_id = order["items"][0]["productId"]

        before = Product.objects.get(id=product_id).stock
        staff_client.put(status_url(order["orderId"]), {"status": "cancelled"}, format="json")

        assert Product.objects.get(id=product_id).stock == before

    def test_unknown_status_value(self, place, staff_client):
        order = place()
        response = staff_client.put(status_url(order["orderId"]), {"status": "refunded"}, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "status"

    def test_unknown_order(self, staff_client):
        response = staff_client.put(status_url(uuid4()), {"status": "paid"}, format="json")
        assert response.status_code == 404


class TestListing:
    def test_paginated_envelope(self, place, staff_client):
        place()
        place()

        response = staff_client.get(ADMIN_URL, {"limit": 1})

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["results"]) == 1
        assert data["pagination"]["totalCount"] == 2
        assert data["pagination"]["totalPages"] == 2
        assert data["pagination"]["hasNextPage"] is True
        assert data["results"][0]["itemCount"] == 1
        assert data["results"][0]["deliveryMethod"] == "Express Shipping"

    def test_filter_by_status(self, place, staff_client):
        first = place()
        place()
        staff_client.put(status_url(first["orderId"]), {"status": "paid"}, format="json")

        results = staff_client.get(ADMIN_URL, {"status": "paid"}).json()["data"]["results"]

        assert [row["orderId"] for row in results] == [first["orderId"]]

    def test_search_by_order_number_prefix(self, place, staff_client):
        order = place()
        place()

        prefix = order["orderNumber"][:6].lower()
        results = staff_client.get(ADMIN_URL, {"search": prefix}).json()["data"]["results"]

        assert order["orderNumber"] in [row["orderNumber"] for row in results]

    def test_filter_by_email(self, place, staff_client, shipping_address):
        place()
        other = dict(shipping_address, email="bob@example.com")
        place(shippingAddress=other, customerEmail="bob@example.com")

        results = staff_client.get(ADMIN_URL, {"email": "BOB@example.com"}).json()["data"]["results"]

        assert [row["customerEmail"] for row in results] == ["bob@example.com"]

    def test_order_by_total(self, place, staff_client):
        place()
        results = staff_client.get(ADMIN_URL, {"ordering": "total"}).json()["data"]["results"]
        assert len(results) == 1

    def test_admin_detail(self, place, staff_client):
        order = place()
        response = staff_client.get(f"{ADMIN_URL}{order['orderId']}/")

        assert response.status_code == 200
        assert response.json()["data"]["statusHistory"][0]["newStatus"] == "pending"
