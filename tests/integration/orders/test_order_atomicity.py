"""Integration tests for the all-or-nothing order commit.

A failure at any step after the first insert must leave no address,
order, line, payment or history row behind and no stock decremented.
"""

from __future__ import annotations

from unittest.mock import patch
from uuid import uuid4

import pytest
from django.db import IntegrityError, OperationalError

from modules.core.models import OutboxEvent
from modules.orders.models import (
    Order,
    OrderItem,
    OrderStatusHistory,
    Payment,
    ShippingAddress,
)

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def assert_nothing_written():
    assert ShippingAddress.objects.count() == 0
    assert Order.objects.count() == 0
    assert OrderItem.objects.count() == 0
    assert Payment.objects.count() == 0
    assert OrderStatusHistory.objects.count() == 0
    assert OutboxEvent.objects.count() == 0


class TestOrderAtomicity:
    def test_partial_stock_shortage_rolls_back_everything(
        self, api_client, make_product, standard, order_payload
    ):
        plenty = make_product(name="Plenty", price="10.00", stock=10)
        scarce = make_product(name="Scarce", price="20.00", stock=1)

        response = api_client.post(
            URL, order_payload([(plenty, 3), (scarce, 2)], standard), format="json"
        )

        assert response.status_code == 409
        plenty.refresh_from_db()
        scarce.refresh_from_db()
        assert plenty.stock == 10
        assert scarce.stock == 1
        assert_nothing_written()

    def test_unknown_product_rolls_back(self, api_client, make_product, standard, order_payload):
        product = make_product(stock=4)
        payload = order_payload([(product, 1)], standard)
        payload["items"].append(
            {"productId": str(uuid4()), "name": "Ghost", "quantity": 1, "unitPrice": "0.00"}
        )

        response = api_client.post(URL, payload, format="json")

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to create order"
        product.refresh_from_db()
        assert product.stock == 4
        assert_nothing_written()

    def test_payment_insert_failure_rolls_back(
        self, api_client, make_product, express, order_payload
    ):
        product = make_product(stock=5)
        target = (
            "modules.orders.repositories.django_repository."
            "OrderDjangoRepository.create_payment"
        )
        with patch(target, side_effect=IntegrityError("payments insert failed")):
            response = api_client.post(
                URL, order_payload([(product, 2)], express), format="json"
            )

        assert response.status_code == 500
        assert response.json()["errors"][0]["code"] == "order_creation_failed"
        product.refresh_from_db()
        assert product.stock == 5
        assert_nothing_written()

    def test_delivery_lookup_failure_returns_envelope(
        self, api_client, make_product, express, order_payload
    ):
        product = make_product(stock=5)
        target = (
            "modules.orders.repositories.django_repository."
            "DeliveryMethodDjangoRepository.resolve"
        )
        with patch(target, side_effect=OperationalError("connection lost")):
            response = api_client.post(
                URL, order_payload([(product, 2)], express), format="json"
            )

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Failed to create order"
        assert body["errors"][0]["code"] == "order_creation_failed"
        product.refresh_from_db()
        assert product.stock == 5
        assert_nothing_written()

    def test_exact_stock_is_sold_out(self, api_client, make_product, express, order_payload):
        product = make_product(stock=2)

        response = api_client.post(URL, order_payload([(product, 2)], express), format="json")

        assert response.status_code == 201
        product.refresh_from_db()
        assert product.stock == 0

    def test_second_order_for_last_unit_is_rejected(
        self, api_client, make_product, express, order_payload
    ):
        product = make_product(stock=1)
        payload = order_payload([(product, 1)], express)

        assert api_client.post(URL, payload, format="json").status_code == 201
        assert api_client.post(URL, payload, format="json").status_code == 409

        product.refresh_from_db()
        assert product.stock == 0
        assert Order.objects.count() == 1
