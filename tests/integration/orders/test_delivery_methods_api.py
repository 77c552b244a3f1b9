"""Integration tests for GET /api/v1/delivery-methods/."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from modules.orders.models import DeliveryMethod

pytestmark = pytest.mark.integration

URL = "/api/v1/delivery-methods/"


class TestDeliveryMethods:
    def test_lists_seeded_methods_cheapest_first(self, api_client):
        response = api_client.get(URL)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [m["code"] for m in data] == ["standard", "express", "overnight"]
        assert data[0]["estimatedDays"] == "5-7 business days"
        assert data[2]["estimatedDays"] == "1 business day"
        assert Decimal(str(data[1]["price"])) == Decimal("9.99")
        assert data[1]["id"] == str(DeliveryMethod.objects.get(code="express").id)

    def test_inactive_methods_are_hidden(self, api_client):
        DeliveryMethod.objects.filter(code="overnight").update(is_active=False)

        codes = [m["code"] for m in api_client.get(URL).json()["data"]]

        assert codes == ["standard", "express"]

    def test_inactive_method_cannot_be_ordered(
        self, api_client, make_product, express, order_payload
    ):
        product = make_product()
        DeliveryMethod.objects.filter(code="express").update(is_active=False)

        response = api_client.post(
            "/api/v1/orders/", order_payload([(product, 1)], express), format="json"
        )

        assert response.status_code == 400

    def test_database_failure_serves_fallback(self, api_client):
        target = (
            "modules.orders.repositories.django_repository."
            "DeliveryMethodDjangoRepository.list_active"
        )
        with patch(target, side_effect=DatabaseError("relation does not exist")):
            response = api_client.get(URL)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [m["id"] for m in data] == ["standard", "express"]
        assert data[0]["minDays"] == 5
        assert data[1]["maxDays"] == 3
