"""Unit tests for order DTO validation."""

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.dtos import (
    DeliveryMethodDTO,
    PlaceOrderDTO,
    PlaceOrderItemDTO,
    ShippingAddressDTO,
)
from modules.orders.services import fallback_delivery_methods

pytestmark = pytest.mark.unit


def _address(**overrides):
    values = {
        "full_name": " Ana Souza ",
        "phone": "5035550100",
        "email": "ana@example.com",
        "address_line_1": "100 Main Street",
        "city": "Portland",
        "state": "OR",
        "postal_code": "97201",
    }
    values.update(overrides)
    return values


def _order(**overrides):
    values = {
        "items": [{"product_id": uuid4(), "quantity": 2, "unit_price": "50.00"}],
        "shipping_address": _address(),
        "delivery_method_id": "express",
        "payment_method": "paypal",
        "subtotal": "100.00",
        "shipping_cost": "9.99",
        "tax_amount": "8.00",
        "total": "117.99",
        "customer_email": "ana@example.com",
    }
    values.update(overrides)
    return values


class TestShippingAddressDTO:
    def test_strips_whitespace_and_defaults_country(self):
        dto = ShippingAddressDTO(**_address())
        assert dto.full_name == "Ana Souza"
        assert dto.country == "United States"

    def test_blank_required_field(self):
        with pytest.raises(ValidationError):
            ShippingAddressDTO(**_address(city="  "))

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            ShippingAddressDTO(**_address(email="nope"))


class TestPlaceOrderDTO:
    def test_valid(self):
        dto = PlaceOrderDTO(**_order())
        assert dto.cod_fee == Decimal("0.00")
        assert dto.notes == ""
        assert dto.items[0].line_total == Decimal("100.00")

    def test_empty_items(self):
        with pytest.raises(ValidationError, match="at least one item"):
            PlaceOrderDTO(**_order(items=[]))

    def test_unknown_payment_method(self):
        with pytest.raises(ValidationError, match="Unknown payment method"):
            PlaceOrderDTO(**_order(payment_method="bitcoin"))

    def test_negative_money_rejected(self):
        with pytest.raises(ValidationError):
            PlaceOrderDTO(**_order(tax_amount="-1.00"))

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            PlaceOrderItemDTO(product_id=uuid4(), quantity=0, unit_price="1.00")

    def test_is_immutable(self):
        dto = PlaceOrderDTO(**_order())
        with pytest.raises(ValidationError):
            dto.total = Decimal("0")


class TestDeliveryMethodDTO:
    def test_fallback_options_use_code_as_id(self):
        standard, express = fallback_delivery_methods()
        assert standard.id == "standard"
        assert standard.price == Decimal("0.00")
        assert standard.estimated_days == "5-7 business days"
        assert express.id == "express"
        assert express.price == Decimal("9.99")

    def test_estimated_days_single_day(self):
        dto = DeliveryMethodDTO(
            id="overnight", code="overnight", name="Overnight", price="19.99",
            min_days=1, max_days=1,
        )
        assert dto.estimated_days == "1 business day"
