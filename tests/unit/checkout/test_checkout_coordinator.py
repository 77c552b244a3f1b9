"""Unit tests for CheckoutCoordinator with a mocked order gateway."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from modules.cart.storage import InMemoryCartStorage
from modules.cart.store import CartStore
from modules.checkout.coordinator import (
    CheckoutCoordinator,
    SubmissionState,
    compute_totals,
)
from modules.checkout.exceptions import (
    GatewayUnavailable,
    OrderSubmissionFailed,
    SubmissionInProgress,
    ValidationFailed,
)
from modules.checkout.gateways import IOrderGateway
from modules.orders.dtos import DeliveryMethodDTO

pytestmark = pytest.mark.unit

EXPRESS = DeliveryMethodDTO(
    id="7b0c7e1c-4a8e-4b8e-9a59-0c1e8c3f6d21",
    code="express",
    name="Express Shipping",
    price=Decimal("9.99"),
    min_days=2,
    max_days=3,
)
STANDARD = DeliveryMethodDTO(
    id="2f7f5a44-6f0e-4c41-a3c1-5d6a0f1e2b33",
    code="standard",
    name="Standard Shipping",
    price=Decimal("0.00"),
    min_days=5,
    max_days=7,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def cart():
    store = CartStore(InMemoryCartStorage())
    store.add_item(
        {
            "product_id": "0d6f2c1e-1b3a-4a4e-8d0e-3f5b9c7a1e22",
            "name": "Riso Print",
            "price": "50.00",
            "quantity": 2,
            "max_stock": 5,
        }
    )
    return store


@pytest.fixture()
def gateway():
    mock = MagicMock(spec=IOrderGateway)
    mock.list_delivery_methods.return_value = [STANDARD, EXPRESS]
    mock.place_order.return_value = {"orderId": "abc", "orderNumber": "A1B2C3D4"}
    return mock


@pytest.fixture()
def coordinator(cart, gateway):
    checkout = CheckoutCoordinator(
        cart,
        gateway,
        tax_rate=Decimal("0.08"),
        cod_fee=Decimal("2.99"),
        today=lambda: date(2026, 6, 15),
    )
    checkout.load_delivery_methods()
    return checkout


def fill_form(checkout, method="paypal"):
    address = checkout.shipping_address
    address.full_name = "Ana Souza"
    address.phone = "(503) 555-0100"
    address.email = "  ana@example.com "
    address.address_line_1 = "100 Main Street"
    address.city = "Portland"
    address.state = "OR"
    address.postal_code = "97201"
    checkout.payment.method = method


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


class TestTotals:
    def test_compute_totals(self):
        totals = compute_totals(
            Decimal("100.00"), Decimal("9.99"), "credit_card", Decimal("0.08"), Decimal("2.99")
        )
        assert totals.tax_amount == Decimal("8.00")
        assert totals.cod_fee == Decimal("0.00")
        assert totals.total == Decimal("117.99")

    def test_cash_on_delivery_adds_fee(self):
        totals = compute_totals(
            Decimal("10.00"), Decimal("0"), "cash_on_delivery", Decimal("0.08"), Decimal("2.99")
        )
        assert totals.cod_fee == Decimal("2.99")
        assert totals.total == Decimal("13.79")

    def test_amounts_round_half_up(self):
        totals = compute_totals(
            Decimal("0.125"), Decimal("0"), "paypal", Decimal("0.08"), Decimal("0")
        )
        assert totals.subtotal == Decimal("0.13")

    def test_coordinator_totals_follow_selection(self, coordinator):
        assert coordinator.totals().shipping_cost == Decimal("0.00")
        coordinator.select_delivery_method(EXPRESS.id)
        assert coordinator.totals().total == Decimal("117.99")


# ---------------------------------------------------------------------------
# Delivery methods
# ---------------------------------------------------------------------------


class TestDeliveryMethods:
    def test_first_method_is_preselected(self, coordinator):
        assert coordinator.delivery_method_id == STANDARD.id

    def test_gateway_outage_falls_back_to_defaults(self, cart, gateway):
        gateway.list_delivery_methods.side_effect = GatewayUnavailable("offline")
        checkout = CheckoutCoordinator(cart, gateway, tax_rate=Decimal("0.08"))

        methods = checkout.load_delivery_methods()
        assert [m.code for m in methods] == ["standard", "express"]
        assert checkout.delivery_method_id == "standard"


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------


class TestPayload:
    def test_shape(self, coordinator):
        fill_form(coordinator)
        coordinator.select_delivery_method(EXPRESS.id)
        payload = coordinator.build_payload()

        assert payload["customerEmail"] == "ana@example.com"
        assert payload["deliveryMethodId"] == EXPRESS.id
        assert payload["orderNotes"] is None
        assert payload["items"][0]["unitPrice"] == Decimal("50.00")
        assert payload["items"][0]["quantity"] == 2
        assert payload["total"] == Decimal("117.99")

    def test_notes_are_trimmed(self, coordinator):
        coordinator.notes = "  ring twice "
        assert coordinator.build_payload()["orderNotes"] == "ring twice"


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


class TestSubmit:
    def test_validation_errors_block_submission(self, coordinator, gateway):
        with pytest.raises(ValidationFailed) as exc_info:
            coordinator.submit()

        assert "fullName" in exc_info.value.errors
        assert coordinator.errors == exc_info.value.errors
        gateway.place_order.assert_not_called()
        assert coordinator.state == SubmissionState.IDLE

    def test_card_errors_block_submission(self, coordinator, gateway):
        fill_form(coordinator, method="credit_card")
        with pytest.raises(ValidationFailed) as exc_info:
            coordinator.submit()
        assert "cardNumber" in exc_info.value.errors
        gateway.place_order.assert_not_called()

    def test_success_clears_cart(self, coordinator, gateway, cart):
        fill_form(coordinator)
        confirmation = coordinator.submit()

        assert confirmation["orderNumber"] == "A1B2C3D4"
        assert coordinator.state == SubmissionState.SUCCEEDED
        assert coordinator.confirmation == confirmation
        assert cart.get_state().is_empty
        gateway.place_order.assert_called_once()

    def test_server_failure_keeps_cart_and_message(self, coordinator, gateway, cart):
        gateway.place_order.side_effect = OrderSubmissionFailed("Failed to create order")
        fill_form(coordinator)

        with pytest.raises(OrderSubmissionFailed):
            coordinator.submit()

        assert coordinator.state == SubmissionState.FAILED
        assert coordinator.last_error == "Failed to create order"
        assert cart.get_state().total_items == 2

    def test_unexpected_failure_marks_failed(self, coordinator, gateway, cart):
        gateway.place_order.side_effect = ConnectionError("reset")
        fill_form(coordinator)

        with pytest.raises(ConnectionError):
            coordinator.submit()
        assert coordinator.state == SubmissionState.FAILED
        assert cart.get_state().total_items == 2

    def test_retry_after_failure(self, coordinator, gateway):
        gateway.place_order.side_effect = [
            OrderSubmissionFailed("Failed to create order"),
            {"orderNumber": "A1B2C3D4"},
        ]
        fill_form(coordinator)

        with pytest.raises(OrderSubmissionFailed):
            coordinator.submit()
        assert coordinator.submit()["orderNumber"] == "A1B2C3D4"
        assert coordinator.last_error is None

    def test_concurrent_submit_is_rejected(self, coordinator, gateway):
        fill_form(coordinator)
        coordinator.state = SubmissionState.SUBMITTING

        with pytest.raises(SubmissionInProgress):
            coordinator.submit()
        gateway.place_order.assert_not_called()
