"""Unit tests for the order status state machine and derived values."""

import itertools
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from modules.orders.constants import (
    OrderStatus,
    VALID_TRANSITIONS,
    estimated_days_label,
    next_status,
    quantize_money,
)
from modules.orders.models import DeliveryMethod, Order, OrderItem

pytestmark = pytest.mark.unit


ALLOWED = [
    (OrderStatus.PENDING, OrderStatus.PAID),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.SHIPPED),
    (OrderStatus.PAID, OrderStatus.CANCELLED),
]

REJECTED = [
    pair
    for pair in itertools.product(OrderStatus.values, repeat=2)
    if pair not in ALLOWED
]


class TestTransitions:
    @pytest.mark.parametrize("current, target", ALLOWED)
    def test_allowed(self, current, target):
        assert Order(status=current).can_transition_to(target)

    @pytest.mark.parametrize("current, target", REJECTED)
    def test_rejected(self, current, target):
        assert not Order(status=current).can_transition_to(target)

    def test_table_matches_allowed_pairs(self):
        table = {
            (current, target)
            for current, targets in VALID_TRANSITIONS.items()
            for target in targets
        }
        assert table == set(ALLOWED)
        assert len(REJECTED) == 12

    def test_terminal_states_have_no_exit(self):
        for status in (OrderStatus.SHIPPED, OrderStatus.CANCELLED):
            assert VALID_TRANSITIONS[status] == set()
            assert Order(status=status).is_terminal

    @pytest.mark.parametrize(
        "current, expected",
        [
            (OrderStatus.PENDING, OrderStatus.PAID),
            (OrderStatus.PAID, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, None),
            (OrderStatus.CANCELLED, None),
        ],
    )
    def test_next_status(self, current, expected):
        assert next_status(current) == expected
        assert Order(status=current).next_status == expected


class TestDerivedValues:
    def test_order_number_is_uuid_tail(self):
        order_id = UUID("01890a5d-ac96-774b-bcce-b302099a8057")
        assert Order.order_number_for(order_id) == "099A8057"

    def test_line_total(self):
        line = OrderItem(unit_price=Decimal("12.50"), quantity=3)
        assert line.line_total == Decimal("37.50")

    def test_estimated_delivery_uses_upper_bound(self):
        method = DeliveryMethod(min_days=2, max_days=3)
        placed = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)
        assert method.estimated_delivery(placed) == datetime(
            2026, 2, 4, 10, 0, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize(
        "window, label",
        [((5, 7), "5-7 business days"), ((1, 1), "1 business day"), ((3, 3), "3 business days")],
    )
    def test_estimated_days_label(self, window, label):
        assert estimated_days_label(*window) == label

    def test_quantize_money_rounds_half_up(self):
        assert quantize_money(Decimal("2.345")) == Decimal("2.35")
        assert quantize_money(Decimal("2.344")) == Decimal("2.34")
