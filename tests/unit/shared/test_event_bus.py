"""Unit tests for domain events and the in-memory event bus."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderPlaced, OrderStatusChanged
from modules.orders.models import Order
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


def test_order_registers_and_clears_domain_events():
    order = Order(customer_email="ana@example.com", status=OrderStatus.PENDING)
    assert order.domain_events == []

    event = OrderPlaced(aggregate_id=order.id, order_number="A1B2C3D4")
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderPlaced"

    order.clear_domain_events()
    assert order.domain_events == []


def test_from_payload_ignores_unknown_keys():
    aggregate_id = uuid4()
    event = OrderStatusChanged.from_payload(
        {
            "aggregate_id": aggregate_id,
            "old_status": "pending",
            "new_status": "paid",
            "event_name": "OrderStatusChanged",
            "unexpected": 1,
        }
    )
    assert event.aggregate_id == aggregate_id
    assert event.new_status == "paid"


def test_publish_reaches_subscribed_handlers_only():
    bus = InMemoryEventBus()
    placed, changed = Recorder(), Recorder()
    bus.subscribe(OrderPlaced, placed)
    bus.subscribe(OrderStatusChanged, changed)

    event = OrderPlaced(aggregate_id=uuid4())
    assert bus.publish(event) == 1
    assert placed.events == [event]
    assert changed.events == []


def test_subscribe_is_idempotent():
    bus = InMemoryEventBus()
    handler = Recorder()
    bus.subscribe(OrderPlaced, handler)
    bus.subscribe(OrderPlaced, handler)

    assert bus.publish(OrderPlaced(aggregate_id=uuid4())) == 1


def test_event_class_lookup_by_name():
    bus = InMemoryEventBus()
    bus.subscribe(OrderPlaced, Recorder())

    assert bus.event_class("OrderPlaced") is OrderPlaced
    assert bus.event_class("Unknown") is None
