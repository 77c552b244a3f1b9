"""Django ORM implementations of the Order and DeliveryMethod repositories.

Writes do not open their own transactions: the order commit wraps the
whole address/order/lines/payment/stock sequence in one
``transaction.atomic`` block owned by the service.

Concurrency control on status updates uses ``select_for_update()``.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.dtos import PlaceOrderItemDTO, ShippingAddressDTO
from modules.orders.models import (
    DeliveryMethod,
    Order,
    OrderItem,
    OrderStatusHistory,
    Payment,
    ShippingAddress,
)
from modules.orders.repositories.interfaces import (
    IDeliveryMethodRepository,
    IOrderRepository,
)

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Commit writes
    # ------------------------------------------------------------------

    def create_address(
        self, address: ShippingAddressDTO, user_id: Optional[int] = None
    ) -> ShippingAddress:
        return ShippingAddress.objects.create(user_id=user_id, **address.model_dump())

    def create_order(self, data: Dict[str, Any]) -> Order:
        """Insert the order header.

        ``data`` keys mirror the ``Order`` fields: ``user_id``,
        ``customer_email``, ``shipping_address``, ``delivery_method``,
        the five money figures, ``payment_method`` and ``notes``.
        """
        order = Order(**data)
        order.save()
        logger.info(
            "order.header_created",
            order_id=str(order.id),
            order_number=order.order_number,
        )
        return order

    def add_item(self, order: Order, position: int, item: PlaceOrderItemDTO) -> OrderItem:
        return OrderItem.objects.create(
            order=order,
            product_id=item.product_id,
            position=position,
            product_name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            options=dict(item.options),
        )

    def create_payment(
        self, order: Order, amount: Decimal, payment_method: str
    ) -> Payment:
        return Payment.objects.create(
            order=order,
            amount=amount,
            provider=payment_method,
            payment_method=payment_method,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet:
        return Order.objects.select_related(
            "shipping_address", "delivery_method", "payment"
        ).prefetch_related("items__product", "status_history")

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Uses ``select_related`` for the address, delivery method and
        payment (single JOIN) and ``prefetch_related`` for items,
        items→product and status history.  Prevents N+1.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the ``orders`` row is locked; related rows are not joined.
        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Lazy queryset so filter backends and pagination can narrow it."""
        queryset = Order.objects.select_related("delivery_method").prefetch_related(
            "items"
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save (IRepository contract) + outbox
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        """Persist an order and flush its domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_serialize_event_payload(event),
                topic=OUTBOX_TOPIC,
            )
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Status history
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history


class DeliveryMethodDjangoRepository(IDeliveryMethodRepository):
    """Concrete DeliveryMethod repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[DeliveryMethod]:
        try:
            return DeliveryMethod.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, entity: DeliveryMethod) -> DeliveryMethod:
        entity.save()
        return entity

    def list_active(self) -> List[DeliveryMethod]:
        return list(DeliveryMethod.objects.filter(is_active=True).order_by("price", "name"))

    def resolve(self, identifier: str) -> Optional[DeliveryMethod]:
        """Accept either the UUID primary key or the human ``code``."""
        active = DeliveryMethod.objects.filter(is_active=True)
        try:
            method = active.filter(id=UUID(str(identifier))).first()
        except ValueError:
            method = None
        if method is None:
            method = active.filter(code=identifier).first()
        return method


def _serialize_event_payload(event: Any) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
