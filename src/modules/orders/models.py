"""Checkout persistence: addresses, delivery methods, orders, items, payments.

Business rules implemented:
- An order owns exactly one shipping address (created fresh per order).
- ``order_number`` is derived from the order UUID (deterministic).
- Totals are stored as submitted: ``total == subtotal + shipping_cost +
  tax_amount + cod_fee`` is checked by the service before insert.
- OrderItem snapshots the unit price at order time (``unit_price``).
- A payment row is only a recorded intent (``initiated``).
- Every status change produces an ``OrderStatusHistory`` record.
- ``user`` is nullable: ``None`` means guest checkout.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    DEFAULT_COUNTRY,
    NEXT_STATUS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    AddressType,
    OrderStatus,
    PaymentStatus,
    estimated_days_label,
)
from shared.domain.events import DomainEventMixin

ORDER_NUMBER_LENGTH = 8


def money_field(**kwargs: Any) -> models.DecimalField:
    kwargs.setdefault("default", Decimal("0.00"))
    return models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        **kwargs,
    )


class ShippingAddress(BaseModel):
    """Address captured at checkout; never reused across orders."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="addresses",
    )
    address_type = models.CharField(
        max_length=20,
        choices=AddressType.choices,
        default=AddressType.SHIPPING,
    )
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32)
    email = models.EmailField()
    address_line_1 = models.CharField(max_length=255)
    address_line_2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=128)
    state = models.CharField(max_length=128)
    postal_code = models.CharField(max_length=32)
    country = models.CharField(max_length=128, default=DEFAULT_COUNTRY)

    class Meta:
        db_table = "addresses"

    def __str__(self) -> str:
        return f"{self.full_name}, {self.city} ({self.postal_code})"


class DeliveryMethod(BaseModel):
    """Shipping option with a flat price and a business-day window."""

    code = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, blank=True, default="")
    price = money_field()
    min_days = models.PositiveSmallIntegerField()
    max_days = models.PositiveSmallIntegerField()
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "delivery_methods"
        ordering = ["price", "name"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(max_days__gte=models.F("min_days")),
                name="delivery_methods_window_ordered",
            ),
        ]

    @property
    def estimated_days(self) -> str:
        return estimated_days_label(self.min_days, self.max_days)

    def estimated_delivery(self, placed_at: datetime) -> datetime:
        """Upper bound of the delivery window counted from *placed_at*."""
        return placed_at + timedelta(days=self.max_days)

    def __str__(self) -> str:
        return f"{self.name} ({self.price})"


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is the last eight hex digits of the UUIDv7 ``id``,
    upper-cased.  The leading digits of a UUIDv7 are a timestamp, so they
    are not used.  The number is a display label, not a key: with 32 bits
    two orders can share one, so lookups go through ``id``.
    """

    order_number = models.CharField(
        max_length=ORDER_NUMBER_LENGTH, db_index=True, editable=False
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    customer_email = models.EmailField()
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    shipping_address = models.OneToOneField(
        "orders.ShippingAddress",
        on_delete=models.PROTECT,
        related_name="order",
    )
    delivery_method = models.ForeignKey(
        "orders.DeliveryMethod",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    subtotal = money_field()
    shipping_cost = money_field()
    tax_amount = money_field()
    cod_fee = money_field()
    total = money_field()
    payment_method = models.CharField(max_length=32)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["customer_email"], name="orders_email_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    @property
    def next_status(self) -> Optional[str]:
        return NEXT_STATUS.get(self.status)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @staticmethod
    def order_number_for(order_id: Any) -> str:
        return order_id.hex[-ORDER_NUMBER_LENGTH:].upper()

    @property
    def estimated_delivery(self) -> datetime:
        return self.delivery_method.estimated_delivery(self.created_at)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            self.order_number = self.order_number_for(self.id)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``unit_price`` is a **snapshot** taken at order time and never follows
    later catalog price changes.  ``position`` keeps the order in which
    the lines were submitted.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = money_field()
    options = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (${self.unit_price})"


class Payment(BaseModel):
    """Recorded intent to pay.  No settlement happens in this service."""

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payment",
    )
    amount = money_field()
    provider = models.CharField(max_length=50)
    payment_method = models.CharField(max_length=32)
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.INITIATED,
    )

    class Meta:
        db_table = "payments"

    def __str__(self) -> str:
        return f"{self.provider} {self.amount} [{self.status}]"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is nullable: ``None`` means the change was made by the
    system (the initial ``pending`` record at checkout).
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
