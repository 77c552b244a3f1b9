"""Order domain constants.

Defines the order status state machine, payment choices and the
fallback delivery options offered when the delivery table is
unreachable.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    SHIPPED = "shipped", "Shipped"
    CANCELLED = "cancelled", "Cancelled"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.SHIPPED, OrderStatus.CANCELLED}

# Single forward step offered to operational staff.
NEXT_STATUS: dict[str, Optional[str]] = {
    OrderStatus.PENDING: OrderStatus.PAID,
    OrderStatus.PAID: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: None,
    OrderStatus.CANCELLED: None,
}


def next_status(current: str) -> Optional[str]:
    """Return the next forward status for *current*, or ``None`` if terminal."""
    return NEXT_STATUS.get(current)


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "credit_card", "Credit/Debit Card"
    PAYPAL = "paypal", "PayPal"
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on Delivery"


class PaymentStatus(models.TextChoices):
    INITIATED = "initiated", "Initiated"
    SUCCESS = "success", "Success"
    FAILED = "failed", "Failed"


class AddressType(models.TextChoices):
    SHIPPING = "shipping", "Shipping"
    BILLING = "billing", "Billing"


MONEY_QUANTUM = Decimal("0.01")
# Allowed drift between client-submitted and recomputed totals.
TOTALS_TOLERANCE = Decimal("0.01")

DEFAULT_COUNTRY = "United States"

# Served by GET /delivery-methods when the delivery table cannot be read.
FALLBACK_DELIVERY_METHODS: list[dict] = [
    {
        "code": "standard",
        "name": "Standard Shipping",
        "description": "Free standard shipping",
        "price": Decimal("0.00"),
        "min_days": 5,
        "max_days": 7,
    },
    {
        "code": "express",
        "name": "Express Shipping",
        "description": "Fast delivery",
        "price": Decimal("9.99"),
        "min_days": 2,
        "max_days": 3,
    },
]


def quantize_money(value: Decimal) -> Decimal:
    """Round *value* half-up to whole cents."""
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def estimated_days_label(min_days: int, max_days: int) -> str:
    """Human label for a delivery window, e.g. ``"5-7 business days"``."""
    if min_days == max_days:
        unit = "business day" if max_days == 1 else "business days"
        return f"{max_days} {unit}"
    return f"{min_days}-{max_days} business days"
