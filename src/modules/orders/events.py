"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when the order commit transaction succeeds."""

    order_number: str = ""
    total: str = "0.00"
    item_count: int = 0
    guest: bool = True


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when staff move an order to another status."""

    old_status: Optional[str] = None
    new_status: str = ""
