"""Order repository interfaces.

``IOrderRepository`` extends ``IRepository[Order]`` with the writes the
order commit needs (address, header, lines, payment stub) and the status
history trail.  ``IDeliveryMethodRepository`` resolves the delivery
options a checkout may reference.

The Service Layer depends exclusively on these contracts (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import PlaceOrderItemDTO, ShippingAddressDTO
    from modules.orders.models import (
        DeliveryMethod,
        Order,
        OrderItem,
        OrderStatusHistory,
        Payment,
        ShippingAddress,
    )


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes its ShippingAddress, OrderItem children, the
    Payment stub and OrderStatusHistory records.  Callers own the
    transaction boundary.
    """

    @abstractmethod
    def create_address(
        self, address: ShippingAddressDTO, user_id: Optional[int] = None
    ) -> ShippingAddress:
        """Insert a fresh shipping address row."""

    @abstractmethod
    def create_order(self, data: Dict[str, Any]) -> Order:
        """Insert the order header row (status ``pending``)."""

    @abstractmethod
    def add_item(self, order: Order, position: int, item: PlaceOrderItemDTO) -> OrderItem:
        """Insert one order line at *position*."""

    @abstractmethod
    def create_payment(
        self, order: Order, amount: Decimal, payment_method: str
    ) -> Payment:
        """Insert the ``initiated`` payment stub for *order*."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        new_status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""


class IDeliveryMethodRepository(IRepository["DeliveryMethod"]):
    """Repository contract for delivery methods."""

    @abstractmethod
    def list_active(self) -> List[DeliveryMethod]:
        """Active methods, cheapest first."""

    @abstractmethod
    def resolve(self, identifier: str) -> Optional[DeliveryMethod]:
        """Find an active method by UUID or by ``code``."""
