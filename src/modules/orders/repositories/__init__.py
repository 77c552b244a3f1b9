"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    DeliveryMethodDjangoRepository,
    OrderDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IDeliveryMethodRepository,
    IOrderRepository,
)

__all__ = [
    "DeliveryMethodDjangoRepository",
    "IDeliveryMethodRepository",
    "IOrderRepository",
    "OrderDjangoRepository",
]
