"""Order backend used by the checkout coordinator.

``IOrderGateway`` is the only way the coordinator reaches the order
commit.  ``ServiceOrderGateway`` runs in-process: it validates the
payload with the same serializer as ``POST /api/v1/orders/`` and calls
``OrderService`` directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from modules.checkout.exceptions import OrderSubmissionFailed
from modules.core.exceptions import flatten_errors
from modules.orders.dtos import DeliveryMethodDTO, PlaceOrderDTO
from modules.orders.exceptions import InvalidOrderRequest, OrderCreationFailed
from modules.orders.repositories.django_repository import DeliveryMethodDjangoRepository
from modules.orders.serializers import OrderSerializer, PlaceOrderSerializer
from modules.orders.services import DeliveryMethodService, OrderService

logger = structlog.get_logger(__name__)


class IOrderGateway(ABC):
    @abstractmethod
    def list_delivery_methods(self) -> List[DeliveryMethodDTO]:
        """Active delivery options.  May raise ``GatewayUnavailable``."""

    @abstractmethod
    def place_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Submit one order payload (camelCase keys) and return the order data.

        Raises ``OrderSubmissionFailed`` with the server's message.
        """


class ServiceOrderGateway(IOrderGateway):
    def __init__(
        self,
        order_service: OrderService,
        delivery_method_service: Optional[DeliveryMethodService] = None,
        user_id: Optional[int] = None,
    ) -> None:
        self._order_service = order_service
        self._delivery_service = delivery_method_service or DeliveryMethodService(
            DeliveryMethodDjangoRepository()
        )
        self._user_id = user_id

    def list_delivery_methods(self) -> List[DeliveryMethodDTO]:
        return self._delivery_service.list_active()

    def place_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        serializer = PlaceOrderSerializer(data=payload)
        if not serializer.is_valid():
            errors = flatten_errors(serializer.errors)
            raise OrderSubmissionFailed(errors[0]["detail"])

        try:
            dto = PlaceOrderDTO(**serializer.validated_data, user_id=self._user_id)
            order = self._order_service.place_order(dto)
        except PydanticValidationError as exc:
            raise OrderSubmissionFailed(exc.errors()[0]["msg"]) from exc
        except InvalidOrderRequest as exc:
            raise OrderSubmissionFailed(str(exc)) from exc
        except OrderCreationFailed as exc:
            raise OrderSubmissionFailed(exc.message) from exc

        return OrderSerializer(order).data
