"""Order API views.

Exposes ``OrderService`` and ``DeliveryMethodService`` via HTTP using DRF
ViewSets.  Domain exceptions are caught and translated into HTTP status
codes wrapped in the storefront envelope; the views never swallow
generic exceptions.
"""

from __future__ import annotations

import structlog
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import error_response
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import PlaceOrderDTO
from modules.orders.exceptions import (
    InvalidOrderRequest,
    InvalidOrderStatus,
    OrderCreationFailed,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.repositories.django_repository import (
    DeliveryMethodDjangoRepository,
    OrderDjangoRepository,
)
from modules.orders.serializers import (
    DeliveryMethodSerializer,
    OrderListSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    StatusUpdateSerializer,
)
from modules.orders.services import DeliveryMethodService, OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository

logger = structlog.get_logger(__name__)


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        delivery_method_repository=DeliveryMethodDjangoRepository(),
    )


def _order_not_found() -> Response:
    return error_response("Order not found", status.HTTP_404_NOT_FOUND, "not_found")


class OrderViewSet(GenericViewSet):
    """Checkout endpoints: place an order, read it back.

    Guest checkout is allowed: a bearer token is optional and, when
    present, attaches the order to the authenticated user.
    """

    permission_classes = [AllowAny]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        self.throttle_scope = "order_creation" if self.action == "create" else None
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = PlaceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user_id = request.user.pk if request.user.is_authenticated else None
        try:
            dto = PlaceOrderDTO(**serializer.validated_data, user_id=user_id)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            return error_response(first["msg"], status.HTTP_400_BAD_REQUEST, "invalid")

        try:
            order = self._service.place_order(dto)
        except InvalidOrderRequest as exc:
            return error_response(str(exc), status.HTTP_400_BAD_REQUEST, "invalid_order")
        except OrderCreationFailed as exc:
            logger.info("api.order_creation_failed", stock_shortage=exc.stock_shortage)
            code = (
                status.HTTP_409_CONFLICT
                if exc.stock_shortage
                else status.HTTP_500_INTERNAL_SERVER_ERROR
            )
            return error_response(exc.message, code, "order_creation_failed")

        return Response(
            {
                "success": True,
                "message": "Order created successfully",
                "data": OrderSerializer(order).data,
            },
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(str(pk))
        except OrderNotFound:
            return _order_not_found()
        return Response({"success": True, "data": OrderSerializer(order).data})


class DeliveryMethodViewSet(GenericViewSet):
    """GET /api/v1/delivery-methods/ (public, unpaginated)."""

    permission_classes = [AllowAny]
    pagination_class = None

    def list(self, request: Request) -> Response:
        service = DeliveryMethodService(DeliveryMethodDjangoRepository())
        methods = service.list_active()
        return Response(
            {"success": True, "data": DeliveryMethodSerializer(methods, many=True).data}
        )


class AdminOrderViewSet(GenericViewSet):
    """Staff order management: list, inspect, advance status."""

    permission_classes = [IsAdminUser]
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "order_listing" if self.action == "list" else None
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    def list(self, request: Request) -> Response:
        """GET /api/v1/admin/orders/

        Filtering (status, search, date range, total range) is handled
        by ``OrderFilter``; ordering by ``OrderingFilter``.  Paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/admin/orders/{pk}/"""
        try:
            order = self._service.get_order(str(pk))
        except OrderNotFound:
            return _order_not_found()
        return Response({"success": True, "data": OrderSerializer(order).data})

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/admin/orders/{pk}/status/

        Only the transitions in the state machine are accepted; anything
        else is rejected and the stored status stays as it was.
        """
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.update_status(
                order_id=str(pk),
                new_status=serializer.validated_data["status"],
                notes=serializer.validated_data["notes"],
                user_id=request.user.pk,
            )
        except OrderNotFound:
            return _order_not_found()
        except InvalidOrderStatus as exc:
            return error_response(
                str(exc), status.HTTP_400_BAD_REQUEST, "invalid_transition"
            )

        return Response(
            {
                "success": True,
                "message": f"Order status updated to {order.status}",
                "data": OrderSerializer(order).data,
            }
        )
