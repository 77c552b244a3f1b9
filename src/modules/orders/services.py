"""Order service layer (Use Cases).

Orchestrates the order commit transaction, status management and the
delivery-method look-up.  All write operations are atomic: the service
defines the unit-of-work boundary.

Business rules enforced:
- An order is committed all-or-nothing: address, header, lines, payment
  stub and stock decrements either all persist or none do.
- Stock is decremented with a conditional update, in product-id order.
- Submitted totals must add up, and (when verification is on) must match
  totals recomputed from the submitted lines and the delivery method.
- Status transitions are validated against the state machine and
  recorded in the history trail.  Cancelling does not restock.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import DatabaseError, transaction

from modules.orders.constants import (
    FALLBACK_DELIVERY_METHODS,
    TOTALS_TOLERANCE,
    OrderStatus,
    PaymentMethod,
    quantize_money,
)
from modules.orders.dtos import DeliveryMethodDTO
from modules.orders.events import OrderPlaced, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderStatus,
    OrderCreationFailed,
    OrderNotFound,
    TotalsMismatch,
    UnknownDeliveryMethod,
)
from modules.products.exceptions import InsufficientStock, ProductNotFound

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.dtos import PlaceOrderDTO, PlaceOrderItemDTO
    from modules.orders.models import DeliveryMethod, Order
    from modules.orders.repositories.interfaces import (
        IDeliveryMethodRepository,
        IOrderRepository,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).  Tax rate,
    cash-on-delivery fee and the totals check default to the
    ``STOREFRONT_*`` settings.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        delivery_method_repository: IDeliveryMethodRepository,
        *,
        tax_rate: Optional[Decimal] = None,
        cod_fee: Optional[Decimal] = None,
        verify_totals: Optional[bool] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._delivery_repo = delivery_method_repository
        self._tax_rate = (
            settings.STOREFRONT_TAX_RATE if tax_rate is None else Decimal(tax_rate)
        )
        self._cod_fee = settings.STOREFRONT_COD_FEE if cod_fee is None else Decimal(cod_fee)
        self._verify_totals = (
            settings.STOREFRONT_VERIFY_ORDER_TOTALS
            if verify_totals is None
            else verify_totals
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_order(self, dto: PlaceOrderDTO) -> Order:
        """Run the order commit transaction for one checkout submission.

        Validation happens before the transaction opens and raises
        ``InvalidOrderRequest`` subclasses.  Anything that fails once rows
        are being written rolls the transaction back and is re-raised as
        ``OrderCreationFailed``.

        Raises:
            UnknownDeliveryMethod: ``delivery_method_id`` matches nothing.
            TotalsMismatch: submitted totals are inconsistent.
            OrderCreationFailed: the commit rolled back, or the database
                failed while resolving the delivery method.
        """
        log = logger.bind(
            customer_email=dto.customer_email,
            item_count=len(dto.items),
            guest=dto.user_id is None,
        )
        log.info("order.placement_started")

        try:
            delivery_method = self._delivery_repo.resolve(dto.delivery_method_id)
        except DatabaseError as exc:
            log.error(
                "order.delivery_lookup_failed",
                reason=str(exc),
                error_type=exc.__class__.__name__,
            )
            raise OrderCreationFailed(str(exc)) from exc
        if delivery_method is None:
            log.warning("order.unknown_delivery_method", delivery_method_id=dto.delivery_method_id)
            raise UnknownDeliveryMethod(
                f"Delivery method '{dto.delivery_method_id}' is not available."
            )

        self._check_totals(dto, delivery_method)

        try:
            order = self._commit(dto, delivery_method)
        except (ProductNotFound, InsufficientStock) as exc:
            log.warning("order.commit_rolled_back", reason=str(exc))
            raise OrderCreationFailed(
                str(exc), stock_shortage=isinstance(exc, InsufficientStock)
            ) from exc
        except DatabaseError as exc:
            log.error(
                "order.commit_rolled_back",
                reason=str(exc),
                error_type=exc.__class__.__name__,
            )
            raise OrderCreationFailed(str(exc)) from exc

        log.info(
            "order.placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def _commit(self, dto: PlaceOrderDTO, delivery_method: DeliveryMethod) -> Order:
        address = self._order_repo.create_address(dto.shipping_address, dto.user_id)
        order = self._order_repo.create_order(
            {
                "user_id": dto.user_id,
                "customer_email": dto.customer_email,
                "shipping_address": address,
                "delivery_method": delivery_method,
                "subtotal": dto.subtotal,
                "shipping_cost": dto.shipping_cost,
                "tax_amount": dto.tax_amount,
                "cod_fee": dto.cod_fee,
                "total": dto.total,
                "payment_method": dto.payment_method,
                "notes": dto.notes,
            }
        )

        # Lines are written in product-id order so concurrent commits take
        # the stock row locks in the same sequence; position keeps the
        # submitted order.
        lines = sorted(enumerate(dto.items), key=lambda pair: str(pair[1].product_id))
        for position, item in lines:
            self._order_repo.add_item(order, position, item)
            remaining = self._product_repo.decrement_stock(item.product_id, item.quantity)
            logger.debug(
                "order.stock_decremented",
                order_id=str(order.id),
                product_id=str(item.product_id),
                quantity=item.quantity,
                remaining=remaining,
            )

        self._order_repo.create_payment(order, dto.total, dto.payment_method)

        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                order_number=order.order_number,
                total=str(dto.total),
                item_count=len(dto.items),
                guest=dto.user_id is None,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.PENDING,
            notes="Order placed",
        )
        return order

    @transaction.atomic
    def update_status(
        self,
        order_id: UUID,
        new_status: str,
        notes: str = "",
        user_id: Optional[int] = None,
    ) -> Order:
        """Transition an order to a new status.

        Acquires a row-level lock (``SELECT FOR UPDATE``) on the order
        before validating the transition.  A rejected transition leaves
        the stored status untouched.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: unknown status or transition not allowed.
        """
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown status '{new_status}'.")

        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=new_status,
        )

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

        old_status = order.status
        order.status = new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id, old_status=old_status, new_status=new_status
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=new_status,
            notes=notes,
            old_status=old_status,
            user_id=user_id,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def expected_totals(
        self,
        items: Iterable[PlaceOrderItemDTO],
        payment_method: str,
        delivery_method: DeliveryMethod,
    ) -> Dict[str, Decimal]:
        """Totals recomputed from the submitted lines and delivery method."""
        subtotal = quantize_money(
            sum((item.line_total for item in items), Decimal("0.00"))
        )
        shipping_cost = quantize_money(delivery_method.price)
        tax_amount = quantize_money(subtotal * self._tax_rate)
        cod_fee = (
            quantize_money(self._cod_fee)
            if payment_method == PaymentMethod.CASH_ON_DELIVERY
            else Decimal("0.00")
        )
        return {
            "subtotal": subtotal,
            "shipping_cost": shipping_cost,
            "tax_amount": tax_amount,
            "cod_fee": cod_fee,
            "total": subtotal + shipping_cost + tax_amount + cod_fee,
        }

    def _check_totals(self, dto: PlaceOrderDTO, delivery_method: DeliveryMethod) -> None:
        parts = dto.subtotal + dto.shipping_cost + dto.tax_amount + dto.cod_fee
        if abs(parts - dto.total) > TOTALS_TOLERANCE:
            raise TotalsMismatch("total", dto.total, parts)

        if not self._verify_totals:
            return

        for field, expected in self.expected_totals(
            dto.items, dto.payment_method, delivery_method
        ).items():
            submitted = getattr(dto, field)
            if abs(submitted - expected) > TOTALS_TOLERANCE:
                logger.warning(
                    "order.totals_mismatch",
                    field=field,
                    submitted=str(submitted),
                    expected=str(expected),
                )
                raise TotalsMismatch(field, submitted, expected)


class DeliveryMethodService:
    """Lists the delivery options offered at checkout."""

    def __init__(self, delivery_method_repository: IDeliveryMethodRepository) -> None:
        self._repo = delivery_method_repository

    def list_active(self) -> List[DeliveryMethodDTO]:
        """Active delivery methods, or the built-in defaults if the table is unreadable."""
        try:
            methods = self._repo.list_active()
        except DatabaseError as exc:
            logger.warning("delivery_methods.fallback", error=str(exc))
            return fallback_delivery_methods()
        return [DeliveryMethodDTO.from_entity(method) for method in methods]


def fallback_delivery_methods() -> List[DeliveryMethodDTO]:
    return [
        DeliveryMethodDTO(id=option["code"], **option)
        for option in FALLBACK_DELIVERY_METHODS
    ]
