"""Checkout coordinator.

Collects the cart, a shipping address, a delivery choice, a payment
selection and optional notes, validates them field by field and submits
one order payload through an ``IOrderGateway``.

- Submission is blocked while any field error remains.
- On success the cart is cleared and the order data returned.
- On failure the cart is left untouched and the server message is kept
  verbatim in ``last_error``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import structlog
from django.conf import settings

from modules.cart.store import CartStore
from modules.checkout.exceptions import (
    GatewayUnavailable,
    OrderSubmissionFailed,
    SubmissionInProgress,
    ValidationFailed,
)
from modules.checkout.forms import PaymentSelection, ShippingAddressForm
from modules.checkout.gateways import IOrderGateway
from modules.checkout.validators import (
    validate_cart_contents,
    validate_delivery_selection,
    validate_payment,
    validate_shipping_address,
)
from modules.orders.constants import PaymentMethod, quantize_money
from modules.orders.dtos import DeliveryMethodDTO
from modules.orders.services import fallback_delivery_methods

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


class SubmissionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    cod_fee: Decimal
    total: Decimal


def compute_totals(
    subtotal: Decimal,
    shipping_cost: Decimal,
    payment_method: str,
    tax_rate: Decimal,
    cod_fee: Decimal,
) -> CheckoutTotals:
    """Subtotal, shipping, tax and COD fee, each rounded to cents, and their sum."""
    subtotal = quantize_money(subtotal)
    shipping_cost = quantize_money(shipping_cost)
    tax_amount = quantize_money(subtotal * tax_rate)
    fee = quantize_money(cod_fee) if payment_method == PaymentMethod.CASH_ON_DELIVERY else ZERO
    return CheckoutTotals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax_amount=tax_amount,
        cod_fee=fee,
        total=subtotal + shipping_cost + tax_amount + fee,
    )


class CheckoutCoordinator:
    def __init__(
        self,
        cart: CartStore,
        gateway: IOrderGateway,
        *,
        tax_rate: Optional[Decimal] = None,
        cod_fee: Optional[Decimal] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.cart = cart
        self._gateway = gateway
        self._tax_rate = settings.STOREFRONT_TAX_RATE if tax_rate is None else tax_rate
        self._cod_fee = settings.STOREFRONT_COD_FEE if cod_fee is None else cod_fee
        self._today = today

        self.shipping_address = ShippingAddressForm()
        self.payment = PaymentSelection()
        self.notes = ""
        self.delivery_methods: List[DeliveryMethodDTO] = []
        self.delivery_method_id: Optional[str] = None

        self.state = SubmissionState.IDLE
        self.errors: Dict[str, str] = {}
        self.last_error: Optional[str] = None
        self.confirmation: Optional[Dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def load_delivery_methods(self) -> List[DeliveryMethodDTO]:
        """Fetch options and preselect the first; fall back to the defaults."""
        try:
            methods = self._gateway.list_delivery_methods()
        except GatewayUnavailable as exc:
            logger.warning("checkout.delivery_methods_fallback", error=str(exc))
            methods = fallback_delivery_methods()
            self.delivery_method_id = methods[0].id
        else:
            if methods and self.delivery_method_id is None:
                self.delivery_method_id = methods[0].id
        self.delivery_methods = list(methods)
        return self.delivery_methods

    def select_delivery_method(self, method_id: str) -> None:
        self.delivery_method_id = method_id
        self.errors.pop("deliveryMethod", None)

    @property
    def selected_delivery_method(self) -> Optional[DeliveryMethodDTO]:
        return next(
            (m for m in self.delivery_methods if m.id == self.delivery_method_id), None
        )

    # ------------------------------------------------------------------
    # Totals / validation / payload
    # ------------------------------------------------------------------

    def totals(self) -> CheckoutTotals:
        selected = self.selected_delivery_method
        return compute_totals(
            subtotal=self.cart.get_state().total_price,
            shipping_cost=selected.price if selected else ZERO,
            payment_method=self.payment.method,
            tax_rate=self._tax_rate,
            cod_fee=self._cod_fee,
        )

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        errors.update(validate_cart_contents(self.cart.get_state()))
        errors.update(validate_shipping_address(self.shipping_address))
        errors.update(
            validate_delivery_selection(self.delivery_method_id, self.delivery_methods)
        )
        errors.update(validate_payment(self.payment, self._today()))
        self.errors = errors
        return errors

    def build_payload(self) -> Dict[str, Any]:
        totals = self.totals()
        address = self.shipping_address.to_payload()
        return {
            "items": [
                {
                    "productId": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "unitPrice": item.price,
                    "image": item.image,
                    "options": dict(item.options),
                }
                for item in self.cart.get_state().items
            ],
            "shippingAddress": address,
            "deliveryMethodId": self.delivery_method_id,
            "paymentMethod": self.payment.method,
            "subtotal": totals.subtotal,
            "shippingCost": totals.shipping_cost,
            "taxAmount": totals.tax_amount,
            "codFee": totals.cod_fee,
            "total": totals.total,
            "orderNotes": self.notes.strip() or None,
            "customerEmail": address["email"],
        }

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submit(self) -> Dict[str, Any]:
        """Validate, submit once, and clear the cart on success.

        Raises:
            SubmissionInProgress: a submission is already running.
            ValidationFailed: field errors; nothing was sent.
            OrderSubmissionFailed: the server refused or rolled back.
        """
        if self.state == SubmissionState.SUBMITTING:
            raise SubmissionInProgress("An order submission is already in progress.")

        errors = self.validate()
        if errors:
            logger.info("checkout.validation_failed", fields=sorted(errors))
            raise ValidationFailed(errors)

        payload = self.build_payload()
        self.state = SubmissionState.SUBMITTING
        self.last_error = None
        log = logger.bind(
            item_count=len(payload["items"]),
            payment_method=payload["paymentMethod"],
            total=str(payload["total"]),
        )
        log.info("checkout.submitting")

        try:
            confirmation = self._gateway.place_order(payload)
        except OrderSubmissionFailed as exc:
            self.state = SubmissionState.FAILED
            self.last_error = exc.message
            log.warning("checkout.submission_failed", error=exc.message)
            raise
        except Exception:
            self.state = SubmissionState.FAILED
            raise

        self.state = SubmissionState.SUCCEEDED
        self.confirmation = confirmation
        self.cart.clear_cart()
        log.info("checkout.succeeded", order_number=confirmation.get("orderNumber"))
        return confirmation
