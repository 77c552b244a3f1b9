"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ShippingAddressDTO``: address captured at checkout.
- ``PlaceOrderItemDTO``: one submitted cart line.
- ``PlaceOrderDTO``: the whole commit request (lines, address, totals).
- ``DeliveryMethodDTO``: a delivery option offered to the checkout.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.orders.constants import (
    DEFAULT_COUNTRY,
    PaymentMethod,
    estimated_days_label,
)

Money = Annotated[Decimal, Field(ge=Decimal("0.00"))]


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    full_name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=32)
    email: EmailStr
    address_line_1: str = Field(min_length=1, max_length=255)
    address_line_2: str = ""
    city: str = Field(min_length=1, max_length=128)
    state: str = Field(min_length=1, max_length=128)
    postal_code: str = Field(min_length=1, max_length=32)
    country: str = DEFAULT_COUNTRY


class PlaceOrderItemDTO(BaseModel):
    """Immutable DTO for one cart line in a commit request.

    ``unit_price`` is the price the customer saw when the item was added
    to the cart; it is stored as-is on the order line.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    name: str = ""
    quantity: int = Field(ge=1)
    unit_price: Money
    image: Optional[str] = None
    options: Dict[str, str] = Field(default_factory=dict)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for the order commit request.

    Validates:
    - ``items`` must contain at least one line.
    - ``payment_method`` must be a known method.
    - every money figure is non-negative.
    """

    model_config = ConfigDict(frozen=True)

    items: List[PlaceOrderItemDTO]
    shipping_address: ShippingAddressDTO
    delivery_method_id: str = Field(min_length=1)
    payment_method: str
    subtotal: Money
    shipping_cost: Money
    tax_amount: Money
    cod_fee: Money = Decimal("0.00")
    total: Money
    customer_email: EmailStr
    notes: str = ""
    user_id: Optional[int] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[PlaceOrderItemDTO]
    ) -> List[PlaceOrderItemDTO]:
        if not v:
            raise ValueError("Order must contain at least one item")
        return v

    @field_validator("payment_method")
    @classmethod
    def payment_method_must_be_known(cls, v: str) -> str:
        if v not in PaymentMethod.values:
            raise ValueError(f"Unknown payment method '{v}'.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class DeliveryMethodDTO(BaseModel):
    """Delivery option as offered to the checkout.

    ``id`` is the database UUID as a string, or the method code for the
    built-in fallback options.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    name: str
    description: str = ""
    price: Money
    min_days: int = Field(ge=0)
    max_days: int = Field(ge=0)

    @property
    def estimated_days(self) -> str:
        return estimated_days_label(self.min_days, self.max_days)

    @classmethod
    def from_entity(cls, method) -> DeliveryMethodDTO:
        return cls(
            id=str(method.id),
            code=method.code,
            name=method.name,
            description=method.description,
            price=method.price,
            min_days=method.min_days,
            max_days=method.max_days,
        )
