"""Pure precondition checks run before any cart mutation.

Nothing here touches storage or the network.  Each failed check raises
a typed ``CartError`` subclass.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from modules.cart.constants import DEFAULT_CART_CONFIG, CartConfig
from modules.cart.exceptions import (
    CartFull,
    InsufficientStock,
    InvalidItemData,
    InvalidQuantity,
)


def is_whole_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_price(value: Any) -> Decimal:
    """Return *value* as a non-negative ``Decimal`` with at most two places."""
    if isinstance(value, bool) or value is None:
        raise InvalidItemData("Valid price is required")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidItemData("Valid price is required") from None
    if not price.is_finite() or price < 0:
        raise InvalidItemData("Valid price is required")
    # Orders carry money in whole cents.
    if price.normalize().as_tuple().exponent < -2:
        raise InvalidItemData(
            "Price cannot have more than 2 decimal places",
            details={"price": str(price)},
        )
    return price


def validate_max_stock(value: Any) -> int:
    if not is_whole_number(value) or value < 0:
        raise InvalidItemData("Available stock must be a whole number of at least 0")
    return value


def validate_quantity(
    quantity: Any,
    max_stock: Optional[int] = None,
    config: CartConfig = DEFAULT_CART_CONFIG,
) -> int:
    """Check *quantity* against the stock snapshot, then the per-item cap."""
    if not is_whole_number(quantity) or quantity < 1:
        raise InvalidQuantity("Quantity must be at least 1")
    if max_stock is not None and quantity > max_stock:
        raise InsufficientStock(
            f"Quantity cannot exceed available stock ({max_stock})",
            details={"max_stock": max_stock, "requested": quantity},
        )
    if quantity > config.max_quantity_per_item:
        raise InvalidQuantity(
            f"Quantity cannot exceed {config.max_quantity_per_item}",
            details={"limit": config.max_quantity_per_item, "requested": quantity},
        )
    return quantity


def validate_item_data(
    data: Mapping[str, Any], config: CartConfig = DEFAULT_CART_CONFIG
) -> None:
    """Validate an add-to-cart payload (snake_case keys)."""
    if not data.get("product_id"):
        raise InvalidItemData("Product ID is required")
    if not data.get("name"):
        raise InvalidItemData("Product name is required")
    validate_price(data.get("price"))
    max_stock = validate_max_stock(data.get("max_stock"))
    validate_quantity(data.get("quantity"), max_stock, config)


def validate_cart_capacity(
    line_count: int, config: CartConfig = DEFAULT_CART_CONFIG
) -> None:
    if line_count >= config.max_items:
        raise CartFull(
            f"Cart is full. Maximum {config.max_items} items allowed.",
            details={"limit": config.max_items},
        )
