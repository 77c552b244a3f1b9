"""Field-level checkout validation.

Every function returns a ``{field: message}`` dict (empty when valid)
so the coordinator can report all problems at once.  Field names are
the camelCase keys of the order payload.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Dict, Iterable, Optional

from modules.cart.state import CartState
from modules.checkout.forms import PaymentSelection, ShippingAddressForm
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import DeliveryMethodDTO

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[1-9]\d{0,15}$")
CARD_NUMBER_RE = re.compile(r"^\d{13,19}$")
EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")
CVV_RE = re.compile(r"^\d{3,4}$")
NON_DIGITS_RE = re.compile(r"\D")

REQUIRED_ADDRESS_FIELDS = (
    ("fullName", "full_name", "Full name is required"),
    ("phone", "phone", "Phone number is required"),
    ("email", "email", "Email is required"),
    ("addressLine1", "address_line_1", "Address is required"),
    ("city", "city", "City is required"),
    ("state", "state", "State is required"),
    ("postalCode", "postal_code", "Postal code is required"),
)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def is_valid_phone(value: str) -> bool:
    """Formatting characters are ignored: ``(555) 123-4567`` is valid."""
    return bool(PHONE_RE.match(NON_DIGITS_RE.sub("", value)))


def validate_shipping_address(form: ShippingAddressForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for key, attr, message in REQUIRED_ADDRESS_FIELDS:
        if not getattr(form, attr).strip():
            errors[key] = message

    email = form.email.strip()
    if email and not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    phone = form.phone.strip()
    if phone and not is_valid_phone(phone):
        errors["phone"] = "Please enter a valid phone number"
    return errors


def card_expiry_error(expiry: str, today: date) -> Optional[str]:
    match = EXPIRY_RE.match(expiry.strip())
    if not match:
        return "Expiry date must be in MM/YY format"
    month, year = int(match.group(1)), 2000 + int(match.group(2))
    if (year, month) < (today.year, today.month):
        return "Card has expired"
    return None


def validate_payment(payment: PaymentSelection, today: date) -> Dict[str, str]:
    """Card fields are only checked when paying by card."""
    if payment.method not in PaymentMethod.values:
        return {"paymentMethod": "Please select a payment method"}
    if not payment.is_card:
        return {}

    errors: Dict[str, str] = {}
    number = re.sub(r"[\s-]", "", payment.card_number)
    if not number:
        errors["cardNumber"] = "Card number is required"
    elif not CARD_NUMBER_RE.match(number):
        errors["cardNumber"] = "Card number must be 13 to 19 digits"

    if not payment.expiry_date.strip():
        errors["expiryDate"] = "Expiry date is required"
    else:
        message = card_expiry_error(payment.expiry_date, today)
        if message:
            errors["expiryDate"] = message

    if not payment.cvv.strip():
        errors["cvv"] = "CVV is required"
    elif not CVV_RE.match(payment.cvv.strip()):
        errors["cvv"] = "CVV must be 3 or 4 digits"

    if not payment.cardholder_name.strip():
        errors["cardholderName"] = "Cardholder name is required"
    return errors


def validate_delivery_selection(
    method_id: Optional[str], methods: Iterable[DeliveryMethodDTO]
) -> Dict[str, str]:
    if not method_id:
        return {"deliveryMethod": "Please select a delivery method"}
    if not any(method.id == method_id for method in methods):
        return {"deliveryMethod": "Selected delivery method is not available"}
    return {}


def validate_cart_contents(state: CartState) -> Dict[str, str]:
    if state.is_empty:
        return {"cart": "Your cart is empty"}
    over_stock = [item.name for item in state.items if item.quantity > item.max_stock]
    if over_stock:
        return {"cart": f"Not enough stock for: {', '.join(over_stock)}"}
    return {}
