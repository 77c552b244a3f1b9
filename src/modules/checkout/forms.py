"""Mutable form state collected by the checkout coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from modules.orders.constants import DEFAULT_COUNTRY, PaymentMethod


@dataclass
class ShippingAddressForm:
    full_name: str = ""
    phone: str = ""
    email: str = ""
    address_line_1: str = ""
    address_line_2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY

    def to_payload(self) -> Dict[str, str]:
        return {
            "fullName": self.full_name.strip(),
            "phone": self.phone.strip(),
            "email": self.email.strip(),
            "addressLine1": self.address_line_1.strip(),
            "addressLine2": self.address_line_2.strip(),
            "city": self.city.strip(),
            "state": self.state.strip(),
            "postalCode": self.postal_code.strip(),
            "country": self.country.strip() or DEFAULT_COUNTRY,
        }


@dataclass
class PaymentSelection:
    """Chosen payment method.  Card fields are never sent to the server."""

    method: str = PaymentMethod.CREDIT_CARD
    card_number: str = field(default="", repr=False)
    expiry_date: str = ""
    cvv: str = field(default="", repr=False)
    cardholder_name: str = ""

    @property
    def is_card(self) -> bool:
        return self.method == PaymentMethod.CREDIT_CARD
