"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
HTTP responses using the storefront error envelope.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InvalidOrderStatus(Exception):
    """A status transition outside the allowed table was requested."""


class InvalidOrderRequest(Exception):
    """The checkout payload was rejected before any row was written."""


class UnknownDeliveryMethod(InvalidOrderRequest):
    """``deliveryMethodId`` matches no active delivery method."""


class TotalsMismatch(InvalidOrderRequest):
    """Submitted totals disagree with the recomputed ones."""

    def __init__(self, field: str, submitted, expected) -> None:
        self.field = field
        self.submitted = submitted
        self.expected = expected
        super().__init__(
            f"Submitted {field} {submitted} does not match expected {expected}."
        )


class OrderCreationFailed(Exception):
    """The order commit rolled back.

    The public message is always the same; ``reason`` holds the internal
    cause and is only logged.  ``stock_shortage`` is set when the rollback
    was caused by a product running out of stock.
    """

    message = "Failed to create order"

    def __init__(self, reason: str = "", *, stock_shortage: bool = False) -> None:
        self.reason = reason
        self.stock_shortage = stock_shortage
        super().__init__(self.message)
