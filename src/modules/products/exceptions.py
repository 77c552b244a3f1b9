"""Product domain exceptions.

Raised by the product repository and caught by the order commit,
which folds them into an opaque order-creation failure.
"""

from __future__ import annotations


class ProductNotFound(Exception):
    """The referenced product does not exist."""


class InsufficientStock(Exception):
    """Not enough stock left to cover the requested quantity."""
