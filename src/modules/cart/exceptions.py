"""Cart exceptions.

Every cart error carries a machine-readable ``code`` so the caller can
pick a specific message.  A cart error never leaves the cart mutated.
"""

from __future__ import annotations

from typing import Any, Optional

from modules.cart.constants import CartErrorCode


class CartError(Exception):
    code: CartErrorCode = CartErrorCode.INVALID_ITEM

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ItemNotFound(CartError):
    code = CartErrorCode.ITEM_NOT_FOUND


class InsufficientStock(CartError):
    code = CartErrorCode.INSUFFICIENT_STOCK


class InvalidQuantity(CartError):
    code = CartErrorCode.INVALID_QUANTITY


class InvalidItemData(CartError):
    """A required field is missing or the price is not a valid amount."""

    code = CartErrorCode.INVALID_ITEM


class CartFull(CartError):
    code = CartErrorCode.CART_FULL


class StorageError(CartError):
    code = CartErrorCode.STORAGE_ERROR
