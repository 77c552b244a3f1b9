"""Cart configuration, storage keys, event and error codes."""

from dataclasses import dataclass
from enum import Enum

CART_STORAGE_KEY = "storefront_cart"
CART_TIMESTAMP_KEY = "storefront_cart_timestamp"


@dataclass(frozen=True)
class CartConfig:
    max_items: int = 100
    max_quantity_per_item: int = 99
    expiry_days: int = 30


DEFAULT_CART_CONFIG = CartConfig()


class CartEventType(str, Enum):
    ITEM_ADDED = "cart:item_added"
    ITEM_REMOVED = "cart:item_removed"
    ITEM_UPDATED = "cart:item_updated"
    CART_CLEARED = "cart:cleared"
    CART_LOADED = "cart:loaded"


class CartErrorCode(str, Enum):
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_ITEM = "INVALID_ITEM"
    CART_FULL = "CART_FULL"
    STORAGE_ERROR = "STORAGE_ERROR"
