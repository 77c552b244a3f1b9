"""Cart state models.

``CartLineItem`` and ``CartState`` are immutable Pydantic models.  JSON
uses camelCase keys (``productId``, ``maxStock``, ``addedAt``) so a
persisted cart reads the same as the payload the checkout submits.
Totals are properties: they are always derived from the lines.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def line_item_id(product_id: str, options: Optional[Mapping[str, str]] = None) -> str:
    """Deterministic identity for a (product, option set) pair."""
    canonical = json.dumps(sorted((options or {}).items()), separators=(",", ":"))
    digest = hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:12]
    return f"{product_id}_{digest}"


class CartModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class CartLineItem(CartModel):
    id: str
    product_id: str
    name: str
    price: Decimal
    quantity: int
    image: Optional[str] = None
    max_stock: int
    options: Dict[str, str] = {}
    category: Optional[str] = None
    added_at: datetime

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class CartState(CartModel):
    items: Tuple[CartLineItem, ...] = ()
    last_updated: datetime

    @classmethod
    def empty(cls, at: datetime) -> CartState:
        return cls(items=(), last_updated=at)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, item_id: str) -> Optional[CartLineItem]:
        return next((item for item in self.items if item.id == item_id), None)


@dataclass(frozen=True)
class StockReport:
    """Lines whose quantity exceeds their stock snapshot."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
