"""Change notifications emitted by the cart store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Tuple

from modules.cart.constants import CartEventType
from modules.cart.state import CartLineItem, CartState


@dataclass(frozen=True)
class CartEvent:
    """``item`` is set for item events; ``items`` for load and clear."""

    type: CartEventType
    state: CartState
    occurred_at: datetime
    item: Optional[CartLineItem] = None
    items: Tuple[CartLineItem, ...] = field(default_factory=tuple)


CartListener = Callable[[CartEvent], None]
