"""Pure cart transitions: ``cart_reducer(state, action) -> state``.

Actions carry their own timestamp so the reducer never reads a clock.
Validation happens before an action is built; the reducer trusts it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

from modules.cart.state import CartLineItem, CartState


@dataclass(frozen=True)
class LoadCart:
    items: Tuple[CartLineItem, ...]
    at: datetime


@dataclass(frozen=True)
class AddItem:
    """Append ``item``, or merge it into the line with the same id."""

    item: CartLineItem
    at: datetime


@dataclass(frozen=True)
class RemoveItem:
    item_id: str
    at: datetime


@dataclass(frozen=True)
class UpdateQuantity:
    item_id: str
    quantity: int
    at: datetime


@dataclass(frozen=True)
class ClearCart:
    at: datetime


CartAction = Union[LoadCart, AddItem, RemoveItem, UpdateQuantity, ClearCart]


def merge_line(existing: CartLineItem, incoming: CartLineItem) -> CartLineItem:
    """Sum quantities; keep the original price, take the newer stock snapshot."""
    return existing.model_copy(
        update={
            "quantity": existing.quantity + incoming.quantity,
            "max_stock": incoming.max_stock,
        }
    )


def _dedupe(items: Tuple[CartLineItem, ...]) -> Tuple[CartLineItem, ...]:
    merged: dict[str, CartLineItem] = {}
    for item in items:
        merged[item.id] = merge_line(merged[item.id], item) if item.id in merged else item
    return tuple(merged.values())


def cart_reducer(state: CartState, action: CartAction) -> CartState:
    if isinstance(action, LoadCart):
        items = _dedupe(action.items)
    elif isinstance(action, AddItem):
        existing: Optional[CartLineItem] = state.find(action.item.id)
        if existing is None:
            items = state.items + (action.item,)
        else:
            items = tuple(
                merge_line(item, action.item) if item.id == existing.id else item
                for item in state.items
            )
    elif isinstance(action, RemoveItem):
        items = tuple(item for item in state.items if item.id != action.item_id)
    elif isinstance(action, UpdateQuantity):
        items = tuple(
            item.model_copy(update={"quantity": action.quantity})
            if item.id == action.item_id
            else item
            for item in state.items
        )
    elif isinstance(action, ClearCart):
        items = ()
    else:
        raise TypeError(f"Unknown cart action {action!r}")
    return state.model_copy(update={"items": items, "last_updated": action.at})
