"""Cart store: the side-effect shell around ``cart_reducer``.

One store is built per cart session and passed to whatever needs the
cart.  Each successful mutation:

1. runs the validators (a failure raises and changes nothing),
2. applies a pure action through ``cart_reducer``,
3. persists the new state (best effort, failures are logged),
4. notifies subscribers with a typed ``CartEvent``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from modules.cart.constants import DEFAULT_CART_CONFIG, CartConfig, CartEventType
from modules.cart.events import CartEvent, CartListener
from modules.cart.exceptions import ItemNotFound, StorageError
from modules.cart.reducer import (
    AddItem,
    CartAction,
    ClearCart,
    LoadCart,
    RemoveItem,
    UpdateQuantity,
    cart_reducer,
)
from modules.cart.state import CartLineItem, CartState, StockReport, line_item_id
from modules.cart.storage import ICartStorage, clear_cart_storage, load_cart, save_cart
from modules.cart.validators import (
    is_whole_number,
    validate_cart_capacity,
    validate_item_data,
    validate_price,
    validate_quantity,
)

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CartStore:
    def __init__(
        self,
        storage: ICartStorage,
        config: CartConfig = DEFAULT_CART_CONFIG,
        clock: Callable[[], datetime] = utc_now,
        autoload: bool = True,
    ) -> None:
        self._storage = storage
        self._config = config
        self._clock = clock
        self._listeners: List[CartListener] = []
        self._state = CartState.empty(clock())
        if autoload:
            self.load()

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def get_state(self) -> CartState:
        return self._state

    @property
    def config(self) -> CartConfig:
        return self._config

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register *listener*; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def load(self) -> CartState:
        """Rehydrate from storage; expired or corrupted data gives an empty cart."""
        now = self._clock()
        items = load_cart(self._storage, now, self._config)
        self._apply(LoadCart(items=tuple(items), at=now))
        logger.debug("cart.loaded", line_count=len(self._state.items))
        self._emit(CartEventType.CART_LOADED, items=self._state.items)
        return self._state

    def add_item(self, data: Mapping[str, Any]) -> CartLineItem:
        """Add a line, or merge into the line with the same product and options.

        ``data`` keys: ``product_id``, ``name``, ``price``, ``quantity``,
        ``max_stock`` and optionally ``image``, ``options``, ``category``.
        Returns the resulting line.
        """
        validate_item_data(data, self._config)
        options = {str(k): str(v) for k, v in (data.get("options") or {}).items()}
        product_id = str(data["product_id"])
        item_id = line_item_id(product_id, options)
        now = self._clock()

        existing = self._state.find(item_id)
        if existing is not None:
            validate_quantity(
                existing.quantity + data["quantity"], data["max_stock"], self._config
            )
        else:
            validate_cart_capacity(len(self._state.items), self._config)

        incoming = CartLineItem(
            id=item_id,
            product_id=product_id,
            name=data["name"],
            price=validate_price(data["price"]),
            quantity=data["quantity"],
            image=data.get("image"),
            max_stock=data["max_stock"],
            options=options,
            category=data.get("category"),
            added_at=now,
        )
        self._commit(AddItem(item=incoming, at=now))
        line = self._state.find(item_id)

        if existing is not None:
            logger.info("cart.item_merged", item_id=item_id, quantity=line.quantity)
            self._emit(CartEventType.ITEM_UPDATED, item=line)
        else:
            logger.info("cart.item_added", item_id=item_id, quantity=line.quantity)
            self._emit(CartEventType.ITEM_ADDED, item=line)
        return line

    def remove_item(self, item_id: str) -> Optional[CartLineItem]:
        """Drop a line.  Unknown ids are ignored and return ``None``."""
        item = self._state.find(item_id)
        if item is None:
            return None
        self._commit(RemoveItem(item_id=item_id, at=self._clock()))
        logger.info("cart.item_removed", item_id=item_id)
        self._emit(CartEventType.ITEM_REMOVED, item=item)
        return item

    def update_quantity(self, item_id: str, quantity: int) -> Optional[CartLineItem]:
        """Set a line's quantity; anything below 1 removes the line.

        Raises ``ItemNotFound``, ``InsufficientStock`` (above the stock
        snapshot) or ``InvalidQuantity`` (above the per-item cap).
        """
        item = self._state.find(item_id)
        if item is None:
            raise ItemNotFound("Item not found in cart", details={"item_id": item_id})

        if is_whole_number(quantity) and quantity < 1:
            self.remove_item(item_id)
            return None

        validate_quantity(quantity, item.max_stock, self._config)
        self._commit(UpdateQuantity(item_id=item_id, quantity=quantity, at=self._clock()))
        line = self._state.find(item_id)
        logger.info("cart.item_updated", item_id=item_id, quantity=quantity)
        self._emit(CartEventType.ITEM_UPDATED, item=line)
        return line

    def clear_cart(self) -> None:
        cleared = self._state.items
        self._apply(ClearCart(at=self._clock()))
        try:
            clear_cart_storage(self._storage)
        except StorageError as exc:
            logger.warning("cart.persist_failed", error=exc.message)
        logger.info("cart.cleared", line_count=len(cleared))
        self._emit(CartEventType.CART_CLEARED, items=cleared)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_item(
        self, product_id: str, options: Optional[Mapping[str, str]] = None
    ) -> Optional[CartLineItem]:
        return self._state.find(line_item_id(str(product_id), options))

    def is_in_cart(
        self, product_id: str, options: Optional[Mapping[str, str]] = None
    ) -> bool:
        return self.get_item(product_id, options) is not None

    def get_product_quantity(self, product_id: str) -> int:
        """Quantity of *product_id* summed across all option variants."""
        return sum(
            item.quantity
            for item in self._state.items
            if item.product_id == str(product_id)
        )

    def validate_stock(self) -> StockReport:
        errors = [
            f"{item.name}: Requested quantity ({item.quantity}) exceeds "
            f"available stock ({item.max_stock})"
            for item in self._state.items
            if item.quantity > item.max_stock
        ]
        return StockReport(is_valid=not errors, errors=errors)

    def summary(self) -> Dict[str, Any]:
        state = self._state
        total_items = state.total_items
        average = (
            (state.total_price / total_items).quantize(CENT, rounding=ROUND_HALF_UP)
            if total_items
            else Decimal("0.00")
        )
        return {
            "unique_products": len(state.items),
            "total_items": total_items,
            "total_price": state.total_price,
            "average_item_price": average,
            "categories": sorted({item.category for item in state.items if item.category}),
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "price": item.price,
                    "total": item.line_total,
                    "options": dict(item.options),
                }
                for item in state.items
            ],
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(self, action: CartAction) -> None:
        self._state = cart_reducer(self._state, action)

    def _commit(self, action: CartAction) -> None:
        self._apply(action)
        try:
            save_cart(self._storage, self._state)
        except StorageError as exc:
            logger.warning("cart.persist_failed", error=exc.message)

    def _emit(self, event_type: CartEventType, item=None, items=()) -> None:
        event = CartEvent(
            type=event_type,
            state=self._state,
            occurred_at=self._state.last_updated,
            item=item,
            items=tuple(items),
        )
        for listener in list(self._listeners):
            listener(event)
