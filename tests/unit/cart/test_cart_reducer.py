"""Unit tests for the pure cart reducer."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from modules.cart.reducer import (
    AddItem,
    ClearCart,
    LoadCart,
    RemoveItem,
    UpdateQuantity,
    cart_reducer,
)
from modules.cart.state import CartLineItem, CartState, line_item_id

pytestmark = pytest.mark.unit

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=5)


def _line(product_id="p1", quantity=1, price="10.00", max_stock=10, options=None):
    return CartLineItem(
        id=line_item_id(product_id, options),
        product_id=product_id,
        name=f"Product {product_id}",
        price=Decimal(price),
        quantity=quantity,
        max_stock=max_stock,
        options=options or {},
        added_at=T0,
    )


class TestLineIdentity:
    def test_option_order_does_not_matter(self):
        assert line_item_id("p1", {"size": "M", "color": "red"}) == line_item_id(
            "p1", {"color": "red", "size": "M"}
        )

    def test_different_options_give_different_lines(self):
        assert line_item_id("p1", {"size": "M"}) != line_item_id("p1", {"size": "L"})

    def test_prefixed_with_product_id(self):
        assert line_item_id("p1").startswith("p1_")


class TestReducer:
    def test_add_appends_new_line(self):
        state = cart_reducer(CartState.empty(T0), AddItem(item=_line(), at=T1))
        assert len(state.items) == 1
        assert state.last_updated == T1

    def test_add_merges_same_line(self):
        state = cart_reducer(CartState.empty(T0), AddItem(item=_line(quantity=2), at=T0))
        newer = _line(quantity=3, price="99.00", max_stock=7)
        state = cart_reducer(state, AddItem(item=newer, at=T1))

        (line,) = state.items
        assert line.quantity == 5
        assert line.price == Decimal("10.00")
        assert line.max_stock == 7

    def test_remove(self):
        state = cart_reducer(CartState.empty(T0), AddItem(item=_line(), at=T0))
        state = cart_reducer(state, RemoveItem(item_id=_line().id, at=T1))
        assert state.is_empty

    def test_update_quantity(self):
        state = cart_reducer(CartState.empty(T0), AddItem(item=_line(), at=T0))
        state = cart_reducer(state, UpdateQuantity(item_id=_line().id, quantity=4, at=T1))
        assert state.items[0].quantity == 4

    def test_clear(self):
        state = cart_reducer(CartState.empty(T0), AddItem(item=_line(), at=T0))
        assert cart_reducer(state, ClearCart(at=T1)).items == ()

    def test_load_collapses_duplicate_lines(self):
        action = LoadCart(items=(_line(quantity=1), _line(quantity=2), _line("p2")), at=T1)
        state = cart_reducer(CartState.empty(T0), action)
        assert [item.quantity for item in state.items] == [3, 1]

    def test_input_state_is_not_mutated(self):
        before = cart_reducer(CartState.empty(T0), AddItem(item=_line(), at=T0))
        cart_reducer(before, ClearCart(at=T1))
        assert len(before.items) == 1

    def test_unknown_action(self):
        with pytest.raises(TypeError):
            cart_reducer(CartState.empty(T0), object())


class TestDerivedTotals:
    def test_totals_follow_lines(self):
        state = CartState(
            items=(_line("a", quantity=2, price="5.00"), _line("b", quantity=1, price="2.50")),
            last_updated=T0,
        )
        assert state.total_items == 3
        assert state.total_price == Decimal("12.50")
