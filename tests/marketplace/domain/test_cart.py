"""Tests for the Cart aggregate."""

import pytest
from marketplace.cart.cart import Cart
from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartItemUpdated
from marketplace.catalog.item import MerchantItem
from protean.exceptions import ValidationError

LARGE = {"group_id": "og-1", "group_name": "Size", "choice_id": "c-2", "choice_name": "Large", "price_delta": 6.0}
AVOCADO = {
    "group_id": "og-2",
    "group_name": "Extras",
    "choice_id": "c-3",
    "choice_name": "Extra Avocado",
    "price_delta": 1.5,
}


def _item(merchant_id="merchant-1", name="California Roll", price=12.99):
    return MerchantItem.create(merchant_id=merchant_id, name=name, price=price)


def _assert_subtotal_matches(cart):
    assert cart.subtotal == pytest.approx(sum(line.line_total for line in cart.items))


class TestAddLine:
    def test_line_total_includes_options(self):
        cart = Cart.open(merchant_id="merchant-1")
        line = cart.add_line(_item(), quantity=2, selected_options=[LARGE, AVOCADO])
        assert line.line_total == pytest.approx(40.98)
        assert cart.subtotal == pytest.approx(40.98)

    def test_line_snapshots_name_and_price(self):
        cart = Cart.open(merchant_id="merchant-1")
        item = _item()
        line = cart.add_line(item, quantity=1)
        item.update_details(price=20.0, name="Renamed")
        assert line.name == "California Roll"
        assert line.base_price == 12.99

    def test_repeated_adds_create_separate_lines(self):
        cart = Cart.open(merchant_id="merchant-1")
        item = _item()
        cart.add_line(item, quantity=1)
        cart.add_line(item, quantity=1)
        assert len(cart.items) == 2
        assert [line.position for line in cart.lines()] == [0, 1]
        _assert_subtotal_matches(cart)

    def test_item_from_another_merchant_is_rejected(self):
        cart = Cart.open(merchant_id="merchant-1")
        cart.add_line(_item(), quantity=1)
        with pytest.raises(ValidationError):
            cart.add_line(_item(merchant_id="merchant-2", name="Margherita"), quantity=1)
        assert len(cart.items) == 1

    def test_raises_event(self):
        cart = Cart.open(merchant_id="merchant-1")
        cart.add_line(_item(), quantity=3)
        events = [e for e in cart._events if isinstance(e, CartItemAdded)]
        assert len(events) == 1
        assert events[0].quantity == 3
        assert events[0].subtotal == pytest.approx(38.97)

    def test_item_count_sums_quantities(self):
        cart = Cart.open(merchant_id="merchant-1")
        cart.add_line(_item(), quantity=2)
        cart.add_line(_item(name="Miso Soup", price=3.99), quantity=3)
        assert cart.item_count == 5


class TestUpdateLine:
    def test_quantity_reprices(self):
        cart = Cart.open(merchant_id="merchant-1")
        line = cart.add_line(_item(), quantity=1, selected_options=[LARGE])
        cart.update_line(line.id, quantity=3)
        assert line.line_total == pytest.approx(56.97)
        _assert_subtotal_matches(cart)

    def test_options_reprice(self):
        cart = Cart.open(merchant_id="merchant-1")
        line = cart.add_line(_item(), quantity=2)
        cart.update_line(line.id, selected_options=[LARGE, AVOCADO])
        assert line.line_total == pytest.approx(40.98)
        _assert_subtotal_matches(cart)

    def test_notes_only(self):
        cart = Cart.open(merchant_id="merchant-1")
        line = cart.add_line(_item(), quantity=2, selected_options=[LARGE])
        cart.update_line(line.id, notes="No wasabi")
        assert line.notes == "No wasabi"
        assert line.quantity == 2
        assert len(line.selected_options) == 1

    def test_zero_quantity_removes_line(self):
        cart = Cart.open(merchant_id="merchant-1")
        line = cart.add_line(_item(), quantity=1)
        assert cart.update_line(line.id, quantity=0) is None
        assert cart.is_empty
        assert cart.subtotal == 0.0

    def test_unknown_line_is_ignored(self):
        cart = Cart.open(merchant_id="merchant-1")
        cart.add_line(_item(), quantity=1)
        assert cart.update_line("missing", quantity=4) is None
        assert cart.item_count == 1

    def test_raises_event(self):
        cart = Cart.open(merchant_id="merchant-1")
        line = cart.add_line(_item(), quantity=1)
        cart._events.clear()
        cart.update_line(line.id, quantity=2)
        assert isinstance(cart._events[0], CartItemUpdated)
        assert cart._events[0].quantity == 2


class TestRemoveAndClear:
    def test_remove_line(self):
        cart = Cart.open(merchant_id="merchant-1")
        first = cart.add_line(_item(), quantity=1)
        cart.add_line(_item(name="Miso Soup", price=3.99), quantity=1)
        assert cart.remove_line(first.id) is True
        assert cart.subtotal == pytest.approx(3.99)
        assert any(isinstance(e, CartItemRemoved) for e in cart._events)

    def test_remove_unknown_line(self):
        cart = Cart.open(merchant_id="merchant-1")
        assert cart.remove_line("missing") is False

    def test_clear(self):
        cart = Cart.open(merchant_id="merchant-1")
        cart.add_line(_item(), quantity=1)
        cart.add_line(_item(name="Miso Soup", price=3.99), quantity=2)
        cart.clear()
        assert cart.is_empty
        assert cart.subtotal == 0.0
        assert any(isinstance(e, CartCleared) for e in cart._events)
