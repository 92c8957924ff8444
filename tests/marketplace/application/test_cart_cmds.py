"""Application tests for cart commands."""

import json

import pytest
from marketplace.cart.cart import Cart
from marketplace.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem, active_cart
from marketplace.catalog.items import AddItem
from marketplace.catalog.management import AddMerchant
from marketplace.shared.repository import scan
from protean import current_domain

ROLL_OPTIONS = [
    {
        "group_id": "og-1",
        "name": "Size",
        "selection_type": "single",
        "required": True,
        "choices": [
            {"choice_id": "c-1", "name": "Regular", "is_default": True},
            {"choice_id": "c-2", "name": "Large", "price_delta": 6.0},
        ],
    },
    {
        "group_id": "og-2",
        "name": "Extras",
        "selection_type": "multiple",
        "max_select": 2,
        "choices": [
            {"choice_id": "c-3", "name": "Extra Avocado", "price_delta": 1.5},
            {"choice_id": "c-4", "name": "Spicy Mayo", "price_delta": 0.5},
            {"choice_id": "c-5", "name": "Eel Sauce", "price_delta": 0.5},
            {"choice_id": "c-6", "name": "Truffle Oil", "price_delta": 4.0, "is_available": False},
        ],
    },
]
LARGE = {"group_id": "og-1", "choice_id": "c-2"}
REGULAR = {"group_id": "og-1", "choice_id": "c-1"}


@pytest.fixture
def menu():
    sushi = current_domain.process(AddMerchant(name="Sakura Sushi"), asynchronous=False)
    pizza = current_domain.process(AddMerchant(name="Pizza Paradise"), asynchronous=False)

    def add(merchant_id, name, price, **fields):
        return current_domain.process(
            AddItem(merchant_id=merchant_id, name=name, price=price, **fields),
            asynchronous=False,
        )

    return {
        "roll": add(sushi, "California Roll", 12.99, option_groups=ROLL_OPTIONS),
        "soup": add(sushi, "Miso Soup", 3.99),
        "pizza": add(pizza, "Margherita Pizza", 14.99),
        "sushi": sushi,
        "pizza_merchant": pizza,
    }


def _add(item_id, quantity=1, **kwargs):
    return current_domain.process(AddToCart(item_id=item_id, quantity=quantity, **kwargs), asynchronous=False)


class TestAddToCart:
    def test_first_add_opens_cart(self, menu):
        result = _add(menu["roll"], 2, selected_options=[LARGE])
        assert result.success is True

        cart = active_cart()
        assert str(cart.merchant_id) == menu["sushi"]
        assert cart.line(result.id).line_total == pytest.approx(37.98)
        assert cart.subtotal == pytest.approx(37.98)

    def test_unknown_item(self, menu):
        result = _add("missing")
        assert result.success is False
        assert result.message == "Item not found"
        assert active_cart() is None

    def test_quantity_must_be_positive(self, menu):
        assert _add(menu["roll"], 0).success is False
        assert active_cart() is None

    def test_other_merchant_is_rejected_without_touching_cart(self, menu):
        _add(menu["roll"], 2)
        before = active_cart()

        result = _add(menu["pizza"])

        assert result.success is False
        assert result.message == "Your cart has items from another merchant"
        cart = active_cart()
        assert cart.id == before.id
        assert cart.item_count == 2
        assert cart.subtotal == pytest.approx(25.98)

    def test_replace_cart_starts_over(self, menu):
        _add(menu["roll"], 2)
        result = _add(menu["pizza"], replace_cart=True)

        assert result.success is True
        carts = scan(current_domain.repository_for(Cart))
        assert len(carts) == 1
        assert str(carts[0].merchant_id) == menu["pizza_merchant"]
        assert carts[0].item_count == 1

    def test_option_names_and_prices_come_from_the_menu(self, menu):
        tampered = {"group_id": "og-1", "choice_id": "c-2", "choice_name": "Huge", "price_delta": 0.0}
        result = _add(menu["roll"], 2, selected_options=[tampered])

        line = active_cart().line(result.id)
        assert line.selected_options[0]["choice_name"] == "Large"
        assert line.selected_options[0]["group_name"] == "Size"
        assert line.line_total == pytest.approx(37.98)

    @pytest.mark.parametrize(
        "selected_options,message",
        [
            ([LARGE, REGULAR], "Choose only one option for Size"),
            ([{"group_id": "og-1", "choice_id": "c-9"}], "Unknown option 'c-9' for California Roll"),
            ([{"group_id": "og-7", "choice_id": "c-2"}], "Unknown option 'c-2' for California Roll"),
            ([{"group_id": "og-2", "choice_id": "c-6"}], "Truffle Oil is currently unavailable"),
        ],
    )
    def test_invalid_options_are_rejected(self, menu, selected_options, message):
        result = _add(menu["roll"], selected_options=selected_options)
        assert result.success is False
        assert result.message == message
        assert active_cart() is None

    def test_options_on_item_without_groups_are_rejected(self, menu):
        result = _add(menu["soup"], selected_options=[LARGE])
        assert result.success is False
        assert active_cart() is None

    def test_multiple_group_keeps_most_recent_choices(self, menu):
        extras = [{"group_id": "og-2", "choice_id": choice_id} for choice_id in ("c-3", "c-4", "c-5")]
        result = _add(menu["roll"], selected_options=extras)

        line = active_cart().line(result.id)
        assert [option["choice_id"] for option in line.selected_options] == ["c-4", "c-5"]
        assert line.line_total == pytest.approx(13.99)

    def test_options_follow_menu_order(self, menu):
        result = _add(menu["roll"], selected_options=[{"group_id": "og-2", "choice_id": "c-3"}, LARGE])
        line = active_cart().line(result.id)
        assert [option["group_id"] for option in line.selected_options] == ["og-1", "og-2"]


class TestUpdateCartItem:
    def test_update_quantity(self, menu):
        line_id = _add(menu["roll"]).id
        current_domain.process(UpdateCartItem(line_id=line_id, quantity=3), asynchronous=False)
        cart = active_cart()
        assert cart.line(line_id).quantity == 3
        assert cart.subtotal == pytest.approx(38.97)

    def test_update_options(self, menu):
        line_id = _add(menu["roll"], 2).id
        current_domain.process(
            UpdateCartItem(line_id=line_id, selected_options=json.dumps([LARGE])),
            asynchronous=False,
        )
        assert active_cart().subtotal == pytest.approx(37.98)

    def test_invalid_options_leave_line_unchanged(self, menu):
        line_id = _add(menu["roll"], selected_options=[LARGE]).id
        result = current_domain.process(
            UpdateCartItem(line_id=line_id, selected_options=json.dumps([LARGE, REGULAR])),
            asynchronous=False,
        )

        assert result.success is False
        assert result.message == "Choose only one option for Size"
        assert active_cart().subtotal == pytest.approx(18.99)

    def test_zero_quantity_on_last_line_discards_cart(self, menu):
        line_id = _add(menu["roll"]).id
        current_domain.process(UpdateCartItem(line_id=line_id, quantity=0), asynchronous=False)
        assert active_cart() is None

    def test_unknown_line_is_ignored(self, menu):
        _add(menu["roll"])
        assert current_domain.process(UpdateCartItem(line_id="missing", quantity=5), asynchronous=False) is None
        assert active_cart().item_count == 1


class TestRemoveAndClear:
    def test_remove_one_of_two(self, menu):
        roll_line = _add(menu["roll"]).id
        _add(menu["soup"], 2)
        current_domain.process(RemoveFromCart(line_id=roll_line), asynchronous=False)
        cart = active_cart()
        assert len(cart.items) == 1
        assert cart.subtotal == pytest.approx(7.98)

    def test_removing_last_line_discards_cart(self, menu):
        line_id = _add(menu["roll"]).id
        current_domain.process(RemoveFromCart(line_id=line_id), asynchronous=False)
        assert active_cart() is None

    def test_clear(self, menu):
        _add(menu["roll"])
        _add(menu["soup"])
        current_domain.process(ClearCart(), asynchronous=False)
        assert active_cart() is None

    def test_clear_without_cart(self, menu):
        assert current_domain.process(ClearCart(), asynchronous=False) is None
