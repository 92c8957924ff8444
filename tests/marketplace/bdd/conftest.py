"""Shared BDD fixtures and step definitions for the marketplace."""

import pytest
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def outcome():
    """Container for the result of the last action."""
    return {"result": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the sample marketplace", target_fixture="marketplace_store")
def sample_marketplace(seeded_store):
    return seeded_store


@given(parsers.cfparse('the cart holds {quantity:d} of "{item_id}"'))
def cart_holds(marketplace_store, quantity, item_id):
    assert marketplace_store.add_to_cart(item_id, quantity=quantity).success is True


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(marketplace_store, checkout, status):
    assert marketplace_store.get_order(checkout.order_id)["status"] == status


@then(parsers.cfparse("the cart subtotal is {amount:f}"))
def cart_subtotal_is(marketplace_store, amount):
    assert marketplace_store.get_cart_total().subtotal == pytest.approx(amount)
