"""BDD tests for order fulfilment, cancellation, payment and refund."""

from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/order_lifecycle.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('"{user_id}" has checked out for {delivery_type}'), target_fixture="checkout")
def checked_out(marketplace_store, user_id, delivery_type):
    result = marketplace_store.create_order(user_id, delivery_type=delivery_type)
    assert result.success is True
    return result


@given("the order is paid")
def order_is_paid(marketplace_store, checkout):
    assert marketplace_store.update_payment_status(checkout.order_id, "paid").success is True


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the order is advanced {times:d} times"))
def advance_order(marketplace_store, checkout, times):
    for _ in range(times):
        assert marketplace_store.advance_order(checkout.order_id).success is True


@when(parsers.cfparse('the order status is set to "{status}"'))
def set_status(marketplace_store, checkout, outcome, status):
    outcome["result"] = marketplace_store.update_order_status(checkout.order_id, status)


@when(parsers.cfparse('the order is cancelled with reason "{reason}"'))
def cancel_order(marketplace_store, checkout, outcome, reason):
    outcome["result"] = marketplace_store.cancel_order(checkout.order_id, reason)


@when("the order is cancelled without a reason")
def cancel_without_reason(marketplace_store, checkout, outcome):
    outcome["result"] = marketplace_store.cancel_order(checkout.order_id, "")


@when("the order is refunded")
def refund_order(marketplace_store, checkout, outcome):
    outcome["result"] = marketplace_store.refund_order(checkout.order_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the order can no longer be advanced")
def cannot_advance(marketplace_store, checkout):
    assert marketplace_store.advance_order(checkout.order_id).success is False


@then("the order change is rejected")
def change_rejected(outcome):
    assert outcome["result"].success is False


@then(parsers.cfparse('the order change is rejected with "{message}"'))
def change_rejected_with(outcome, message):
    assert outcome["result"].success is False
    assert outcome["result"].message == message


@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status_is(marketplace_store, checkout, status):
    assert marketplace_store.get_order(checkout.order_id)["payment_status"] == status
