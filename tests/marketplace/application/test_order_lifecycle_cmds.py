"""Application tests for order status, cancellation, payment and refund commands."""

from datetime import timedelta

import pytest
from marketplace.cart.items import AddToCart
from marketplace.catalog.items import AddItem
from marketplace.catalog.management import AddMerchant
from marketplace.order.cancellation import CancelOrder, RefundOrder
from marketplace.order.creation import PlaceOrder
from marketplace.order.fulfillment import AdvanceOrder, UpdateOrderStatus
from marketplace.order.payment import UpdatePaymentStatus
from marketplace.order.queries import find_order, orders, user_orders
from marketplace.results import OrderFilter
from marketplace.shared.clock import utcnow
from protean import current_domain


@pytest.fixture
def item_id():
    merchant_id = current_domain.process(AddMerchant(name="Sakura Sushi", delivery_fee=3.99), asynchronous=False)
    return current_domain.process(
        AddItem(merchant_id=merchant_id, name="California Roll", price=12.99),
        asynchronous=False,
    )


def _place(item_id, user_id="user-1", delivery_type="delivery"):
    current_domain.process(AddToCart(item_id=item_id, quantity=1), asynchronous=False)
    result = current_domain.process(
        PlaceOrder(user_id=user_id, delivery_type=delivery_type),
        asynchronous=False,
    )
    return result.order_id


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestStatusCommands:
    def test_next_status_is_accepted(self, item_id):
        order_id = _place(item_id)
        result = _process(UpdateOrderStatus(order_id=order_id, status="confirmed"))
        assert result.success is True
        order = find_order(order_id)
        assert order.status == "confirmed"
        assert order.confirmed_at is not None

    def test_skipping_a_step_is_rejected(self, item_id):
        order_id = _place(item_id)
        result = _process(UpdateOrderStatus(order_id=order_id, status="delivered"))
        assert result.success is False
        assert find_order(order_id).status == "pending"

    def test_unknown_status_is_rejected(self, item_id):
        order_id = _place(item_id)
        result = _process(UpdateOrderStatus(order_id=order_id, status="teleported"))
        assert result.success is False

    def test_unknown_order_is_ignored(self, item_id):
        assert _process(UpdateOrderStatus(order_id="missing", status="confirmed")) is None

    def test_advance_through_pickup_flow(self, item_id):
        order_id = _place(item_id, delivery_type="pickup")
        for _ in range(4):
            assert _process(AdvanceOrder(order_id=order_id)).success is True
        order = find_order(order_id)
        assert order.status == "completed"
        assert order.completed_at is not None
        assert _process(AdvanceOrder(order_id=order_id)).success is False


class TestCancelOrder:
    def test_cancel(self, item_id):
        order_id = _place(item_id)
        result = _process(CancelOrder(order_id=order_id, reason="Out of rice"))
        assert result.success is True
        order = find_order(order_id)
        assert order.status == "cancelled"
        assert order.cancellation_reason == "Out of rice"

    def test_blank_reason_is_rejected(self, item_id):
        order_id = _place(item_id)
        result = _process(CancelOrder(order_id=order_id, reason=""))
        assert result.success is False
        assert result.message == "A cancellation reason is required"
        assert find_order(order_id).status == "pending"


class TestPaymentAndRefund:
    def test_payment_moves(self, item_id):
        order_id = _place(item_id)
        assert _process(UpdatePaymentStatus(order_id=order_id, status="failed")).success is True
        assert _process(UpdatePaymentStatus(order_id=order_id, status="paid")).success is True
        assert find_order(order_id).payment_status == "paid"

    def test_invalid_payment_move(self, item_id):
        order_id = _place(item_id)
        _process(UpdatePaymentStatus(order_id=order_id, status="paid"))
        result = _process(UpdatePaymentStatus(order_id=order_id, status="failed"))
        assert result.success is False

    def test_refund_paid_order(self, item_id):
        order_id = _place(item_id)
        _process(UpdatePaymentStatus(order_id=order_id, status="paid"))
        result = _process(RefundOrder(order_id=order_id))
        assert result.success is True
        order = find_order(order_id)
        assert (order.status, order.payment_status) == ("refunded", "refunded")

    def test_refund_unpaid_order_is_rejected(self, item_id):
        order_id = _place(item_id)
        result = _process(RefundOrder(order_id=order_id))
        assert result.success is False
        assert find_order(order_id).payment_status == "pending"


class TestOrderQueries:
    def test_filters(self, item_id):
        first = _place(item_id, user_id="user-1")
        second = _place(item_id, user_id="user-2", delivery_type="pickup")
        _process(UpdatePaymentStatus(order_id=second, status="paid"))

        assert [str(o.id) for o in orders(OrderFilter(user_id="user-1"))] == [first]
        assert [str(o.id) for o in orders(OrderFilter(payment_status="paid"))] == [second]
        assert [str(o.id) for o in user_orders("user-2")] == [second]
        assert orders(OrderFilter(date_from=utcnow() + timedelta(days=1))) == []
        assert len(orders(OrderFilter(date_to=utcnow()))) == 2

    def test_newest_first(self, item_id):
        first = _place(item_id)
        second = _place(item_id)
        assert [str(o.id) for o in orders()] == [second, first]
