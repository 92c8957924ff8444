"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new pending order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    delivery_type = String(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    """An order moved one step along its fulfilment flow."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled before reaching the end of its flow."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PaymentStatusChanged:
    """The payment status of an order was acknowledged as changed."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@marketplace.event(part_of="Order")
class OrderRefunded:
    """A paid order was refunded; payment and order status both became refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)
