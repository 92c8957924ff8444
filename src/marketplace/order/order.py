"""Order aggregate — an immutable snapshot of a checked-out cart.

Line items, prices and the delivery address are copied at checkout and never
change afterwards. Only the status fields move, through the methods below.

Fulfilment flows (each step only to the next one):
    delivery: pending → confirmed → preparing → ready → out_for_delivery → delivered
    pickup:   pending → confirmed → preparing → ready → completed

Cancellation is possible from any state that has not finished. Payment moves
pending → paid | failed and failed → paid | pending; a paid order can be
refunded, which sets both the payment and the order status to refunded.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Dict,
    Float,
    HasMany,
    Identifier,
    Integer,
    List,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderRefunded,
    OrderStatusChanged,
    PaymentStatusChanged,
)
from marketplace.shared.money import options_delta, to_cents


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DeliveryType(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


_FLOWS = {
    DeliveryType.DELIVERY: (
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ),
    DeliveryType.PICKUP: (
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.COMPLETED,
    ),
}

# States an order can no longer leave through fulfilment or cancellation
_FINISHED_STATES = {
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID, PaymentStatus.PENDING},
    PaymentStatus.PAID: set(),  # Only a refund leaves paid
    PaymentStatus.REFUNDED: set(),
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class OrderPricing:
    """Financial summary locked at checkout.

    total = subtotal + tax + delivery_fee + tip - discount. Tax and total are
    stored unrounded; the other figures are in cents.
    """

    subtotal = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    tip = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)

    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        if to_cents(self.discount) > to_cents(self.subtotal):
            raise ValidationError({"discount": ["Discount cannot exceed the order subtotal"]})

    @invariant.post
    def total_must_add_up(self):
        expected = to_cents(self.subtotal + self.tax + self.delivery_fee + self.tip - self.discount)
        if to_cents(self.total) != expected:
            raise ValidationError({"total": [f"Order total must be {expected:.2f}"]})

    @classmethod
    def compute(cls, subtotal, tax_rate, delivery_fee=0.0, tip=0.0, discount=0.0):
        subtotal = to_cents(subtotal)
        tax = subtotal * tax_rate
        delivery_fee = to_cents(delivery_fee)
        tip = to_cents(tip)
        discount = to_cents(min(max(discount or 0.0, 0.0), subtotal))
        return cls(
            subtotal=subtotal,
            tax=tax,
            delivery_fee=delivery_fee,
            tip=tip,
            discount=discount,
            total=subtotal + tax + delivery_fee + tip - discount,
        )


@marketplace.value_object(part_of="Order")
class DeliveryAddressSnapshot:
    """Where the order goes, copied at checkout.

    Later edits to the address book never change a placed order.
    """

    address_id = String(max_length=100)
    label = String(max_length=50)
    street = String(required=True, max_length=255)
    apartment = String(max_length=100)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    instructions = Text()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """A checked-out cart line. `unit_price` already includes the option deltas."""

    item_id = Identifier(required=True)
    item_name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    selected_options = List(content_type=Dict)
    notes = Text()
    line_total = Float(required=True, min_value=0.0)
    position = Integer(default=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier(required=True)
    user_name = String(max_length=255)
    user_phone = String(max_length=50)
    merchant_id = Identifier(required=True)
    merchant_name = String(max_length=255)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    delivery_type = String(choices=DeliveryType, default=DeliveryType.DELIVERY.value)
    delivery_address = ValueObject(DeliveryAddressSnapshot)
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(max_length=50)
    discount_code = String(max_length=100)
    estimated_time = String(max_length=50)
    notes = Text()
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()
    confirmed_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    refunded_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        user_id,
        merchant,
        lines,
        pricing,
        delivery_type=DeliveryType.DELIVERY.value,
        delivery_address=None,
        user_name=None,
        user_phone=None,
        payment_method=None,
        discount_code=None,
        estimated_time=None,
        notes=None,
    ):
        """Create a pending order from cart lines.

        Args:
            lines: Cart lines (in cart order) to snapshot.
            pricing: An OrderPricing computed from the cart subtotal.
            delivery_address: Dict of DeliveryAddressSnapshot fields, or None.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            user_name=user_name,
            user_phone=user_phone,
            merchant_id=str(merchant.id),
            merchant_name=merchant.name,
            delivery_type=delivery_type,
            delivery_address=DeliveryAddressSnapshot(**delivery_address) if delivery_address else None,
            pricing=pricing,
            payment_method=payment_method,
            discount_code=discount_code,
            estimated_time=estimated_time,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for position, line in enumerate(lines):
            order.add_items(
                OrderItem(
                    item_id=str(line.item_id),
                    item_name=line.name,
                    unit_price=to_cents(line.base_price + options_delta(line.selected_options)),
                    quantity=line.quantity,
                    selected_options=list(line.selected_options or []),
                    notes=line.notes,
                    line_total=line.line_total,
                    position=position,
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=str(user_id),
                merchant_id=str(merchant.id),
                delivery_type=delivery_type,
                item_count=sum(line.quantity for line in lines),
                total=pricing.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    @property
    def flow(self):
        return _FLOWS[DeliveryType(self.delivery_type)]

    def next_status(self):
        """The status that follows the current one, or None at the end of the flow."""
        current = OrderStatus(self.status)
        if current not in self.flow:
            return None
        position = self.flow.index(current)
        if position + 1 >= len(self.flow):
            return None
        return self.flow[position + 1]

    def move_to(self, status):
        """Move to `status`, which must be the next step of this order's flow."""
        target = OrderStatus(status)
        expected = self.next_status()
        if target != expected:
            raise ValidationError({"status": [f"Cannot move a {self.status} order to {target.value}"]})

        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        if target == OrderStatus.CONFIRMED:
            self.confirmed_at = now
        elif target in (OrderStatus.DELIVERED, OrderStatus.COMPLETED):
            self.completed_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    def advance(self):
        expected = self.next_status()
        if expected is None:
            raise ValidationError({"status": [f"A {self.status} order has no next step"]})
        self.move_to(expected.value)

    def cancel(self, reason):
        if not reason or not reason.strip():
            raise ValidationError({"reason": ["A cancellation reason is required"]})
        if OrderStatus(self.status) in _FINISHED_STATES:
            raise ValidationError({"status": [f"A {self.status} order cannot be cancelled"]})

        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason.strip()
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous,
                reason=self.cancellation_reason,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def update_payment(self, status):
        target = PaymentStatus(status)
        current = PaymentStatus(self.payment_status)
        if target == PaymentStatus.REFUNDED:
            raise ValidationError({"payment_status": ["Use a refund to mark an order as refunded"]})
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise ValidationError({"payment_status": [f"Cannot change payment from {current.value} to {target.value}"]})

        self.payment_status = target.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
            )
        )

    def refund(self):
        if self.status == OrderStatus.REFUNDED.value:
            raise ValidationError({"status": ["Order has already been refunded"]})
        if self.payment_status != PaymentStatus.PAID.value:
            raise ValidationError({"payment_status": ["Only a paid order can be refunded"]})

        previous = self.status
        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.REFUNDED.value
        self.status = OrderStatus.REFUNDED.value
        self.refunded_at = now
        self.updated_at = now

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                previous_status=previous,
                amount=self.pricing.total if self.pricing else 0.0,
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def lines(self):
        return sorted(self.items, key=lambda item: item.position or 0)

    @property
    def total(self):
        return self.pricing.total if self.pricing else 0.0
