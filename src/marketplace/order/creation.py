"""Checkout — turns the active cart into a pending Order.

In one unit of work the handler snapshots the cart lines, prices the order,
adds each line to its item's sales aggregates and discards the cart. An
empty cart, a vanished merchant or an incomplete delivery address yields a
failed CheckoutResult and changes nothing.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.reflection import declared_fields

from marketplace.addressbook.management import book_for
from marketplace.cart.items import active_cart, discard_cart
from marketplace.catalog.item import MerchantItem
from marketplace.catalog.queries import find_item, find_merchant
from marketplace.domain import marketplace
from marketplace.order.order import DeliveryAddressSnapshot, DeliveryType, Order, OrderPricing
from marketplace.results import CheckoutResult
from marketplace.shared.money import to_cents
from marketplace.shared.repository import scan
from marketplace.shared.settings import setting
from marketplace.utils.logging import logger


@marketplace.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    user_name = String(max_length=255)
    user_phone = String(max_length=50)
    delivery_type = String(max_length=20, default=DeliveryType.DELIVERY.value)
    delivery_address = Text()  # JSON: address dict
    payment_method = String(max_length=50)
    tip = Float(default=0.0, min_value=0.0)
    notes = Text()
    discount = Float(default=0.0, min_value=0.0)
    discount_code = String(max_length=100)


def next_order_number():
    """The next sequential order number, e.g. ORD-000042."""
    prefix = setting("ORDER_NUMBER_PREFIX")
    highest = 0
    for order in scan(current_domain.repository_for(Order)):
        number = order.order_number or ""
        suffix = number[len(prefix) :]
        if number.startswith(prefix) and suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:06d}"


def _delivery_address(address):
    """Snapshot fields of an address dict.

    Saved address-book records are accepted as they are: their `id` becomes
    `address_id` and their book-only fields are dropped.
    """
    fields = {name: address.get(name) for name in declared_fields(DeliveryAddressSnapshot) if name in address}
    if not fields.get("address_id") and address.get("id"):
        fields["address_id"] = str(address["id"])
    return DeliveryAddressSnapshot(**fields).to_dict()


def _sales_by_item(lines):
    """Quantity and amount per catalogue item across the cart lines."""
    sales = {}
    for line in lines:
        quantity, amount = sales.get(str(line.item_id), (0, 0.0))
        sales[str(line.item_id)] = (quantity + line.quantity, amount + line.line_total)
    return sales


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart = active_cart()
        if cart is None or cart.is_empty:
            return CheckoutResult(success=False, message="Your cart is empty")

        merchant = find_merchant(cart.merchant_id)
        if merchant is None:
            return CheckoutResult(success=False, message="Merchant not found")

        try:
            delivery_type = DeliveryType(command.delivery_type or DeliveryType.DELIVERY.value)
        except ValueError:
            return CheckoutResult(success=False, message=f"Unknown delivery type '{command.delivery_type}'")

        try:
            address = _delivery_address(json.loads(command.delivery_address)) if command.delivery_address else None
        except ValidationError:
            return CheckoutResult(success=False, message="A delivery address needs a street and a city")
        if address is None and delivery_type == DeliveryType.DELIVERY:
            book = book_for(command.user_id)
            default = book.default_address() if book else None
            address = default.snapshot() if default else None

        delivery_fee = (merchant.delivery_fee or 0.0) if delivery_type == DeliveryType.DELIVERY else 0.0
        pricing = OrderPricing.compute(
            subtotal=cart.subtotal,
            tax_rate=setting("TAX_RATE"),
            delivery_fee=delivery_fee,
            tip=command.tip or 0.0,
            discount=command.discount or 0.0,
        )

        lines = cart.lines()
        order = Order.place(
            order_number=next_order_number(),
            user_id=command.user_id,
            merchant=merchant,
            lines=lines,
            pricing=pricing,
            delivery_type=delivery_type.value,
            delivery_address=address,
            user_name=command.user_name,
            user_phone=command.user_phone,
            payment_method=command.payment_method,
            discount_code=command.discount_code,
            estimated_time=merchant.delivery_time or setting("DEFAULT_ESTIMATED_TIME"),
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        item_repo = current_domain.repository_for(MerchantItem)
        for item_id, (quantity, amount) in _sales_by_item(lines).items():
            item = find_item(item_id)
            if item is None:
                continue
            item.record_sale(quantity, to_cents(amount))
            item_repo.add(item)

        discard_cart(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            merchant_id=str(merchant.id),
            total=order.total,
        )
        return CheckoutResult(
            success=True,
            message=f"Order {order.order_number} placed",
            order_id=str(order.id),
            order_number=order.order_number,
        )
