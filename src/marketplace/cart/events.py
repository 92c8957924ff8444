"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartItemAdded:
    """An item, with its selected options, was added to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_total = Float(required=True)
    subtotal = Float(required=True)


@marketplace.event(part_of="Cart")
class CartItemUpdated:
    """A cart line's quantity, notes or options changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_total = Float(required=True)
    subtotal = Float(required=True)


@marketplace.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    subtotal = Float(required=True)


@marketplace.event(part_of="Cart")
class CartCleared:
    """Every line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
