"""Domain events for the Discount aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Discount")
class DiscountCreated:
    """A new discount was set up."""

    __version__ = 1

    discount_id = Identifier(required=True)
    name = String(required=True)
    code = String()
    discount_type = String(required=True)
    value = Float(required=True)
    created_at = DateTime(required=True)


@marketplace.event(part_of="Discount")
class DiscountUpdated:
    """An admin patched a discount."""

    __version__ = 1

    discount_id = Identifier(required=True)
    changed_fields = Text()  # JSON array of field names


@marketplace.event(part_of="Discount")
class DiscountRedeemed:
    """A discount code was applied to an order subtotal."""

    __version__ = 1

    discount_id = Identifier(required=True)
    code = String()
    subtotal = Float(required=True)
    amount = Float(required=True)
    usage_count = Integer(required=True)
    redeemed_at = DateTime(required=True)
