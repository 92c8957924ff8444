"""Domain events for the Merchant and MerchantItem aggregates."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Merchant")
class MerchantAdded:
    """A new merchant was added to the marketplace."""

    __version__ = 1

    merchant_id = Identifier(required=True)
    name = String(required=True)
    category = String(required=True)
    added_at = DateTime(required=True)


@marketplace.event(part_of="Merchant")
class MerchantUpdated:
    """An admin patched a merchant's details."""

    __version__ = 1

    merchant_id = Identifier(required=True)
    changed_fields = Text()  # JSON array of field names


@marketplace.event(part_of="MerchantItem")
class ItemAdded:
    """A new item was added to a merchant's menu."""

    __version__ = 1

    item_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    added_at = DateTime(required=True)


@marketplace.event(part_of="MerchantItem")
class ItemUpdated:
    """An admin patched an item, on its own or as part of a bulk edit."""

    __version__ = 1

    item_id = Identifier(required=True)
    changed_fields = Text()  # JSON array of field names


@marketplace.event(part_of="MerchantItem")
class ItemSaleRecorded:
    """A checked-out order line was added to the item's sales aggregates."""

    __version__ = 1

    item_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    quantity = Integer(required=True)
    amount = Float(required=True)
    units_sold = Integer(required=True)
    revenue = Float(required=True)
