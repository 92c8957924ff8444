"""Full-state export and restore as plain, JSON-ready dicts.

A snapshot holds every stored record exactly as persisted, derived figures
included, so restoring needs no recompute pass:

    {
        "version": 1,
        "merchants": [...], "items": [...], "cart": {...} | None,
        "orders": [...], "discounts": [...], "address_books": [...],
    }

Timestamps are written as ISO 8601 strings.
"""

from datetime import datetime

from protean.fields import DateTime, HasMany, Reference, ValueObject
from protean.utils.globals import current_domain
from protean.utils.reflection import declared_fields

from marketplace.addressbook.address_book import AddressBook, DeliveryAddress
from marketplace.cart.cart import Cart, CartItem
from marketplace.catalog.item import MerchantItem
from marketplace.catalog.merchant import Merchant
from marketplace.discount.discount import Discount
from marketplace.order.order import DeliveryAddressSnapshot, Order, OrderItem, OrderPricing
from marketplace.shared.clock import as_utc
from marketplace.shared.repository import scan
from marketplace.utils.logging import logger

SNAPSHOT_VERSION = 1

# Section name -> aggregate
SECTIONS = {
    "merchants": Merchant,
    "items": MerchantItem,
    "orders": Order,
    "discounts": Discount,
    "address_books": AddressBook,
}

# Nested records, by owning class and field
_NESTED = {
    Cart: {"items": CartItem},
    Order: {"items": OrderItem, "pricing": OrderPricing, "delivery_address": DeliveryAddressSnapshot},
    AddressBook: {"addresses": DeliveryAddress},
}


def _fields(cls):
    return {
        name: field
        for name, field in declared_fields(cls).items()
        if not name.startswith("_") and not isinstance(field, Reference)
    }


def to_record(obj):
    """Serialize an aggregate, entity or value object into a plain dict."""
    record = {}
    for name, field in _fields(type(obj)).items():
        value = getattr(obj, name, None)
        if isinstance(field, HasMany):
            value = [to_record(child) for child in value or []]
        elif isinstance(field, ValueObject):
            value = to_record(value) if value is not None else None
        elif isinstance(value, datetime):
            value = value.isoformat()
        record[name] = value
    return record


def from_record(cls, record):
    """Rebuild an object of `cls` from a dict produced by `to_record`."""
    nested = _NESTED.get(cls, {})
    values = {}
    for name, field in _fields(cls).items():
        value = record.get(name)
        if value is None:
            continue
        if isinstance(field, HasMany):
            value = [from_record(nested[name], child) for child in value]
        elif isinstance(field, ValueObject):
            value = from_record(nested[name], value)
        elif isinstance(field, DateTime):
            value = as_utc(value)
        values[name] = value
    return cls(**values)


def export_snapshot():
    snapshot = {"version": SNAPSHOT_VERSION}
    for section, aggregate_cls in SECTIONS.items():
        snapshot[section] = [to_record(record) for record in scan(current_domain.repository_for(aggregate_cls))]

    carts = scan(current_domain.repository_for(Cart))
    snapshot["cart"] = to_record(carts[0]) if carts else None
    return snapshot


def clear_state():
    """Drop every stored record."""
    for _, provider in current_domain.providers.items():
        provider._data_reset()


def restore_snapshot(snapshot):
    """Replace the current state with `snapshot`."""
    version = snapshot.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version {version}")

    clear_state()
    for section, aggregate_cls in SECTIONS.items():
        repo = current_domain.repository_for(aggregate_cls)
        for record in snapshot.get(section) or []:
            repo.add(from_record(aggregate_cls, record))

    if snapshot.get("cart"):
        current_domain.repository_for(Cart).add(from_record(Cart, snapshot["cart"]))

    logger.info(
        "Restored snapshot",
        **{section: len(snapshot.get(section) or []) for section in SECTIONS},
        cart=bool(snapshot.get("cart")),
    )
