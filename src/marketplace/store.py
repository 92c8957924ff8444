"""MarketplaceStore — the in-process surface of the marketplace.

The store owns the `marketplace` domain. Every call runs inside a domain
context; mutations go through commands processed synchronously, each in its
own unit of work, and reads go through the query modules. Records come back
as plain dicts (see marketplace.snapshot), business outcomes as the pydantic
models in marketplace.results.

After every mutation that changed something, the optional `on_change`
callable receives a fresh full snapshot:

    store = MarketplaceStore(on_change=JsonSnapshotFile("marketplace.json"))
"""

import json
from datetime import datetime

from marketplace.addressbook.management import (
    AddAddress,
    DeleteAddress,
    SetDefaultAddress,
    UpdateAddress,
    book_for,
)
from marketplace.analytics.dashboard import dashboard_stats, item_stats, merchant_analytics, top_selling_items
from marketplace.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem, active_cart
from marketplace.catalog import queries as catalog_queries
from marketplace.catalog.items import AddItem, BulkDeleteItems, BulkUpdateItems, DeleteItem, UpdateItem
from marketplace.catalog.management import AddMerchant, DeleteMerchant, UpdateMerchant
from marketplace.discount.management import (
    AddDiscount,
    DeleteDiscount,
    UpdateDiscount,
    active_discounts,
    discount_by_code,
    find_discount,
)
from marketplace.discount.redemption import ApplyDiscount
from marketplace.domain import marketplace
from marketplace.order import queries as order_queries
from marketplace.order.cancellation import CancelOrder, RefundOrder
from marketplace.order.creation import PlaceOrder
from marketplace.order.fulfillment import AdvanceOrder, UpdateOrderStatus
from marketplace.order.payment import UpdatePaymentStatus
from marketplace.results import CartTotal, DiscountResult, ItemFilter, MerchantFilter, OrderFilter
from marketplace.seed import SeedSampleData
from marketplace.snapshot import export_snapshot, restore_snapshot, to_record
from marketplace.utils.logging import logger


def _encode(changes):
    """JSON text for a patch carried by a command."""
    return json.dumps(changes, default=lambda value: value.isoformat() if isinstance(value, datetime) else str(value))


def _record(obj):
    return to_record(obj) if obj is not None else None


def _succeeded(result):
    """Whether a handler's return value reports a change."""
    if not result:
        return False
    for flag in ("success", "valid"):
        if hasattr(result, flag):
            return getattr(result, flag)
    return True


class MarketplaceStore:
    def __init__(self, domain=marketplace, on_change=None):
        self.domain = domain
        self.on_change = on_change

    # -------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------
    def _process(self, command):
        with self.domain.domain_context():
            result = self.domain.process(command, asynchronous=False)
            if _succeeded(result) and self.on_change is not None:
                self.on_change(export_snapshot())
        return result

    def _read(self, query, *args, **kwargs):
        with self.domain.domain_context():
            return query(*args, **kwargs)

    def bootstrap(self, snapshot=None, seed=False):
        """Load `snapshot` when given, otherwise optionally seed sample data."""
        if snapshot:
            self.restore_snapshot(snapshot)
        elif seed:
            self.seed_sample_data()
        return self

    # -------------------------------------------------------------------
    # Snapshots and seeding
    # -------------------------------------------------------------------
    def export_snapshot(self):
        return self._read(export_snapshot)

    def restore_snapshot(self, snapshot):
        """Replace the whole state. The `on_change` hook is not called."""
        self._read(restore_snapshot, snapshot)

    def seed_sample_data(self):
        """Load the demonstration catalogue. Returns False when merchants already exist."""
        return self._process(SeedSampleData())

    # -------------------------------------------------------------------
    # Catalog: merchants
    # -------------------------------------------------------------------
    def add_merchant(self, name, **fields):
        return self._process(AddMerchant(name=name, **fields))

    def update_merchant(self, merchant_id, **changes):
        return self._process(UpdateMerchant(merchant_id=merchant_id, changes=_encode(changes)))

    def delete_merchant(self, merchant_id):
        return self._process(DeleteMerchant(merchant_id=merchant_id))

    def get_merchant(self, merchant_id):
        return _record(self._read(catalog_queries.find_merchant, merchant_id))

    def get_merchants(self, criteria=None, **filters):
        criteria = criteria or MerchantFilter(**filters)
        return [to_record(m) for m in self._read(catalog_queries.merchants, criteria)]

    # -------------------------------------------------------------------
    # Catalog: items
    # -------------------------------------------------------------------
    def add_item(self, merchant_id, name, price, **fields):
        return self._process(AddItem(merchant_id=merchant_id, name=name, price=price, **fields))

    def update_item(self, item_id, **changes):
        return self._process(UpdateItem(item_id=item_id, changes=_encode(changes)))

    def delete_item(self, item_id):
        return self._process(DeleteItem(item_id=item_id))

    def bulk_update_items(self, item_ids, changes):
        """Apply one patch to every known item in `item_ids`. Returns the number updated."""
        return self._process(BulkUpdateItems(item_ids=list(item_ids), changes=_encode(changes)))

    def bulk_delete_items(self, item_ids):
        return self._process(BulkDeleteItems(item_ids=list(item_ids)))

    def get_item(self, item_id):
        return _record(self._read(catalog_queries.find_item, item_id))

    def get_items(self, criteria=None, **filters):
        criteria = criteria or ItemFilter(**filters)
        return [to_record(i) for i in self._read(catalog_queries.items, criteria)]

    def get_merchant_items(self, merchant_id):
        return [to_record(i) for i in self._read(catalog_queries.merchant_items, merchant_id)]

    def get_merchant_categories(self, merchant_id):
        return self._read(catalog_queries.merchant_categories, merchant_id)

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def add_to_cart(self, item_id, quantity=1, selected_options=None, notes=None):
        return self._process(
            AddToCart(
                item_id=item_id,
                quantity=quantity,
                selected_options=selected_options or [],
                notes=notes,
            )
        )

    def replace_cart(self, item_id, quantity=1, selected_options=None, notes=None):
        """Discard the current cart, whatever its merchant, and add the item to a new one."""
        return self._process(
            AddToCart(
                item_id=item_id,
                quantity=quantity,
                selected_options=selected_options or [],
                notes=notes,
                replace_cart=True,
            )
        )

    def update_cart_item(self, line_id, quantity=None, notes=None, selected_options=None):
        return self._process(
            UpdateCartItem(
                line_id=line_id,
                quantity=quantity,
                notes=notes,
                selected_options=_encode(selected_options) if selected_options is not None else None,
            )
        )

    def remove_from_cart(self, line_id):
        return self._process(RemoveFromCart(line_id=line_id))

    def clear_cart(self):
        return self._process(ClearCart())

    def get_cart(self):
        return _record(self._read(active_cart))

    def get_cart_total(self):
        cart = self._read(active_cart)
        if cart is None:
            return CartTotal()
        return CartTotal(subtotal=cart.subtotal, item_count=cart.item_count)

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def create_order(
        self,
        user_id,
        user_name=None,
        user_phone=None,
        delivery_type="delivery",
        delivery_address=None,
        payment_method=None,
        tip=0.0,
        notes=None,
        discount=0.0,
        discount_code=None,
    ):
        """Check out the current cart. Returns a CheckoutResult."""
        return self._process(
            PlaceOrder(
                user_id=user_id,
                user_name=user_name,
                user_phone=user_phone,
                delivery_type=delivery_type,
                delivery_address=_encode(delivery_address) if delivery_address else None,
                payment_method=payment_method,
                tip=tip or 0.0,
                notes=notes,
                discount=discount or 0.0,
                discount_code=discount_code,
            )
        )

    def update_order_status(self, order_id, status):
        return self._process(UpdateOrderStatus(order_id=order_id, status=status))

    def advance_order(self, order_id):
        return self._process(AdvanceOrder(order_id=order_id))

    def cancel_order(self, order_id, reason):
        return self._process(CancelOrder(order_id=order_id, reason=reason))

    def update_payment_status(self, order_id, status):
        return self._process(UpdatePaymentStatus(order_id=order_id, status=status))

    def refund_order(self, order_id):
        return self._process(RefundOrder(order_id=order_id))

    def get_order(self, order_id):
        return _record(self._read(order_queries.find_order, order_id))

    def get_orders(self, criteria=None, **filters):
        criteria = criteria or OrderFilter(**filters)
        return [to_record(o) for o in self._read(order_queries.orders, criteria)]

    def get_user_orders(self, user_id):
        return [to_record(o) for o in self._read(order_queries.user_orders, user_id)]

    # -------------------------------------------------------------------
    # Discounts
    # -------------------------------------------------------------------
    def add_discount(self, name, value, **fields):
        return self._process(AddDiscount(name=name, value=value, **fields))

    def update_discount(self, discount_id, **changes):
        return self._process(UpdateDiscount(discount_id=discount_id, changes=_encode(changes)))

    def delete_discount(self, discount_id):
        return self._process(DeleteDiscount(discount_id=discount_id))

    def get_discount(self, discount_id):
        return _record(self._read(find_discount, discount_id))

    def get_discount_by_code(self, code):
        return _record(self._read(discount_by_code, code))

    def get_active_discounts(self):
        return [to_record(d) for d in self._read(active_discounts)]

    def apply_discount(self, code, order_subtotal):
        """Validate `code` against a subtotal and count one use on success."""
        if not code or not code.strip():
            return DiscountResult(valid=False, message="Invalid discount code")
        return self._process(ApplyDiscount(code=code.strip(), order_subtotal=order_subtotal))

    # -------------------------------------------------------------------
    # Address book
    # -------------------------------------------------------------------
    def add_address(self, user_id, street, city, **fields):
        return self._process(AddAddress(user_id=user_id, street=street, city=city, **fields))

    def update_address(self, user_id, address_id, **changes):
        return self._process(UpdateAddress(user_id=user_id, address_id=address_id, changes=_encode(changes)))

    def delete_address(self, user_id, address_id):
        return self._process(DeleteAddress(user_id=user_id, address_id=address_id))

    def set_default_address(self, user_id, address_id):
        return self._process(SetDefaultAddress(user_id=user_id, address_id=address_id))

    def get_user_addresses(self, user_id):
        book = self._read(book_for, user_id)
        return [to_record(a) for a in book.ordered()] if book else []

    def get_default_address(self, user_id):
        book = self._read(book_for, user_id)
        return _record(book.default_address()) if book else None

    # -------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------
    def get_admin_dashboard_stats(self, days=None):
        return self._read(dashboard_stats, days)

    def get_top_selling_items(self, merchant_id=None, limit=None):
        return self._read(lambda: item_stats(top_selling_items(merchant_id, limit)))

    def get_merchant_analytics(self, merchant_id, days=None):
        return self._read(merchant_analytics, merchant_id, days)


def open_store(snapshot_file=None, seed=False):
    """Initialize the domain and the name collation, then build a store.

    The store persists to `snapshot_file` when one is given.
    """
    marketplace.init()
    catalog_queries.use_system_collation()
    store = MarketplaceStore(on_change=snapshot_file)
    store.bootstrap(snapshot_file.load() if snapshot_file else None, seed=seed)
    logger.info("Marketplace store ready", persisted=snapshot_file is not None)
    return store
