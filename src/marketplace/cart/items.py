"""Cart item management — commands and handler.

There is a single active cart. It is opened lazily by the first add and
discarded as soon as it holds no lines. Adding an item from a different
merchant than the cart's fails with an ActionResult and leaves the cart as it
was, unless the command asks to start a new cart. Selected options are
re-read from the item's option groups (see cart.options.resolve_options).
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Dict, Identifier, Integer, List, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.cart.options import resolve_options
from marketplace.catalog.queries import find_item, find_merchant
from marketplace.domain import marketplace
from marketplace.results import ActionResult
from marketplace.shared.repository import scan


@marketplace.command(part_of="Cart")
class AddToCart:
    item_id = Identifier(required=True)
    quantity = Integer(default=1)
    selected_options = List(content_type=Dict)
    notes = Text()
    replace_cart = Boolean(default=False)  # Start a new cart, discarding the current one


@marketplace.command(part_of="Cart")
class UpdateCartItem:
    line_id = Identifier(required=True)
    quantity = Integer()
    notes = Text()
    selected_options = Text()  # JSON list; absent leaves the options unchanged


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    line_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    pass


def active_cart():
    """The current cart, or None when there is none."""
    carts = scan(current_domain.repository_for(Cart))
    return carts[0] if carts else None


def discard_cart(cart):
    """Remove `cart` together with its lines."""
    repo = current_domain.repository_for(Cart)
    if not cart.is_empty:
        cart.clear()
    repo.add(cart)
    repo._dao.delete(cart)


def _persist(cart):
    if cart.is_empty:
        discard_cart(cart)
    else:
        current_domain.repository_for(Cart).add(cart)


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        if command.quantity is None or command.quantity < 1:
            return ActionResult(success=False, message="Quantity must be at least 1")

        item = find_item(command.item_id)
        if item is None:
            return ActionResult(success=False, message="Item not found")
        merchant = find_merchant(item.merchant_id)
        if merchant is None:
            return ActionResult(success=False, message="Merchant not found")

        try:
            selected_options = resolve_options(item, command.selected_options)
        except ValidationError as exc:
            return ActionResult.rejected(exc)

        cart = active_cart()
        if cart is not None and command.replace_cart:
            discard_cart(cart)
            cart = None
        elif cart is not None and str(cart.merchant_id) != str(merchant.id):
            return ActionResult(
                success=False,
                message="Your cart has items from another merchant",
                id=str(cart.id),
            )

        if cart is None:
            cart = Cart.open(merchant_id=str(merchant.id))

        line = cart.add_line(
            item,
            quantity=command.quantity,
            selected_options=selected_options,
            notes=command.notes,
        )
        current_domain.repository_for(Cart).add(cart)
        return ActionResult(success=True, message=f"Added {item.name} to cart", id=str(line.id))

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        cart = active_cart()
        line = cart.line(command.line_id) if cart is not None else None
        if line is None:
            return None

        selected_options = None
        if command.selected_options:
            item = find_item(line.item_id)
            if item is None:
                return ActionResult(success=False, message="Item not found")
            try:
                selected_options = resolve_options(item, json.loads(command.selected_options))
            except ValidationError as exc:
                return ActionResult.rejected(exc)

        cart.update_line(
            command.line_id,
            quantity=command.quantity,
            notes=command.notes,
            selected_options=selected_options,
        )
        _persist(cart)
        return str(command.line_id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = active_cart()
        if cart is None or not cart.remove_line(command.line_id):
            return None

        _persist(cart)
        return str(command.line_id)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = active_cart()
        if cart is not None:
            discard_cart(cart)
            return str(cart.id)
        return None
