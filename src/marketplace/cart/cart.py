"""Cart aggregate — the shopper's in-progress basket, pinned to one merchant.

Each line snapshots the item's name and base price and captures the selected
options by value, so later menu edits never reprice a cart. Every mutation
recomputes the line totals and the subtotal before it returns.

There is at most one cart at a time. A cart that loses its last line is
discarded by the handlers (see cart.items).
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Dict, Float, HasMany, Identifier, Integer, List, String, Text

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartItemUpdated
from marketplace.domain import marketplace
from marketplace.shared.money import line_total, to_cents


@marketplace.value_object(part_of="Cart")
class SelectedOption:
    """A chosen option captured by value at the time it was added."""

    group_id = String(required=True, max_length=100)
    group_name = String(required=True, max_length=255)
    choice_id = String(required=True, max_length=100)
    choice_name = String(required=True, max_length=255)
    price_delta = Float(default=0.0)


def _normalize_options(selected_options):
    options = []
    for option in selected_options or []:
        if not isinstance(option, SelectedOption):
            option = SelectedOption(**option)
        options.append(option.to_dict())
    return options


@marketplace.entity(part_of="Cart")
class CartItem:
    item_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    base_price = Float(required=True, min_value=0.0)
    selected_options = List(content_type=Dict)
    quantity = Integer(required=True, min_value=1)
    notes = Text()
    line_total = Float(default=0.0)
    position = Integer(default=0)

    def reprice(self):
        self.line_total = line_total(self.base_price, self.selected_options, self.quantity)


@marketplace.aggregate
class Cart:
    merchant_id = Identifier(required=True)
    items = HasMany(CartItem)
    subtotal = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def line_totals_must_match_prices(self):
        for line in self.items:
            expected = line_total(line.base_price, line.selected_options, line.quantity)
            if to_cents(line.line_total) != expected:
                raise ValidationError({"items": [f"Line total of '{line.name}' is out of date"]})

    @invariant.post
    def subtotal_must_equal_sum_of_lines(self):
        if to_cents(self.subtotal) != to_cents(sum(line.line_total or 0.0 for line in self.items)):
            raise ValidationError({"subtotal": ["Cart subtotal must equal the sum of its lines"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, merchant_id):
        now = datetime.now(UTC)
        return cls(merchant_id=merchant_id, subtotal=0.0, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def _recalculate(self):
        self.subtotal = to_cents(sum(line.line_total or 0.0 for line in self.items))
        self.updated_at = datetime.now(UTC)

    def add_line(self, item, quantity, selected_options=None, notes=None):
        """Append `item` as a new line. Repeated adds never merge lines."""
        if str(item.merchant_id) != str(self.merchant_id):
            raise ValidationError({"merchant_id": ["Cart already holds items from another merchant"]})

        position = max((line.position or 0 for line in self.items), default=-1) + 1
        with atomic_change(self):
            line = CartItem(
                item_id=str(item.id),
                name=item.name,
                base_price=item.price,
                selected_options=_normalize_options(selected_options),
                quantity=quantity,
                notes=notes,
                position=position,
            )
            line.reprice()
            self.add_items(line)
            self._recalculate()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                line_id=str(line.id),
                item_id=str(item.id),
                quantity=quantity,
                line_total=line.line_total,
                subtotal=self.subtotal,
            )
        )
        return line

    def update_line(self, line_id, quantity=None, notes=None, selected_options=None):
        """Partially update a line. A quantity of zero or less removes it.

        Returns the updated line, or None when the line is unknown or removed.
        """
        line = self.line(line_id)
        if line is None:
            return None
        if quantity is not None and quantity <= 0:
            self.remove_line(line_id)
            return None

        with atomic_change(self):
            if quantity is not None:
                line.quantity = quantity
            if notes is not None:
                line.notes = notes
            if selected_options is not None:
                line.selected_options = _normalize_options(selected_options)
            line.reprice()
            self._recalculate()

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                line_id=str(line.id),
                quantity=line.quantity,
                line_total=line.line_total,
                subtotal=self.subtotal,
            )
        )
        return line

    def remove_line(self, line_id):
        line = self.line(line_id)
        if line is None:
            return False

        with atomic_change(self):
            self.remove_items(line)
            self._recalculate()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                line_id=str(line_id),
                subtotal=self.subtotal,
            )
        )
        return True

    def clear(self):
        with atomic_change(self):
            for line in list(self.items):
                self.remove_items(line)
            self._recalculate()

        self.raise_(CartCleared(cart_id=str(self.id), merchant_id=str(self.merchant_id)))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def line(self, line_id):
        return next((line for line in self.items if str(line.id) == str(line_id)), None)

    def lines(self):
        """Lines in the order they were added."""
        return sorted(self.items, key=lambda line: line.position or 0)

    @property
    def is_empty(self):
        return not self.items

    @property
    def item_count(self):
        return sum(line.quantity for line in self.items)
