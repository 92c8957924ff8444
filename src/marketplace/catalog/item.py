"""MerchantItem aggregate with OptionGroup and OptionChoice value objects.

An item belongs to exactly one merchant. Its option groups are stored inline
as an ordered list and validated through the value objects on every change.
`units_sold` and `revenue` are running sales aggregates: they can only grow,
and only through `record_sale`, which checkout calls.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Dict, Float, Identifier, Integer, List, String, Text

from marketplace.catalog.events import ItemAdded, ItemSaleRecorded, ItemUpdated
from marketplace.domain import marketplace
from marketplace.shared.money import to_cents


class SelectionType(Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


# Fields an admin patch (single or bulk) is allowed to touch
EDITABLE_FIELDS = (
    "name",
    "description",
    "price",
    "category",
    "sku",
    "stock_quantity",
    "option_groups",
    "is_available",
    "is_featured",
    "sort_order",
)


@marketplace.value_object(part_of="MerchantItem")
class OptionChoice:
    """One selectable choice inside an option group, e.g. "Large" for +$6."""

    choice_id = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    price_delta = Float(default=0.0)
    is_available = Boolean(default=True)
    is_default = Boolean(default=False)


@marketplace.value_object(part_of="MerchantItem")
class OptionGroup:
    """A named set of choices such as "Size" or "Extras".

    A `single` group resolves to at most one choice. A `multiple` group
    resolves to at most `max_select` choices when a cap is set.
    """

    group_id = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    selection_type = String(choices=SelectionType, default=SelectionType.SINGLE.value)
    required = Boolean(default=False)
    min_select = Integer(min_value=0)
    max_select = Integer(min_value=1)
    choices = List(content_type=Dict)

    @invariant.post
    def choices_must_be_well_formed(self):
        seen = set()
        for data in self.choices or []:
            choice = OptionChoice(**data)
            if choice.choice_id in seen:
                raise ValidationError({"choices": [f"Duplicate choice '{choice.choice_id}' in group '{self.name}'"]})
            seen.add(choice.choice_id)

    @invariant.post
    def selection_bounds_must_be_consistent(self):
        if self.min_select is not None and self.max_select is not None and self.min_select > self.max_select:
            raise ValidationError({"max_select": ["max_select cannot be lower than min_select"]})

    @property
    def is_multiple(self):
        return self.selection_type == SelectionType.MULTIPLE.value

    @property
    def cap(self):
        """Maximum number of choices the group resolves to (None = unbounded)."""
        if not self.is_multiple:
            return 1
        return self.max_select

    def choice_list(self):
        return [OptionChoice(**data) for data in self.choices or []]

    def find_choice(self, choice_id):
        return next((c for c in self.choice_list() if c.choice_id == choice_id), None)

    def default_choice(self):
        return next((c for c in self.choice_list() if c.is_default), None)


def _normalize_groups(option_groups):
    groups = []
    for group in option_groups or []:
        if not isinstance(group, OptionGroup):
            group = OptionGroup(**group)
        groups.append(group.to_dict())
    return groups


@marketplace.aggregate
class MerchantItem:
    merchant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    category = String(max_length=100, default="Other")
    sku = String(max_length=100)
    stock_quantity = Integer(min_value=0)
    option_groups = List(content_type=Dict)
    is_available = Boolean(default=True)
    is_featured = Boolean(default=False)
    sort_order = Integer(default=0)
    units_sold = Integer(default=0, min_value=0)
    revenue = Float(default=0.0, min_value=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def option_group_ids_must_be_unique(self):
        ids = [group.get("group_id") for group in self.option_groups or []]
        if len(ids) != len(set(ids)):
            raise ValidationError({"option_groups": ["Option group ids must be unique within an item"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, merchant_id, name, price, option_groups=None, **attributes):
        now = datetime.now(UTC)
        item = cls(
            merchant_id=merchant_id,
            name=name,
            price=price,
            option_groups=_normalize_groups(option_groups),
            created_at=now,
            updated_at=now,
            **attributes,
        )
        item.raise_(
            ItemAdded(
                item_id=str(item.id),
                merchant_id=str(merchant_id),
                name=name,
                price=price,
                added_at=now,
            )
        )
        return item

    # -------------------------------------------------------------------
    # Admin edits
    # -------------------------------------------------------------------
    def update_details(self, **changes):
        """Apply a partial patch. Sales aggregates and ownership are not editable."""
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError({"item": [f"Fields cannot be edited: {', '.join(unknown)}"]})

        for field_name, value in changes.items():
            if field_name == "option_groups":
                value = _normalize_groups(value)
            setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ItemUpdated(
                item_id=str(self.id),
                changed_fields=json.dumps(sorted(changes)),
            )
        )

    # -------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------
    def record_sale(self, quantity, amount):
        """Add a checked-out order line to the running sales aggregates."""
        if quantity < 1:
            raise ValidationError({"quantity": ["A sale must cover at least one unit"]})
        if amount < 0:
            raise ValidationError({"amount": ["A sale cannot have a negative amount"]})

        self.units_sold = (self.units_sold or 0) + quantity
        self.revenue = to_cents((self.revenue or 0.0) + amount)

        self.raise_(
            ItemSaleRecorded(
                item_id=str(self.id),
                merchant_id=str(self.merchant_id),
                quantity=quantity,
                amount=amount,
                units_sold=self.units_sold,
                revenue=self.revenue,
            )
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def groups(self):
        return [OptionGroup(**data) for data in self.option_groups or []]

    def option_group(self, group_id):
        return next((g for g in self.groups() if g.group_id == group_id), None)
