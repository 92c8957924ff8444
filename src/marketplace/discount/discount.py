"""Discount aggregate — a percentage or fixed amount off an order subtotal.

Codes match case-insensitively. Optional limits (`usage_limit`,
`min_order_amount`, `max_discount`) are unset when empty or zero.
`usage_count` only grows, by one per successful redemption.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from marketplace.discount.events import DiscountCreated, DiscountRedeemed, DiscountUpdated
from marketplace.domain import marketplace
from marketplace.shared.clock import as_utc
from marketplace.shared.money import format_amount, to_cents


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class DiscountScope(Enum):
    ORDER = "order"


EDITABLE_FIELDS = (
    "name",
    "description",
    "discount_type",
    "value",
    "code",
    "start_date",
    "end_date",
    "usage_limit",
    "min_order_amount",
    "max_discount",
    "is_active",
)


def normalize_code(code):
    return code.strip().upper() if code else None


@marketplace.aggregate
class Discount:
    name = String(required=True, max_length=255)
    description = Text()
    discount_type = String(choices=DiscountType, default=DiscountType.PERCENTAGE.value)
    value = Float(required=True, min_value=0.0)
    scope = String(choices=DiscountScope, default=DiscountScope.ORDER.value)
    code = String(max_length=50)
    start_date = DateTime()
    end_date = DateTime()
    usage_limit = Integer(min_value=0)
    usage_count = Integer(default=0, min_value=0)
    min_order_amount = Float(min_value=0.0)
    max_discount = Float(min_value=0.0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["A percentage discount cannot exceed 100"]})

    @invariant.post
    def end_date_must_follow_start_date(self):
        if self.start_date and self.end_date and as_utc(self.end_date) < as_utc(self.start_date):
            raise ValidationError({"end_date": ["End date must be on or after the start date"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, value, discount_type=DiscountType.PERCENTAGE.value, **attributes):
        now = datetime.now(UTC)
        discount = cls(
            name=name,
            value=value,
            discount_type=discount_type,
            created_at=now,
            updated_at=now,
            **attributes,
        )
        discount.raise_(
            DiscountCreated(
                discount_id=str(discount.id),
                name=name,
                code=discount.code,
                discount_type=discount.discount_type,
                value=value,
                created_at=now,
            )
        )
        return discount

    def update_details(self, **changes):
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError({"discount": [f"Fields cannot be edited: {', '.join(unknown)}"]})

        for field_name, value in changes.items():
            if field_name in ("start_date", "end_date"):
                value = as_utc(value)
            setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            DiscountUpdated(
                discount_id=str(self.id),
                changed_fields=json.dumps(sorted(changes)),
            )
        )

    # -------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------
    def matches(self, code):
        return bool(self.code) and normalize_code(self.code) == normalize_code(code)

    def is_live(self, now):
        """Active, inside its date window and under its usage limit."""
        return self.is_active and self._window_problem(now) is None and not self._exhausted

    def _window_problem(self, now):
        now = as_utc(now)
        if self.start_date and as_utc(self.start_date) > now:
            return "This discount is not yet active"
        if self.end_date and as_utc(self.end_date) < now:
            return "This discount has expired"
        return None

    @property
    def _exhausted(self):
        return bool(self.usage_limit) and (self.usage_count or 0) >= self.usage_limit

    def rejection_reason(self, subtotal, now):
        """Why the discount cannot be applied to `subtotal` right now, or None."""
        if not self.is_active:
            return "This discount is no longer active"
        window_problem = self._window_problem(now)
        if window_problem:
            return window_problem
        if self._exhausted:
            return "This discount has reached its usage limit"
        if self.min_order_amount and subtotal < self.min_order_amount:
            return f"Minimum order of {format_amount(self.min_order_amount)} required"
        return None

    def amount_for(self, subtotal):
        if self.discount_type == DiscountType.PERCENTAGE.value:
            amount = subtotal * (self.value / 100)
            if self.max_discount and amount > self.max_discount:
                amount = self.max_discount
        else:
            amount = self.value
        return to_cents(amount)

    def redeem(self, subtotal, now=None):
        """Apply the discount to `subtotal` and count the use. Returns the amount off."""
        now = now or datetime.now(UTC)
        reason = self.rejection_reason(subtotal, now)
        if reason:
            raise ValidationError({"code": [reason]})

        amount = self.amount_for(subtotal)
        self.usage_count = (self.usage_count or 0) + 1
        self.updated_at = now

        self.raise_(
            DiscountRedeemed(
                discount_id=str(self.id),
                code=self.code,
                subtotal=subtotal,
                amount=amount,
                usage_count=self.usage_count,
                redeemed_at=now,
            )
        )
        return amount
