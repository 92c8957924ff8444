"""Merchant aggregate — a restaurant or shop selling on the marketplace.

A merchant carries its delivery configuration (fee, minimum order, time
estimate), weekly operating hours and review aggregates. Merchants are never
hard-disabled: `is_active` hides them from shopper queries, while deleting a
merchant removes its whole catalogue (see catalog.management).
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Dict, Float, Integer, List, String, Text

from marketplace.catalog.events import MerchantAdded, MerchantUpdated
from marketplace.domain import marketplace


class MerchantCategory(Enum):
    RESTAURANT = "restaurant"
    CAFE = "cafe"
    GROCERY = "grocery"
    RETAIL = "retail"
    PHARMACY = "pharmacy"
    ELECTRONICS = "electronics"
    FASHION = "fashion"
    BEAUTY = "beauty"
    SERVICES = "services"
    OTHER = "other"


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Fields an admin patch is allowed to touch
EDITABLE_FIELDS = (
    "name",
    "description",
    "category",
    "address",
    "phone",
    "email",
    "hours",
    "rating",
    "review_count",
    "is_active",
    "is_open",
    "min_order_amount",
    "delivery_fee",
    "delivery_time",
    "supports_delivery",
    "supports_pickup",
)


def _minutes(clock):
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


@marketplace.aggregate
class Merchant:
    name = String(required=True, max_length=255)
    description = Text()
    category = String(choices=MerchantCategory, default=MerchantCategory.OTHER.value)
    address = String(max_length=500)
    phone = String(max_length=50)
    email = String(max_length=255)
    hours = List(content_type=Dict)  # [{day, open, close, is_closed}]
    rating = Float(default=0.0, min_value=0.0, max_value=5.0)
    review_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    is_open = Boolean(default=True)
    min_order_amount = Float(min_value=0.0)
    delivery_fee = Float(min_value=0.0)
    delivery_time = String(max_length=50)
    supports_delivery = Boolean(default=True)
    supports_pickup = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def hours_must_use_weekdays_and_clock_times(self):
        for entry in self.hours or []:
            if entry.get("day") not in WEEKDAYS:
                raise ValidationError({"hours": [f"Unknown weekday '{entry.get('day')}'"]})
            if entry.get("is_closed"):
                continue
            try:
                _minutes(entry["open"])
                _minutes(entry["close"])
            except (KeyError, ValueError, AttributeError):
                raise ValidationError({"hours": [f"Opening hours for {entry['day']} must be HH:MM"]}) from None

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, name, category=MerchantCategory.OTHER.value, **attributes):
        now = datetime.now(UTC)
        merchant = cls(
            name=name,
            category=category,
            created_at=now,
            updated_at=now,
            **attributes,
        )
        merchant.raise_(
            MerchantAdded(
                merchant_id=str(merchant.id),
                name=name,
                category=merchant.category,
                added_at=now,
            )
        )
        return merchant

    # -------------------------------------------------------------------
    # Admin edits
    # -------------------------------------------------------------------
    def update_details(self, **changes):
        """Apply a partial patch of editable fields."""
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError({"merchant": [f"Fields cannot be edited: {', '.join(unknown)}"]})

        for field_name, value in changes.items():
            setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            MerchantUpdated(
                merchant_id=str(self.id),
                changed_fields=json.dumps(sorted(changes)),
            )
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def hours_for(self, day):
        return next((entry for entry in self.hours or [] if entry.get("day") == day), None)

    def is_open_at(self, moment):
        """Whether the weekly schedule has the merchant open at `moment`.

        A closing time at or before the opening time runs past midnight.
        Merchants without a schedule fall back to the manual `is_open` flag.
        """
        if not self.hours:
            return bool(self.is_open)

        minute_of_day = moment.hour * 60 + moment.minute
        today = WEEKDAYS[moment.weekday()]
        yesterday = WEEKDAYS[(moment.weekday() - 1) % 7]

        entry = self.hours_for(today)
        if entry and not entry.get("is_closed"):
            opens, closes = _minutes(entry["open"]), _minutes(entry["close"])
            if closes <= opens:
                if minute_of_day >= opens:
                    return True
            elif opens <= minute_of_day < closes:
                return True

        previous = self.hours_for(yesterday)
        if previous and not previous.get("is_closed"):
            opens, closes = _minutes(previous["open"]), _minutes(previous["close"])
            if closes <= opens and minute_of_day < closes:
                return True

        return False
