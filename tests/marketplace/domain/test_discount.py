"""Tests for the Discount aggregate."""

from datetime import UTC, datetime, timedelta

import pytest
from marketplace.discount.discount import Discount, normalize_code
from marketplace.discount.events import DiscountRedeemed
from protean.exceptions import ValidationError

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def _welcome(**overrides):
    defaults = {
        "name": "First Order Special",
        "value": 20.0,
        "discount_type": "percentage",
        "code": "WELCOME20",
        "max_discount": 15.0,
    }
    defaults.update(overrides)
    return Discount.create(**defaults)


class TestCreate:
    def test_defaults(self):
        discount = _welcome()
        assert discount.scope == "order"
        assert discount.usage_count == 0
        assert discount.is_active is True

    def test_percentage_above_hundred_is_rejected(self):
        with pytest.raises(ValidationError):
            _welcome(value=120.0)

    def test_end_before_start_is_rejected(self):
        with pytest.raises(ValidationError):
            _welcome(start_date=NOW, end_date=NOW - timedelta(days=1))


class TestMatching:
    def test_codes_match_case_insensitively(self):
        discount = _welcome()
        assert discount.matches("welcome20")
        assert discount.matches(" Welcome20 ")
        assert not discount.matches("WELCOME10")

    def test_discount_without_code_never_matches(self):
        assert not _welcome(code=None).matches("")

    def test_normalize_code(self):
        assert normalize_code(" free del ") == "FREE DEL"
        assert normalize_code("") is None


class TestAmount:
    def test_percentage_is_capped(self):
        assert _welcome().amount_for(100.0) == 15.0

    def test_percentage_under_cap(self):
        assert _welcome().amount_for(50.0) == 10.0

    def test_fixed_amount(self):
        discount = _welcome(discount_type="fixed", value=5.0, max_discount=None, code="FREEDEL")
        assert discount.amount_for(30.0) == 5.0


class TestRejections:
    def test_inactive(self):
        assert _welcome(is_active=False).rejection_reason(100.0, NOW) == "This discount is no longer active"

    def test_not_started(self):
        discount = _welcome(start_date=NOW + timedelta(days=1))
        assert discount.rejection_reason(100.0, NOW) == "This discount is not yet active"

    def test_expired(self):
        discount = _welcome(end_date=NOW - timedelta(days=1))
        assert discount.rejection_reason(100.0, NOW) == "This discount has expired"

    def test_usage_limit_reached(self):
        discount = _welcome(usage_limit=2, usage_count=2)
        assert discount.rejection_reason(100.0, NOW) == "This discount has reached its usage limit"

    def test_under_minimum(self):
        discount = _welcome(min_order_amount=25.0)
        assert discount.rejection_reason(20.0, NOW) == "Minimum order of $25.00 required"

    def test_checks_run_in_order(self):
        discount = _welcome(is_active=False, end_date=NOW - timedelta(days=1), min_order_amount=50.0)
        assert discount.rejection_reason(10.0, NOW) == "This discount is no longer active"

    def test_live_discount(self):
        discount = _welcome(start_date=NOW - timedelta(days=1), end_date=NOW + timedelta(days=1))
        assert discount.rejection_reason(100.0, NOW) is None
        assert discount.is_live(NOW)


class TestRedeem:
    def test_counts_one_use(self):
        discount = _welcome(usage_count=45)
        assert discount.redeem(100.0, NOW) == 15.0
        assert discount.usage_count == 46

    def test_raises_event(self):
        discount = _welcome()
        discount.redeem(100.0, NOW)
        event = next(e for e in discount._events if isinstance(e, DiscountRedeemed))
        assert event.amount == 15.0
        assert event.usage_count == 1

    def test_rejected_redeem_counts_nothing(self):
        discount = _welcome(min_order_amount=25.0)
        with pytest.raises(ValidationError):
            discount.redeem(10.0, NOW)
        assert discount.usage_count == 0
