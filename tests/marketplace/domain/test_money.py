"""Tests for the shared money helpers."""

from marketplace.shared.money import format_amount, line_total, options_delta, to_cents


def test_to_cents_rounds_to_two_places():
    assert to_cents(10.005 + 0.001) == 10.01
    assert to_cents(None) == 0.0


def test_options_delta_sums_price_deltas():
    options = [{"price_delta": 6.0}, {"price_delta": 1.5}, {"price_delta": -0.5}]
    assert options_delta(options) == 7.0
    assert options_delta(None) == 0.0


def test_line_total_is_base_plus_options_times_quantity():
    assert line_total(12.99, [{"price_delta": 6.0}, {"price_delta": 1.5}], 2) == 40.98


def test_format_amount():
    assert format_amount(15) == "$15.00"
