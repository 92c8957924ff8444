"""Money helpers shared by carts, orders and discounts.

Amounts are plain floats rounded to cents at every point where a derived
figure is stored, so stored totals always equal the sum of their stored parts.
"""


def to_cents(amount):
    """Round an amount to two decimal places."""
    return round(float(amount or 0.0), 2)


def options_delta(selected_options):
    """Sum the price adjustments of a list of selected-option dicts."""
    return sum(float(option.get("price_delta") or 0.0) for option in selected_options or [])


def line_total(base_price, selected_options, quantity):
    """(base price + option deltas) x quantity, rounded to cents."""
    return to_cents((float(base_price) + options_delta(selected_options)) * quantity)


def format_amount(amount):
    return f"${amount:.2f}"
