"""Access to the `[custom]` section of the domain configuration."""

from protean.utils.globals import current_domain

_DEFAULTS = {
    "TAX_RATE": 0.0875,
    "ORDER_NUMBER_PREFIX": "ORD-",
    "DEFAULT_ESTIMATED_TIME": "30-45 min",
    "ANALYTICS_WINDOW_DAYS": 30,
    "TOP_RESULTS_LIMIT": 10,
}


def setting(key):
    """Return a custom setting, falling back to the built-in default."""
    custom = current_domain.config.get("custom") or {}
    return custom.get(key, _DEFAULTS[key])
