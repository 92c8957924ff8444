"""Read-side queries over orders. Results are newest first."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.order.order import Order
from marketplace.shared.clock import as_utc
from marketplace.shared.repository import scan


def find_order(order_id):
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        return None


def _newest_first(orders):
    return sorted(orders, key=lambda order: as_utc(order.created_at), reverse=True)


def orders(criteria=None):
    """Orders matching `criteria` (an OrderFilter)."""
    repo = current_domain.repository_for(Order)
    if criteria is None:
        return _newest_first(scan(repo))

    filters = {}
    if criteria.user_id:
        filters["user_id"] = criteria.user_id
    if criteria.merchant_id:
        filters["merchant_id"] = criteria.merchant_id
    if criteria.status:
        filters["status"] = criteria.status
    if criteria.payment_status:
        filters["payment_status"] = criteria.payment_status
    results = scan(repo, **filters)

    if criteria.date_from:
        date_from = as_utc(criteria.date_from)
        results = [o for o in results if as_utc(o.created_at) >= date_from]
    if criteria.date_to:
        date_to = as_utc(criteria.date_to)
        results = [o for o in results if as_utc(o.created_at) <= date_to]
    return _newest_first(results)


def user_orders(user_id):
    return _newest_first(scan(current_domain.repository_for(Order), user_id=str(user_id)))


def orders_between(start, end=None):
    """Orders created in [start, end]; `end` defaults to now."""
    start = as_utc(start)
    end = as_utc(end) if end else None
    return [
        order
        for order in scan(current_domain.repository_for(Order))
        if as_utc(order.created_at) >= start and (end is None or as_utc(order.created_at) <= end)
    ]
