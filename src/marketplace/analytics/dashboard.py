"""Admin analytics, computed on demand from orders and the catalogue.

Revenue figures cover paid orders created inside the trailing window. Top
items rank by the items' lifetime `units_sold` counters, so they are not
limited to the window.
"""

from collections import defaultdict
from datetime import timedelta

from protean.utils.globals import current_domain

from marketplace.catalog.item import MerchantItem
from marketplace.catalog.merchant import Merchant
from marketplace.order.order import OrderStatus, PaymentStatus
from marketplace.order.queries import orders_between
from marketplace.results import DailyStat, DashboardStats, ItemStat, MerchantAnalytics, MerchantStat
from marketplace.shared.clock import as_utc, utcnow
from marketplace.shared.money import to_cents
from marketplace.shared.repository import scan
from marketplace.shared.settings import setting


def _window(days):
    days = setting("ANALYTICS_WINDOW_DAYS") if days is None else days
    return orders_between(utcnow() - timedelta(days=days))


def _paid(orders):
    return [o for o in orders if o.payment_status == PaymentStatus.PAID.value]


def _daily(orders):
    by_day = defaultdict(lambda: [0, 0.0])
    for order in orders:
        day = as_utc(order.created_at).date().isoformat()
        by_day[day][0] += 1
        by_day[day][1] += order.total
    return [
        DailyStat(date=day, orders=count, revenue=to_cents(revenue)) for day, (count, revenue) in sorted(by_day.items())
    ]


def top_selling_items(merchant_id=None, limit=None):
    """Items ranked by lifetime units sold, best first."""
    limit = setting("TOP_RESULTS_LIMIT") if limit is None else limit
    repo = current_domain.repository_for(MerchantItem)
    items = scan(repo, merchant_id=str(merchant_id)) if merchant_id else scan(repo)
    return sorted(items, key=lambda item: item.units_sold or 0, reverse=True)[:limit]


def item_stats(items):
    names = {str(m.id): m.name for m in scan(current_domain.repository_for(Merchant))}
    return [
        ItemStat(
            item_id=str(item.id),
            merchant_id=str(item.merchant_id),
            name=item.name,
            merchant_name=names.get(str(item.merchant_id), "Unknown"),
            units_sold=item.units_sold or 0,
            revenue=to_cents(item.revenue),
        )
        for item in items
    ]


def dashboard_stats(days=None):
    orders = _paid(_window(days))

    gmv = sum(o.total for o in orders)
    fees = sum(o.pricing.delivery_fee if o.pricing else 0.0 for o in orders)

    per_merchant = {}
    for order in orders:
        stat = per_merchant.setdefault(
            str(order.merchant_id),
            MerchantStat(merchant_id=str(order.merchant_id), name=order.merchant_name or "Unknown"),
        )
        stat.revenue = to_cents(stat.revenue + order.total)
        stat.orders += 1
    top_merchants = sorted(per_merchant.values(), key=lambda s: s.revenue, reverse=True)

    limit = setting("TOP_RESULTS_LIMIT")
    active_merchants = scan(current_domain.repository_for(Merchant), is_active=True)
    return DashboardStats(
        gmv=to_cents(gmv),
        fees=to_cents(fees),
        net_sales=to_cents(gmv - fees),
        order_count=len(orders),
        active_merchants=len(active_merchants),
        top_merchants=top_merchants[:limit],
        top_items=item_stats(top_selling_items(limit=limit)),
        daily=_daily(orders),
    )


def merchant_analytics(merchant_id, days=None):
    """Revenue and order mix of one merchant inside the trailing window."""
    orders = [o for o in _window(days) if str(o.merchant_id) == str(merchant_id)]
    paid = _paid(orders)
    revenue = sum(o.total for o in paid)

    by_status = {status.value: 0 for status in OrderStatus}
    for order in orders:
        by_status[order.status] += 1

    return MerchantAnalytics(
        merchant_id=str(merchant_id),
        revenue=to_cents(revenue),
        order_count=len(paid),
        average_order_value=to_cents(revenue / len(paid)) if paid else 0.0,
        orders_by_status=by_status,
        top_items=item_stats(top_selling_items(merchant_id=merchant_id)),
        daily=_daily(paid),
    )
