"""Read-side queries over merchants and items.

All functions run inside a domain context and return aggregates; the store
turns them into plain dicts.
"""

import locale

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.catalog.item import MerchantItem
from marketplace.catalog.merchant import Merchant
from marketplace.shared.repository import scan
from marketplace.utils.logging import logger


def _matches_search(record, query):
    needle = query.casefold()
    haystack = f"{record.name or ''} {record.description or ''}".casefold()
    return needle in haystack


def use_system_collation():
    """Collate names by the environment's locale. Returns False when it is unusable.

    Until this runs the process sorts in the C locale (code-point order).
    """
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("System locale unavailable, names sort by code point", error=str(exc))
        return False
    return True


def name_key(record):
    """Locale-aware sort key for a record's name."""
    return locale.strxfrm((record.name or "").casefold())


def find_merchant(merchant_id):
    try:
        return current_domain.repository_for(Merchant).get(merchant_id)
    except ObjectNotFoundError:
        return None


def find_item(item_id):
    try:
        return current_domain.repository_for(MerchantItem).get(item_id)
    except ObjectNotFoundError:
        return None


def merchants(criteria=None):
    """Active merchants matching `criteria` (a MerchantFilter), in storage order."""
    results = scan(current_domain.repository_for(Merchant), is_active=True)
    if criteria is None:
        return results

    if criteria.category:
        results = [m for m in results if m.category == criteria.category]
    if criteria.is_open is not None:
        results = [m for m in results if bool(m.is_open) == criteria.is_open]
    if criteria.min_rating is not None:
        results = [m for m in results if (m.rating or 0.0) >= criteria.min_rating]
    if criteria.supports_delivery is not None:
        results = [m for m in results if bool(m.supports_delivery) == criteria.supports_delivery]
    if criteria.supports_pickup is not None:
        results = [m for m in results if bool(m.supports_pickup) == criteria.supports_pickup]
    if criteria.search_query:
        results = [m for m in results if _matches_search(m, criteria.search_query)]
    return results


_SORT_KEYS = {
    "name": name_key,
    "price": lambda item: item.price or 0.0,
    "units_sold": lambda item: item.units_sold or 0,
    "sort_order": lambda item: item.sort_order or 0,
}


def items(criteria=None):
    """Items matching `criteria` (an ItemFilter), sorted when `sort_by` is set."""
    repo = current_domain.repository_for(MerchantItem)
    if criteria is None:
        return scan(repo)

    results = scan(repo, merchant_id=criteria.merchant_id) if criteria.merchant_id else scan(repo)

    if criteria.category:
        results = [i for i in results if i.category == criteria.category]
    if criteria.is_available is not None:
        results = [i for i in results if bool(i.is_available) == criteria.is_available]
    if criteria.is_featured is not None:
        results = [i for i in results if bool(i.is_featured) == criteria.is_featured]
    if criteria.search_query:
        results = [i for i in results if _matches_search(i, criteria.search_query)]

    if criteria.sort_by:
        results = sorted(
            results,
            key=_SORT_KEYS[criteria.sort_by],
            reverse=criteria.sort_order == "desc",
        )
    return results


def merchant_items(merchant_id):
    """A merchant's menu ordered by `sort_order`."""
    results = scan(current_domain.repository_for(MerchantItem), merchant_id=merchant_id)
    return sorted(results, key=lambda item: item.sort_order or 0)


def merchant_categories(merchant_id):
    """Distinct item categories of a merchant, in menu order of first appearance."""
    categories = []
    for item in merchant_items(merchant_id):
        if item.category and item.category not in categories:
            categories.append(item.category)
    return categories
