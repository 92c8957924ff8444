"""Marketplace bounded context — catalogue, carts, orders, discounts and addresses.

Merchants publish items with priced option groups, shoppers fill a
single-merchant cart and check out into immutable orders that the merchant
drives through a fulfilment lifecycle. Everything lives in one domain so that
checkout can touch the cart, the order and the catalogue sales counters inside
a single unit of work.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
