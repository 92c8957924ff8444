"""Merchant management — commands and handler.

Deleting a merchant removes every item on its menu in the same unit of work.
Commands that reference an unknown merchant are ignored.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Dict, Float, Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from marketplace.catalog.item import MerchantItem
from marketplace.catalog.merchant import Merchant
from marketplace.domain import marketplace
from marketplace.shared.repository import scan
from marketplace.utils.logging import logger


@marketplace.command(part_of="Merchant")
class AddMerchant:
    """Register a new merchant with its delivery configuration."""

    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=50)
    address = String(max_length=500)
    phone = String(max_length=50)
    email = String(max_length=255)
    hours = List(content_type=Dict)
    rating = Float()
    review_count = Integer()
    is_active = Boolean()
    is_open = Boolean()
    min_order_amount = Float()
    delivery_fee = Float()
    delivery_time = String(max_length=50)
    supports_delivery = Boolean()
    supports_pickup = Boolean()


@marketplace.command(part_of="Merchant")
class UpdateMerchant:
    """Apply a partial patch to a merchant."""

    merchant_id = Identifier(required=True)
    changes = Text(required=True)  # JSON object of field -> value


@marketplace.command(part_of="Merchant")
class DeleteMerchant:
    """Remove a merchant and its whole menu."""

    merchant_id = Identifier(required=True)


_OPTIONAL_ATTRIBUTES = (
    "description",
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


@marketplace.command_handler(part_of=Merchant)
class ManageMerchantHandler:
    @handle(AddMerchant)
    def add_merchant(self, command):
        attributes = {
            name: getattr(command, name) for name in _OPTIONAL_ATTRIBUTES if getattr(command, name) is not None
        }
        if command.category:
            attributes["category"] = command.category

        merchant = Merchant.register(name=command.name, **attributes)
        current_domain.repository_for(Merchant).add(merchant)
        return str(merchant.id)

    @handle(UpdateMerchant)
    def update_merchant(self, command):
        repo = current_domain.repository_for(Merchant)
        try:
            merchant = repo.get(command.merchant_id)
        except ObjectNotFoundError:
            return None

        merchant.update_details(**json.loads(command.changes))
        repo.add(merchant)
        return str(merchant.id)

    @handle(DeleteMerchant)
    def delete_merchant(self, command):
        repo = current_domain.repository_for(Merchant)
        try:
            merchant = repo.get(command.merchant_id)
        except ObjectNotFoundError:
            return None

        item_repo = current_domain.repository_for(MerchantItem)
        menu = scan(item_repo, merchant_id=str(merchant.id))
        for item in menu:
            item_repo._dao.delete(item)
        repo._dao.delete(merchant)

        logger.info(
            "Deleted merchant and its menu",
            merchant_id=str(merchant.id),
            items_removed=len(menu),
        )
        return str(merchant.id)
