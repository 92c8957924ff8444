"""Merchant item management — single and bulk commands and handler.

Bulk edits apply one partial patch (or deletion) to a set of items in a single
unit of work; ids that do not resolve are skipped.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Dict, Float, Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from marketplace.catalog.item import MerchantItem
from marketplace.catalog.merchant import Merchant
from marketplace.domain import marketplace
from marketplace.utils.logging import logger


@marketplace.command(part_of="MerchantItem")
class AddItem:
    """Add an item to a merchant's menu."""

    merchant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    description = Text()
    category = String(max_length=100)
    sku = String(max_length=100)
    stock_quantity = Integer()
    option_groups = List(content_type=Dict)
    is_available = Boolean()
    is_featured = Boolean()
    sort_order = Integer()


@marketplace.command(part_of="MerchantItem")
class UpdateItem:
    item_id = Identifier(required=True)
    changes = Text(required=True)  # JSON object of field -> value


@marketplace.command(part_of="MerchantItem")
class DeleteItem:
    item_id = Identifier(required=True)


@marketplace.command(part_of="MerchantItem")
class BulkUpdateItems:
    item_ids = List(content_type=String, required=True)
    changes = Text(required=True)  # JSON object of field -> value


@marketplace.command(part_of="MerchantItem")
class BulkDeleteItems:
    item_ids = List(content_type=String, required=True)


_OPTIONAL_ATTRIBUTES = (
    "description",
    "category",
    "sku",
    "stock_quantity",
    "is_available",
    "is_featured",
    "sort_order",
)


def _resolve(repo, item_ids):
    """Load the items behind `item_ids`, skipping unknown and repeated ids."""
    found = []
    seen = set()
    for item_id in item_ids or []:
        if item_id in seen:
            continue
        seen.add(item_id)
        try:
            found.append(repo.get(item_id))
        except ObjectNotFoundError:
            continue
    return found


@marketplace.command_handler(part_of=MerchantItem)
class ManageItemsHandler:
    @handle(AddItem)
    def add_item(self, command):
        try:
            current_domain.repository_for(Merchant).get(command.merchant_id)
        except ObjectNotFoundError:
            return None

        attributes = {
            name: getattr(command, name) for name in _OPTIONAL_ATTRIBUTES if getattr(command, name) is not None
        }
        item = MerchantItem.create(
            merchant_id=command.merchant_id,
            name=command.name,
            price=command.price,
            option_groups=command.option_groups,
            **attributes,
        )
        current_domain.repository_for(MerchantItem).add(item)
        return str(item.id)

    @handle(UpdateItem)
    def update_item(self, command):
        repo = current_domain.repository_for(MerchantItem)
        try:
            item = repo.get(command.item_id)
        except ObjectNotFoundError:
            return None

        item.update_details(**json.loads(command.changes))
        repo.add(item)
        return str(item.id)

    @handle(DeleteItem)
    def delete_item(self, command):
        repo = current_domain.repository_for(MerchantItem)
        try:
            item = repo.get(command.item_id)
        except ObjectNotFoundError:
            return None

        repo._dao.delete(item)
        return str(item.id)

    @handle(BulkUpdateItems)
    def bulk_update_items(self, command):
        repo = current_domain.repository_for(MerchantItem)
        changes = json.loads(command.changes)

        updated = _resolve(repo, command.item_ids)
        for item in updated:
            item.update_details(**changes)
            repo.add(item)

        logger.info(
            "Bulk updated items",
            requested=len(command.item_ids),
            updated=len(updated),
            fields=sorted(changes),
        )
        return len(updated)

    @handle(BulkDeleteItems)
    def bulk_delete_items(self, command):
        repo = current_domain.repository_for(MerchantItem)

        deleted = _resolve(repo, command.item_ids)
        for item in deleted:
            repo._dao.delete(item)

        logger.info(
            "Bulk deleted items",
            requested=len(command.item_ids),
            deleted=len(deleted),
        )
        return len(deleted)
