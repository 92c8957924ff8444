"""Discount management — commands, handler and lookups."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.discount.discount import Discount, normalize_code
from marketplace.domain import marketplace
from marketplace.shared.clock import utcnow
from marketplace.shared.repository import scan


@marketplace.command(part_of="Discount")
class AddDiscount:
    name = String(required=True, max_length=255)
    value = Float(required=True, min_value=0.0)
    discount_type = String(max_length=20)
    description = Text()
    code = String(max_length=50)
    start_date = DateTime()
    end_date = DateTime()
    usage_limit = Integer()
    min_order_amount = Float()
    max_discount = Float()
    is_active = Boolean()


@marketplace.command(part_of="Discount")
class UpdateDiscount:
    discount_id = Identifier(required=True)
    changes = Text(required=True)  # JSON object of field -> value


@marketplace.command(part_of="Discount")
class DeleteDiscount:
    discount_id = Identifier(required=True)


_OPTIONAL_ATTRIBUTES = (
    "description",
    "code",
    "start_date",
    "end_date",
    "usage_limit",
    "min_order_amount",
    "max_discount",
    "is_active",
)


def find_discount(discount_id):
    try:
        return current_domain.repository_for(Discount).get(discount_id)
    except ObjectNotFoundError:
        return None


def discount_by_code(code):
    if not normalize_code(code):
        return None
    return next((d for d in scan(current_domain.repository_for(Discount)) if d.matches(code)), None)


def active_discounts(now=None):
    now = now or utcnow()
    return [d for d in scan(current_domain.repository_for(Discount)) if d.is_live(now)]


def _assert_code_is_free(code, discount_id=None):
    existing = discount_by_code(code)
    if existing is not None and str(existing.id) != str(discount_id):
        raise ValidationError({"code": [f"Discount code '{code}' is already in use"]})


@marketplace.command_handler(part_of=Discount)
class ManageDiscountHandler:
    @handle(AddDiscount)
    def add_discount(self, command):
        if command.code:
            _assert_code_is_free(command.code)

        attributes = {
            name: getattr(command, name) for name in _OPTIONAL_ATTRIBUTES if getattr(command, name) is not None
        }
        if command.discount_type:
            attributes["discount_type"] = command.discount_type

        discount = Discount.create(name=command.name, value=command.value, **attributes)
        current_domain.repository_for(Discount).add(discount)
        return str(discount.id)

    @handle(UpdateDiscount)
    def update_discount(self, command):
        repo = current_domain.repository_for(Discount)
        try:
            discount = repo.get(command.discount_id)
        except ObjectNotFoundError:
            return None

        changes = json.loads(command.changes)
        if changes.get("code"):
            _assert_code_is_free(changes["code"], discount_id=discount.id)

        discount.update_details(**changes)
        repo.add(discount)
        return str(discount.id)

    @handle(DeleteDiscount)
    def delete_discount(self, command):
        repo = current_domain.repository_for(Discount)
        try:
            discount = repo.get(command.discount_id)
        except ObjectNotFoundError:
            return None

        repo._dao.delete(discount)
        return str(discount.id)
