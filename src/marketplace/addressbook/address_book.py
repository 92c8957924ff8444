"""AddressBook aggregate — one per user, holding their saved delivery addresses.

The book is the consistency boundary for the "at most one default address"
rule: marking an address as default clears the flag on the user's other
addresses in the same change. A new address only becomes the default when
asked to, and deleting the default leaves the user without one.
"""

import json

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, HasMany, Identifier, Integer, String, Text

from marketplace.addressbook.events import (
    AddressAdded,
    AddressRemoved,
    AddressUpdated,
    DefaultAddressChanged,
)
from marketplace.domain import marketplace

EDITABLE_FIELDS = ("label", "street", "apartment", "city", "state", "zip_code", "instructions", "is_default")


@marketplace.entity(part_of="AddressBook")
class DeliveryAddress:
    label = String(max_length=50, default="Home")
    street = String(required=True, max_length=255)
    apartment = String(max_length=100)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    instructions = Text()
    is_default = Boolean(default=False)
    position = Integer(default=0)

    def snapshot(self):
        """The address as copied onto an order."""
        return {
            "address_id": str(self.id),
            "label": self.label,
            "street": self.street,
            "apartment": self.apartment,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "instructions": self.instructions,
        }


@marketplace.aggregate
class AddressBook:
    user_id = Identifier(required=True, unique=True)
    addresses = HasMany(DeliveryAddress)

    @invariant.post
    def at_most_one_default_address(self):
        defaults = [a for a in self.addresses if a.is_default]
        if len(defaults) > 1:
            raise ValidationError({"addresses": ["Only one address can be the default"]})

    @classmethod
    def create(cls, user_id):
        return cls(user_id=user_id)

    def _clear_defaults(self, keep=None):
        for address in self.addresses:
            if address.is_default and address is not keep:
                address.is_default = False

    def address(self, address_id):
        return next((a for a in self.addresses if str(a.id) == str(address_id)), None)

    def ordered(self):
        return sorted(self.addresses, key=lambda a: a.position or 0)

    def default_address(self):
        return next((a for a in self.addresses if a.is_default), None)

    def add_address(
        self,
        street,
        city,
        label="Home",
        apartment=None,
        state=None,
        zip_code=None,
        instructions=None,
        is_default=False,
    ):
        position = max((a.position or 0 for a in self.addresses), default=-1) + 1

        with atomic_change(self):
            if is_default:
                self._clear_defaults()
            address = DeliveryAddress(
                label=label or "Home",
                street=street,
                apartment=apartment,
                city=city,
                state=state,
                zip_code=zip_code,
                instructions=instructions,
                is_default=bool(is_default),
                position=position,
            )
            self.add_addresses(address)

        self.raise_(
            AddressAdded(
                user_id=str(self.user_id),
                address_id=str(address.id),
                label=address.label,
                city=city,
                is_default=address.is_default,
            )
        )
        return address

    def update_address(self, address_id, **changes):
        address = self.address(address_id)
        if address is None:
            return None

        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError({"address": [f"Fields cannot be edited: {', '.join(unknown)}"]})

        with atomic_change(self):
            if changes.get("is_default"):
                self._clear_defaults(keep=address)
            for field_name, value in changes.items():
                setattr(address, field_name, value)

        self.raise_(
            AddressUpdated(
                user_id=str(self.user_id),
                address_id=str(address.id),
                changed_fields=json.dumps(sorted(changes)),
            )
        )
        return address

    def remove_address(self, address_id):
        address = self.address(address_id)
        if address is None:
            return False

        self.remove_addresses(address)
        self.raise_(AddressRemoved(user_id=str(self.user_id), address_id=str(address_id)))
        return True

    def set_default(self, address_id):
        address = self.address(address_id)
        if address is None:
            return False

        previous = self.default_address()
        with atomic_change(self):
            self._clear_defaults(keep=address)
            address.is_default = True

        self.raise_(
            DefaultAddressChanged(
                user_id=str(self.user_id),
                address_id=str(address.id),
                previous_default_address_id=str(previous.id) if previous else None,
            )
        )
        return True
