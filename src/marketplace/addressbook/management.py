"""Address book management — commands, handler and lookups.

A user's book is created with their first address. Commands naming an
unknown user or address are ignored.
"""

import json

from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.addressbook.address_book import AddressBook
from marketplace.domain import marketplace
from marketplace.shared.repository import scan


@marketplace.command(part_of="AddressBook")
class AddAddress:
    """Save a new delivery address for a user."""

    user_id = Identifier(required=True)
    label = String(max_length=50)
    street = String(required=True, max_length=255)
    apartment = String(max_length=100)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    instructions = Text()
    is_default = Boolean(default=False)


@marketplace.command(part_of="AddressBook")
class UpdateAddress:
    user_id = Identifier(required=True)
    address_id = Identifier(required=True)
    changes = Text(required=True)  # JSON object of field -> value


@marketplace.command(part_of="AddressBook")
class DeleteAddress:
    user_id = Identifier(required=True)
    address_id = Identifier(required=True)


@marketplace.command(part_of="AddressBook")
class SetDefaultAddress:
    """Designate one of the user's addresses as their default."""

    user_id = Identifier(required=True)
    address_id = Identifier(required=True)


def book_for(user_id):
    """The user's address book, or None when they have saved nothing yet."""
    books = scan(current_domain.repository_for(AddressBook), user_id=str(user_id))
    return books[0] if books else None


@marketplace.command_handler(part_of=AddressBook)
class ManageAddressesHandler:
    @handle(AddAddress)
    def add_address(self, command):
        book = book_for(command.user_id) or AddressBook.create(user_id=command.user_id)
        address = book.add_address(
            street=command.street,
            city=command.city,
            label=command.label,
            apartment=command.apartment,
            state=command.state,
            zip_code=command.zip_code,
            instructions=command.instructions,
            is_default=command.is_default,
        )
        current_domain.repository_for(AddressBook).add(book)
        return str(address.id)

    @handle(UpdateAddress)
    def update_address(self, command):
        book = book_for(command.user_id)
        if book is None:
            return None

        address = book.update_address(command.address_id, **json.loads(command.changes))
        if address is None:
            return None
        current_domain.repository_for(AddressBook).add(book)
        return str(address.id)

    @handle(DeleteAddress)
    def delete_address(self, command):
        book = book_for(command.user_id)
        if book is None or not book.remove_address(command.address_id):
            return None

        current_domain.repository_for(AddressBook).add(book)
        return str(command.address_id)

    @handle(SetDefaultAddress)
    def set_default_address(self, command):
        book = book_for(command.user_id)
        if book is None or not book.set_default(command.address_id):
            return None

        current_domain.repository_for(AddressBook).add(book)
        return str(command.address_id)
