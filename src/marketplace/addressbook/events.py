"""Domain events for the AddressBook aggregate."""

from protean.fields import Boolean, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="AddressBook")
class AddressAdded:
    """A delivery address was saved for a user."""

    __version__ = 1

    user_id = Identifier(required=True)
    address_id = Identifier(required=True)
    label = String()
    city = String(required=True)
    is_default = Boolean(required=True)


@marketplace.event(part_of="AddressBook")
class AddressUpdated:
    """Fields of a saved address were changed."""

    __version__ = 1

    user_id = Identifier(required=True)
    address_id = Identifier(required=True)
    changed_fields = Text()  # JSON array of field names


@marketplace.event(part_of="AddressBook")
class AddressRemoved:
    """A saved address was deleted."""

    __version__ = 1

    user_id = Identifier(required=True)
    address_id = Identifier(required=True)


@marketplace.event(part_of="AddressBook")
class DefaultAddressChanged:
    """A different address became the user's default."""

    __version__ = 1

    user_id = Identifier(required=True)
    address_id = Identifier(required=True)
    previous_default_address_id = Identifier()
