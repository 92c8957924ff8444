"""Option selection for an item before it goes into the cart.

`OptionSelection` starts from each group's default choice and applies toggles
the way a shopper taps through an item's option groups:

* a `single` group always holds the last tapped choice;
* a `multiple` group toggles a choice on and off, and when it is already at
  `max_select` the oldest selection is evicted to make room.

Unavailable or unknown choices are ignored. `resolve()` turns the selection
into the `SelectedOption` dicts a cart line stores.

`resolve_options` checks a ready-made list of selections, as sent with a cart
command, against the item's option groups.
"""

from protean.exceptions import ValidationError

from marketplace.cart.cart import SelectedOption
from marketplace.shared.money import line_total


def _selected(group, choice):
    return SelectedOption(
        group_id=group.group_id,
        group_name=group.name,
        choice_id=choice.choice_id,
        choice_name=choice.name,
        price_delta=choice.price_delta or 0.0,
    ).to_dict()


def _rejected(message):
    return ValidationError({"selected_options": [message]})


def resolve_options(item, selected_options):
    """Selections re-read from `item`'s option groups, in group order.

    Names and price deltas come from the catalogue, never from the caller. A
    `multiple` group past its cap keeps its most recent choices. Unknown or
    unavailable choices and a second choice in a `single` group raise
    ValidationError.
    """
    chosen = {}
    for option in selected_options or []:
        if isinstance(option, SelectedOption):
            option = option.to_dict()
        group = item.option_group(option.get("group_id"))
        choice = group.find_choice(option.get("choice_id")) if group else None
        if choice is None:
            raise _rejected(f"Unknown option '{option.get('choice_id')}' for {item.name}")
        if not choice.is_available:
            raise _rejected(f"{choice.name} is currently unavailable")

        picks = chosen.setdefault(group.group_id, [])
        if choice.choice_id in picks:
            continue
        if not group.is_multiple and picks:
            raise _rejected(f"Choose only one option for {group.name}")
        if group.cap and len(picks) >= group.cap:
            picks.pop(0)
        picks.append(choice.choice_id)

    return [
        _selected(group, group.find_choice(choice_id))
        for group in item.groups()
        for choice_id in chosen.get(group.group_id, [])
    ]


class OptionSelection:
    def __init__(self, item):
        self.item = item
        self._groups = item.groups()
        self._chosen = {}
        for group in self._groups:
            default = group.default_choice()
            self._chosen[group.group_id] = [default.choice_id] if default and default.is_available else []

    def _group(self, group_id):
        return next((g for g in self._groups if g.group_id == group_id), None)

    def chosen(self, group_id):
        return list(self._chosen.get(group_id, []))

    def toggle(self, group_id, choice_id):
        """Apply one tap on `choice_id`. Returns False when the tap was ignored."""
        group = self._group(group_id)
        if group is None:
            return False
        choice = group.find_choice(choice_id)
        if choice is None or not choice.is_available:
            return False

        current = self._chosen[group_id]
        if not group.is_multiple:
            self._chosen[group_id] = [choice_id]
        elif choice_id in current:
            current.remove(choice_id)
        else:
            if group.cap and len(current) >= group.cap:
                current.pop(0)
            current.append(choice_id)
        return True

    def missing_required(self):
        """Names of required groups whose selection is still incomplete."""
        missing = []
        for group in self._groups:
            if not group.required:
                continue
            needed = max(group.min_select or 0, 1)
            if len(self._chosen[group.group_id]) < needed:
                missing.append(group.name)
        return missing

    @property
    def is_complete(self):
        return not self.missing_required()

    def resolve(self):
        """Selected options in group order, as stored on a cart line."""
        return [
            _selected(group, group.find_choice(choice_id))
            for group in self._groups
            for choice_id in self._chosen[group.group_id]
        ]

    def price(self, quantity=1):
        """Live price preview for `quantity` units with the current selection."""
        return line_total(self.item.price, self.resolve(), quantity)

    def validated(self):
        """`resolve()`, refusing an incomplete selection."""
        missing = self.missing_required()
        if missing:
            raise ValidationError({"selected_options": [f"Choose an option for: {', '.join(missing)}"]})
        return self.resolve()
