"""Order fulfilment — status commands and handler.

Only the next status of the order's flow is accepted. Anything else is
rejected with a failed ActionResult; unknown orders are ignored.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderStatus
from marketplace.results import ActionResult


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@marketplace.command(part_of="Order")
class AdvanceOrder:
    """Move an order to the next step of its flow."""

    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class FulfilOrderHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            return None

        if command.status not in {status.value for status in OrderStatus}:
            return ActionResult(success=False, message=f"Unknown order status '{command.status}'")

        try:
            order.move_to(command.status)
        except ValidationError as exc:
            return ActionResult.rejected(exc)

        repo.add(order)
        return ActionResult(success=True, message=f"Order is now {order.status}", id=str(order.id))

    @handle(AdvanceOrder)
    def advance_order(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            return None

        try:
            order.advance()
        except ValidationError as exc:
            return ActionResult.rejected(exc)

        repo.add(order)
        return ActionResult(success=True, message=f"Order is now {order.status}", id=str(order.id))
