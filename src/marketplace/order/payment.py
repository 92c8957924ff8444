"""Payment status acknowledgement — command and handler.

The marketplace does not talk to a payment gateway; it records the status it
is told, as long as the move is one a payment can make.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order, PaymentStatus
from marketplace.results import ActionResult


@marketplace.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@marketplace.command_handler(part_of=Order)
class PaymentStatusHandler:
    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            return None

        if command.status not in {status.value for status in PaymentStatus}:
            return ActionResult(success=False, message=f"Unknown payment status '{command.status}'")

        try:
            order.update_payment(command.status)
        except ValidationError as exc:
            return ActionResult.rejected(exc)

        repo.add(order)
        return ActionResult(success=True, message=f"Payment is now {order.payment_status}", id=str(order.id))
