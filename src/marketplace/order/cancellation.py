"""Order cancellation and refund — commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.results import ActionResult
from marketplace.utils.logging import logger


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)  # Blank reasons are rejected by Order.cancel


@marketplace.command(part_of="Order")
class RefundOrder:
    """Refund a paid order: payment and order status both become refunded."""

    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            return None

        try:
            order.cancel(reason=command.reason)
        except ValidationError as exc:
            return ActionResult.rejected(exc)

        repo.add(order)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            reason=order.cancellation_reason,
        )
        return ActionResult(success=True, message="Order cancelled", id=str(order.id))

    @handle(RefundOrder)
    def refund_order(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            return None

        try:
            order.refund()
        except ValidationError as exc:
            return ActionResult.rejected(exc)

        repo.add(order)
        logger.info(
            "Order refunded",
            order_id=str(order.id),
            order_number=order.order_number,
            amount=order.total,
        )
        return ActionResult(success=True, message="Order refunded", id=str(order.id))
