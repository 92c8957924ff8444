"""Discount redemption — applies a code to a pending order subtotal.

Checks run in a fixed order: the code exists, the discount is active, today is
inside its date window, it is under its usage limit, and the subtotal meets
its minimum. The first failing check decides the message and nothing is
counted; a successful application counts exactly one use.
"""

from protean import handle
from protean.fields import Float, String
from protean.utils.globals import current_domain

from marketplace.discount.discount import Discount
from marketplace.discount.management import discount_by_code
from marketplace.domain import marketplace
from marketplace.results import DiscountResult
from marketplace.shared.clock import utcnow
from marketplace.shared.money import format_amount


@marketplace.command(part_of="Discount")
class ApplyDiscount:
    code = String(required=True, max_length=50)
    order_subtotal = Float(required=True, min_value=0.0)


@marketplace.command_handler(part_of=Discount)
class ApplyDiscountHandler:
    @handle(ApplyDiscount)
    def apply_discount(self, command):
        discount = discount_by_code(command.code)
        if discount is None:
            return DiscountResult(valid=False, message="Invalid discount code")

        now = utcnow()
        reason = discount.rejection_reason(command.order_subtotal, now)
        if reason:
            return DiscountResult(valid=False, message=reason)

        amount = discount.redeem(command.order_subtotal, now)
        current_domain.repository_for(Discount).add(discount)
        return DiscountResult(
            valid=True,
            discount=amount,
            message=f"Discount applied: -{format_amount(amount)}",
        )
