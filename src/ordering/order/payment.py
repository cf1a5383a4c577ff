"""Order payment — commands and handler.

Records gateway outcomes on the order. Success confirms an order that is
still PLACED, failure cancels it, and a refund completes a RETURNED order.
Each command runs under the order's lock via ``record_payment``.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.locking import order_locks
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordPaymentSuccess:
    order_id = Identifier(required=True)
    provider = String(required=True, max_length=20)
    payment_id = String(max_length=255)
    amount = Float()


@ordering.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    provider = String(required=True, max_length=20)
    reason = String(max_length=500)


@ordering.command(part_of="Order")
class RecordRefund:
    order_id = Identifier(required=True)
    amount = Float()


@ordering.command_handler(part_of=Order)
class RecordPaymentHandler:
    @handle(RecordPaymentSuccess)
    def record_payment_success(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_success(
            provider=command.provider,
            payment_id=command.payment_id,
            amount=command.amount,
        )
        repo.add(order)
        return order.status

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_failure(
            provider=command.provider,
            reason=command.reason,
        )
        repo.add(order)
        return order.status

    @handle(RecordRefund)
    def record_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_refund(amount=command.amount)
        repo.add(order)
        return order.status


def record_payment(command) -> str:
    """Process a payment command under the order's lock. Returns the order status."""
    with order_locks.hold(command.order_id):
        return current_domain.process(command, asynchronous=False)
