"""Inbound cross-domain event handler — Ordering reacts to Payments events.

Listens for TransactionSucceeded, TransactionFailed and RefundProcessed from
the Payments domain and records the outcome on the order.

Cross-domain events are imported from shared.events.payments and registered
as external events via ordering.register_external_event().
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.payments import RefundProcessed, TransactionFailed, TransactionSucceeded

from ordering.domain import ordering
from ordering.order.locking import order_locks
from ordering.order.order import Order, PaymentStatus
from ordering.order.payment import (
    RecordPaymentFailure,
    RecordPaymentSuccess,
    RecordRefund,
    record_payment,
)

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
ordering.register_external_event(TransactionSucceeded, "Payments.TransactionSucceeded.v1")
ordering.register_external_event(TransactionFailed, "Payments.TransactionFailed.v1")
ordering.register_external_event(RefundProcessed, "Payments.RefundProcessed.v1")


def _payment_status(order_id) -> str:
    return current_domain.repository_for(Order).get(order_id).payment_status


@ordering.event_handler(part_of=Order, stream_category="payments::transaction")
class PaymentOrderEventHandler:
    """Reacts to transaction settlement in the Payments domain."""

    @handle(TransactionSucceeded)
    def on_transaction_succeeded(self, event: TransactionSucceeded) -> None:
        with order_locks.hold(event.order_id):
            self._record_success(event)

    @handle(TransactionFailed)
    def on_transaction_failed(self, event: TransactionFailed) -> None:
        with order_locks.hold(event.order_id):
            self._record_failure(event)

    def _record_success(self, event: TransactionSucceeded) -> None:
        if _payment_status(event.order_id) != PaymentStatus.PENDING.value:
            logger.info("Payment already recorded on order", order_id=str(event.order_id))
            return

        logger.info(
            "Recording payment success on order",
            order_id=str(event.order_id),
            provider=event.provider,
            gateway_transaction_id=event.gateway_transaction_id,
        )
        record_payment(
            RecordPaymentSuccess(
                order_id=event.order_id,
                provider=event.provider,
                payment_id=event.gateway_transaction_id or event.gateway_order_id,
                amount=event.amount,
            )
        )

    def _record_failure(self, event: TransactionFailed) -> None:
        if _payment_status(event.order_id) != PaymentStatus.PENDING.value:
            logger.info("Payment already recorded on order", order_id=str(event.order_id))
            return

        logger.info(
            "Recording payment failure on order",
            order_id=str(event.order_id),
            provider=event.provider,
            reason=event.reason,
        )
        record_payment(
            RecordPaymentFailure(
                order_id=event.order_id,
                provider=event.provider,
                reason=event.reason,
            )
        )


@ordering.event_handler(part_of=Order, stream_category="payments::refund_request")
class RefundOrderEventHandler:
    """Reacts to refunds issued in the Payments domain."""

    @handle(RefundProcessed)
    def on_refund_processed(self, event: RefundProcessed) -> None:
        with order_locks.hold(event.order_id):
            if _payment_status(event.order_id) != PaymentStatus.PAID.value:
                logger.info(
                    "Order payment is not in paid state; refund not recorded",
                    order_id=str(event.order_id),
                    refund_id=event.refund_id,
                )
                return

            logger.info("Recording refund on order", order_id=str(event.order_id), refund_id=event.refund_id)
            record_payment(RecordRefund(order_id=event.order_id, amount=event.amount))


class PaymentEventRelay:
    """Delivers payment events from the Payments domain to the handlers above.

    The API app settles payments and reconciles orders in one process, but
    each domain writes events to its own event store, so a settled payment is
    handed over directly instead of through a stream subscription. The
    handlers skip payments already recorded, so a relayed event that also
    arrives through a shared event store is applied once.
    """

    def __init__(self, domain=ordering) -> None:
        self.domain = domain

    def __call__(self, event) -> None:
        with self.domain.domain_context():
            if isinstance(event, TransactionSucceeded):
                PaymentOrderEventHandler().on_transaction_succeeded(event)
            elif isinstance(event, TransactionFailed):
                PaymentOrderEventHandler().on_transaction_failed(event)
            elif isinstance(event, RefundProcessed):
                RefundOrderEventHandler().on_refund_processed(event)
            else:
                raise TypeError(f"Not a payment event: {type(event).__name__}")
