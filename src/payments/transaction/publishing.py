"""Outbound payment events, in the shape of the shared contract.

``PaymentService`` hands these to its ``publish`` callable once the Unit of
Work that settled a transaction or recorded a refund has committed.
"""

from collections.abc import Callable

from shared.events.payments import RefundProcessed, TransactionFailed, TransactionSucceeded

from payments.transaction.refund import RefundRequest
from payments.transaction.transaction import Transaction, TransactionStatus

PaymentEvent = TransactionSucceeded | TransactionFailed | RefundProcessed
Publisher = Callable[[PaymentEvent], None]


def settlement_event(transaction: Transaction) -> TransactionSucceeded | TransactionFailed | None:
    """The event announcing a settled transaction, or None while it is still open."""
    status = TransactionStatus(transaction.status)
    if status is TransactionStatus.SUCCESS:
        return TransactionSucceeded(
            transaction_id=str(transaction.id),
            order_id=str(transaction.order_id),
            provider=transaction.provider,
            gateway_order_id=transaction.gateway_order_id,
            gateway_transaction_id=transaction.transaction_id,
            amount=transaction.amount,
            currency=transaction.currency,
            is_mock=transaction.is_mock,
            succeeded_at=transaction.settled_at,
        )
    if status is TransactionStatus.FAILED:
        return TransactionFailed(
            transaction_id=str(transaction.id),
            order_id=str(transaction.order_id),
            provider=transaction.provider,
            gateway_order_id=transaction.gateway_order_id,
            reason=transaction.failure_reason or "Payment failed",
            is_mock=transaction.is_mock,
            failed_at=transaction.settled_at,
        )
    return None


def refund_event(refund: RefundRequest) -> RefundProcessed:
    return RefundProcessed(
        refund_request_id=str(refund.id),
        refund_id=refund.refund_id,
        transaction_id=str(refund.original_transaction_id),
        order_id=str(refund.order_id),
        provider=refund.provider,
        amount=refund.amount,
        reason=refund.reason,
        is_mock=refund.is_mock,
        processed_at=refund.created_at,
    )
