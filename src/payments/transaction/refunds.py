"""Refund recording — command and handler.

A refund the gateway accepted is always recorded: the money has moved. If
it takes the refunded total past the transaction amount (a refund issued
from the provider's dashboard, or by another process) it is stored with
``exceeds_balance`` set instead of being rejected.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from payments.domain import payments
from payments.transaction.refund import RefundRequest, RefundStatus
from payments.transaction.transaction import Transaction

logger = structlog.get_logger(__name__)


@payments.command(part_of="RefundRequest")
class RecordRefund:
    """Persist the gateway's answer to a refund request."""

    transaction_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(max_length=500, default="Customer requested refund")
    succeeded = Boolean(required=True)
    refund_id = String(max_length=255)
    failure_reason = String(max_length=500)
    is_mock = Boolean(default=False)


def _processed_refunds(transaction_id: str) -> list[RefundRequest]:
    return (
        current_domain.repository_for(RefundRequest)
        ._dao.query.filter(
            original_transaction_id=str(transaction_id),
            status=RefundStatus.PROCESSED.value,
        )
        .all()
        .items
    )


def refunded_total(transaction_id: str) -> float:
    """Sum of processed refunds already issued against a transaction."""
    return sum(refund.amount for refund in _processed_refunds(transaction_id))


def find_refund(transaction_id: str, refund_id: str) -> RefundRequest | None:
    for refund in _processed_refunds(transaction_id):
        if refund.refund_id == refund_id:
            return refund
    return None


@payments.command_handler(part_of=RefundRequest)
class RefundHandler:
    @handle(RecordRefund)
    def record_refund(self, command):
        transaction = current_domain.repository_for(Transaction).get(command.transaction_id)

        if command.succeeded:
            already_refunded = refunded_total(transaction.id)
            exceeds_balance = transaction.exceeds_refundable(command.amount, already_refunded)
            if exceeds_balance:
                logger.error(
                    "Gateway refund exceeds the refundable balance",
                    transaction_id=str(transaction.id),
                    refund_id=command.refund_id,
                    amount=command.amount,
                    already_refunded=already_refunded,
                    transaction_amount=transaction.amount,
                )
            refund = RefundRequest.processed(
                original_transaction_id=str(transaction.id),
                order_id=str(transaction.order_id),
                provider=transaction.provider,
                refund_id=command.refund_id,
                amount=command.amount,
                reason=command.reason,
                is_mock=command.is_mock,
                exceeds_balance=exceeds_balance,
            )
        else:
            refund = RefundRequest.failed(
                original_transaction_id=str(transaction.id),
                order_id=str(transaction.order_id),
                provider=transaction.provider,
                amount=command.amount,
                reason=command.reason,
                failure_reason=command.failure_reason or "Refund failed",
                is_mock=command.is_mock,
            )

        current_domain.repository_for(RefundRequest).add(refund)
        return str(refund.id)
