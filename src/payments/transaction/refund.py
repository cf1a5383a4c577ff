"""RefundRequest aggregate — a refund issued against a settled Transaction."""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Float, Identifier, String

from payments.domain import payments
from payments.transaction.events import RefundProcessed


class RefundStatus(Enum):
    PROCESSED = "processed"
    FAILED = "failed"


@payments.aggregate
class RefundRequest:
    refund_id = String(max_length=255)
    original_transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider = String(max_length=20, required=True)
    amount = Float(required=True, min_value=0.0)
    reason = String(max_length=500, default="Customer requested refund")
    status = String(choices=RefundStatus, required=True)
    is_mock = Boolean(default=False)
    # accepted by the gateway although it took the refunded total past the transaction amount
    exceeds_balance = Boolean(default=False)
    failure_reason = String(max_length=500)
    created_at = DateTime()

    @classmethod
    def processed(
        cls,
        original_transaction_id: str,
        order_id: str,
        provider: str,
        refund_id: str,
        amount: float,
        reason: str,
        is_mock: bool = False,
        exceeds_balance: bool = False,
    ) -> "RefundRequest":
        now = datetime.now(UTC)
        refund = cls(
            refund_id=refund_id,
            original_transaction_id=original_transaction_id,
            order_id=order_id,
            provider=provider,
            amount=amount,
            reason=reason,
            status=RefundStatus.PROCESSED.value,
            is_mock=is_mock,
            exceeds_balance=exceeds_balance,
            created_at=now,
        )
        refund.raise_(
            RefundProcessed(
                refund_request_id=str(refund.id),
                refund_id=refund_id,
                transaction_id=str(original_transaction_id),
                order_id=str(order_id),
                provider=provider,
                amount=amount,
                reason=reason,
                is_mock=is_mock,
                processed_at=now,
            )
        )
        return refund

    @classmethod
    def failed(
        cls,
        original_transaction_id: str,
        order_id: str,
        provider: str,
        amount: float,
        reason: str,
        failure_reason: str,
        is_mock: bool = False,
    ) -> "RefundRequest":
        return cls(
            original_transaction_id=original_transaction_id,
            order_id=order_id,
            provider=provider,
            amount=amount,
            reason=reason,
            status=RefundStatus.FAILED.value,
            failure_reason=failure_reason,
            is_mock=is_mock,
            created_at=datetime.now(UTC),
        )
