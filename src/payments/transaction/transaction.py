"""Transaction aggregate — one payment attempt at one gateway.

A Transaction is recorded when a payment order is created at a provider and
is settled exactly once, from a webhook or a status poll:

    CREATED → SUCCESS
    CREATED → FAILED

Terminal transactions are immutable. The webhook path checks ``is_terminal``
before settling, so provider retries of the same notification are reported
as duplicates instead of being applied twice.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from payments.domain import payments
from payments.transaction.events import (
    TransactionFailed,
    TransactionRecorded,
    TransactionSucceeded,
)


class TransactionStatus(Enum):
    CREATED = "created"
    SUCCESS = "success"
    FAILED = "failed"


_TERMINAL_STATES = {TransactionStatus.SUCCESS, TransactionStatus.FAILED}


def _dump(raw: dict | None) -> str:
    return json.dumps(raw or {}, default=str)


@payments.aggregate
class Transaction:
    transaction_id = String(max_length=255)
    gateway_order_id = String(max_length=255, required=True)
    order_id = Identifier(required=True)
    provider = String(max_length=20, required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    status = String(
        choices=TransactionStatus,
        default=TransactionStatus.CREATED.value,
    )
    checksum = String(max_length=255)
    is_mock = Boolean(default=False)
    failure_reason = String(max_length=500)
    raw_response = Text()
    created_at = DateTime()
    settled_at = DateTime()

    @classmethod
    def record(
        cls,
        order_id: str,
        provider: str,
        gateway_order_id: str,
        amount: float,
        currency: str = "INR",
        checksum: str | None = None,
        is_mock: bool = False,
        raw: dict | None = None,
    ) -> "Transaction":
        now = datetime.now(UTC)
        transaction = cls(
            order_id=order_id,
            provider=provider,
            gateway_order_id=gateway_order_id,
            amount=amount,
            currency=currency,
            checksum=checksum,
            is_mock=is_mock,
            raw_response=_dump(raw),
            created_at=now,
        )
        transaction.raise_(
            TransactionRecorded(
                transaction_id=str(transaction.id),
                order_id=str(order_id),
                provider=provider,
                gateway_order_id=gateway_order_id,
                amount=amount,
                currency=currency,
                is_mock=is_mock,
                recorded_at=now,
            )
        )
        return transaction

    @property
    def is_terminal(self) -> bool:
        return TransactionStatus(self.status) in _TERMINAL_STATES

    def _assert_open(self) -> None:
        if self.is_terminal:
            raise ValidationError({"status": [f"Transaction is already {self.status}"]})

    def succeed(self, gateway_transaction_id: str | None = None, raw: dict | None = None) -> None:
        self._assert_open()
        now = datetime.now(UTC)
        self.status = TransactionStatus.SUCCESS.value
        self.transaction_id = gateway_transaction_id or self.transaction_id
        self.raw_response = _dump(raw)
        self.settled_at = now
        self.raise_(
            TransactionSucceeded(
                transaction_id=str(self.id),
                order_id=str(self.order_id),
                provider=self.provider,
                gateway_order_id=self.gateway_order_id,
                gateway_transaction_id=self.transaction_id,
                amount=self.amount,
                currency=self.currency,
                is_mock=self.is_mock,
                succeeded_at=now,
            )
        )

    def fail(self, reason: str, gateway_transaction_id: str | None = None, raw: dict | None = None) -> None:
        self._assert_open()
        now = datetime.now(UTC)
        self.status = TransactionStatus.FAILED.value
        self.transaction_id = gateway_transaction_id or self.transaction_id
        self.failure_reason = reason
        self.raw_response = _dump(raw)
        self.settled_at = now
        self.raise_(
            TransactionFailed(
                transaction_id=str(self.id),
                order_id=str(self.order_id),
                provider=self.provider,
                gateway_order_id=self.gateway_order_id,
                reason=reason,
                is_mock=self.is_mock,
                failed_at=now,
            )
        )

    def assert_refundable(self, amount: float, already_refunded: float) -> None:
        """Refunds need a successful transaction and may not exceed its amount in total."""
        if TransactionStatus(self.status) != TransactionStatus.SUCCESS:
            raise ValidationError({"status": ["Refunds can only be issued for successful transactions"]})
        if Decimal(str(amount)) <= 0:
            raise ValidationError({"amount": ["Refund amount must be positive"]})

        if self.exceeds_refundable(amount, already_refunded):
            requested = Decimal(str(already_refunded)) + Decimal(str(amount))
            raise ValidationError(
                {"amount": [f"Refund total ({requested}) would exceed transaction amount ({self.amount})"]}
            )

    def exceeds_refundable(self, amount: float, already_refunded: float) -> bool:
        return Decimal(str(already_refunded)) + Decimal(str(amount)) > Decimal(str(self.amount))
