"""Transaction recording and settlement — commands and handler.

These commands only persist what a gateway already answered; the network
calls happen in ``PaymentService`` before a command is processed.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from payments.domain import payments
from payments.transaction.transaction import Transaction

logger = structlog.get_logger(__name__)

DUPLICATE = "duplicate"


@payments.command(part_of="Transaction")
class RecordTransaction:
    """Persist a payment order the gateway has just created."""

    order_id = Identifier(required=True)
    provider = String(required=True, max_length=20)
    gateway_order_id = String(required=True, max_length=255)
    amount = Float(required=True)
    currency = String(max_length=3, default="INR")
    checksum = String(max_length=255)
    is_mock = Boolean(default=False)
    raw_response = Text()  # JSON


@payments.command(part_of="Transaction")
class SettleTransaction:
    """Apply a terminal gateway outcome (webhook or status poll)."""

    provider = String(required=True, max_length=20)
    gateway_order_id = String(required=True, max_length=255)
    succeeded = Boolean(required=True)
    gateway_transaction_id = String(max_length=255)
    failure_reason = String(max_length=500)
    raw_response = Text()  # JSON


def find_transaction(provider: str, gateway_order_id: str) -> Transaction | None:
    results = (
        current_domain.repository_for(Transaction)
        ._dao.query.filter(provider=provider, gateway_order_id=gateway_order_id)
        .all()
        .items
    )
    return results[0] if results else None


@payments.command_handler(part_of=Transaction)
class TransactionHandler:
    @handle(RecordTransaction)
    def record_transaction(self, command):
        transaction = Transaction.record(
            order_id=command.order_id,
            provider=command.provider,
            gateway_order_id=command.gateway_order_id,
            amount=command.amount,
            currency=command.currency or "INR",
            checksum=command.checksum,
            is_mock=command.is_mock,
            raw=json.loads(command.raw_response) if command.raw_response else None,
        )
        current_domain.repository_for(Transaction).add(transaction)
        return str(transaction.id)

    @handle(SettleTransaction)
    def settle_transaction(self, command):
        """Returns the resulting status, or ``"duplicate"`` for an already settled transaction."""
        transaction = find_transaction(command.provider, command.gateway_order_id)
        if transaction is None:
            raise ObjectNotFoundError(
                f"No {command.provider} transaction for gateway order {command.gateway_order_id}"
            )

        if transaction.is_terminal:
            logger.info(
                "Ignoring duplicate settlement",
                transaction_id=str(transaction.id),
                gateway_order_id=command.gateway_order_id,
                status=transaction.status,
            )
            return DUPLICATE

        raw = json.loads(command.raw_response) if command.raw_response else None
        if command.succeeded:
            transaction.succeed(gateway_transaction_id=command.gateway_transaction_id, raw=raw)
        else:
            transaction.fail(
                reason=command.failure_reason or "Payment failed",
                gateway_transaction_id=command.gateway_transaction_id,
                raw=raw,
            )
        current_domain.repository_for(Transaction).add(transaction)
        return transaction.status
