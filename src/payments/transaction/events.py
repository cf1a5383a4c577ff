"""Domain events for the Transaction and RefundRequest aggregates.

The ``TransactionSucceeded``, ``TransactionFailed`` and ``RefundProcessed``
shapes are mirrored in ``shared.events.payments`` for consumption by the
Ordering domain.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from payments.domain import payments


@payments.event(part_of="Transaction")
class TransactionRecorded:
    """A payment order was created at a gateway."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider = String(required=True)
    gateway_order_id = String(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    is_mock = Boolean(default=False)
    recorded_at = DateTime(required=True)


@payments.event(part_of="Transaction")
class TransactionSucceeded:
    """The gateway confirmed the payment."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider = String(required=True)
    gateway_order_id = String(required=True)
    gateway_transaction_id = String()
    amount = Float(required=True)
    currency = String(required=True)
    is_mock = Boolean(default=False)
    succeeded_at = DateTime(required=True)


@payments.event(part_of="Transaction")
class TransactionFailed:
    """The gateway reported the payment as failed."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider = String(required=True)
    gateway_order_id = String(required=True)
    reason = String(required=True)
    is_mock = Boolean(default=False)
    failed_at = DateTime(required=True)


@payments.event(part_of="RefundRequest")
class RefundProcessed:
    """A refund was accepted by the gateway."""

    __version__ = 1

    refund_request_id = Identifier(required=True)
    refund_id = String(required=True)
    transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider = String(required=True)
    amount = Float(required=True)
    reason = String(required=True)
    is_mock = Boolean(default=False)
    processed_at = DateTime(required=True)
