"""Cross-domain event contracts for Payments domain events.

These classes define the event shape for consumption by the Ordering domain.
They are registered as external events via domain.register_external_event()
with matching __type__ strings so Protean's stream deserialization works
correctly.

The source-of-truth events are in src/payments/transaction/events.py.
"""

from protean.core.event import BaseEvent
from protean.fields import Boolean, DateTime, Float, Identifier, String


class TransactionSucceeded(BaseEvent):
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


class TransactionFailed(BaseEvent):
    """The gateway reported the payment as failed."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider = String(required=True)
    gateway_order_id = String(required=True)
    reason = String(required=True)
    is_mock = Boolean(default=False)
    failed_at = DateTime(required=True)


class RefundProcessed(BaseEvent):
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
