"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
``OrderStatusChanged`` drives customer notifications; every status change,
whether requested by an operator, a payment outcome or the auto-cancellation
sweep, raises exactly one.
"""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A customer placed a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    total = Float(required=True)
    currency = String(default="INR")
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along one edge of the status state machine."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    previous_status = String(required=True)
    new_status = String(required=True)
    note = String()
    tracking_number = String()
    courier_service = String()
    reason = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentStatusUpdated:
    """The payment status of the order changed (paid, failed or refunded)."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_status = String(required=True)
    payment_gateway = String()
    payment_id = String()
    amount = Float()
    updated_at = DateTime(required=True)
