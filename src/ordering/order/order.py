"""Order aggregate — the core of the ordering domain.

State Machine (10 states):
    PLACED → CONFIRMED → PROCESSING → PACKED → SHIPPED →
    OUT_FOR_DELIVERY → DELIVERED → RETURNED → REFUNDED
    SHIPPED → DELIVERED / RETURNED (skipping steps)
    CANCELLED (from PLACED, CONFIRMED, PROCESSING, PACKED)

CANCELLED and REFUNDED are terminal. Every accepted transition appends a
StatusEntry to ``status_history``; entries are never removed or rewritten,
and ``status`` always equals the status of the entry with the highest
sequence. A rejected transition leaves the order untouched.
"""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
)

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged, PaymentStatusUpdated


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PLACED = "placed"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PACKED = "packed"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PLACED: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.PACKED, OrderStatus.CANCELLED},
    OrderStatus.PACKED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.RETURNED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

_PROGRESS = {
    OrderStatus.PLACED: 10,
    OrderStatus.CONFIRMED: 25,
    OrderStatus.PROCESSING: 40,
    OrderStatus.PACKED: 55,
    OrderStatus.SHIPPED: 70,
    OrderStatus.OUT_FOR_DELIVERY: 85,
    OrderStatus.DELIVERED: 100,
    OrderStatus.CANCELLED: 0,
    OrderStatus.RETURNED: 0,
    OrderStatus.REFUNDED: 0,
}

_DESCRIPTIONS = {
    OrderStatus.PLACED: "Your order has been placed successfully",
    OrderStatus.CONFIRMED: "Your order has been confirmed and is being prepared",
    OrderStatus.PROCESSING: "Your order is being processed by our team",
    OrderStatus.PACKED: "Your order has been carefully packed and is ready to ship",
    OrderStatus.SHIPPED: "Your order is on its way to you",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is out for delivery",
    OrderStatus.DELIVERED: "Your order has been delivered successfully",
    OrderStatus.CANCELLED: "Your order has been cancelled",
    OrderStatus.RETURNED: "Your order has been returned",
    OrderStatus.REFUNDED: "Your refund has been processed",
}


def _as_status(status) -> OrderStatus | None:
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def can_transition(current, target) -> bool:
    """Whether the state machine has an edge from ``current`` to ``target``."""
    current_status, target_status = _as_status(current), _as_status(target)
    if current_status is None or target_status is None:
        return False
    return target_status in _VALID_TRANSITIONS[current_status]


def allowed_transitions(status) -> list[str]:
    current = _as_status(status)
    if current is None:
        return []
    return sorted(s.value for s in _VALID_TRANSITIONS[current])


def progress_percentage(status) -> int:
    """Delivery progress shown to the customer. Unknown statuses report 0."""
    current = _as_status(status)
    return _PROGRESS.get(current, 0) if current else 0


def status_description(status) -> str:
    current = _as_status(status)
    return _DESCRIPTIONS[current] if current else str(status)


def to_minor_units(amount) -> int:
    major = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return int(major * 100)


class InvalidTransitionError(ValidationError):
    """The requested status is not reachable from the current one."""

    def __init__(self, from_status: str, to_status: str) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__({"status": [f"Invalid status transition from {from_status} to {to_status}"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line item: product, quantity and the unit price locked at placement."""

    product_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


@ordering.entity(part_of="Order")
class StatusEntry:
    """One append-only entry of the order's status history."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    timestamp = DateTime(required=True)
    note = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(max_length=30, required=True, unique=True)
    customer_id = Identifier(required=True)
    customer_email = String(max_length=254)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PLACED.value,
    )
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    payment_gateway = String(max_length=20)
    payment_id = String(max_length=255)
    total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    items = HasMany(OrderItem)
    tracking_number = String(max_length=255)
    courier_service = String(max_length=100)
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    paid_at = DateTime()
    refunded_at = DateTime()
    cancel_reason = String(max_length=500)
    estimated_delivery = Date()
    status_history = HasMany(StatusEntry)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        customer_id,
        items_data,
        customer_email=None,
        total=None,
        currency="INR",
        payment_gateway=None,
        estimated_delivery=None,
    ):
        """Place a new order.

        Args:
            order_number: Human-facing number, e.g. ``ZM-2024-000042``.
            items_data: List of dicts with product_id, quantity, unit_price
                        and an optional name.
            total: Order total in major units. Computed from the items when
                   omitted.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        if total is None:
            computed = sum(
                Decimal(str(item["unit_price"])) * int(item["quantity"]) for item in items_data
            )
            total = float(computed.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            customer_email=customer_email,
            total=total,
            currency=currency or "INR",
            payment_gateway=payment_gateway,
            estimated_delivery=estimated_delivery,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(
                OrderItem(
                    product_id=item["product_id"],
                    name=item.get("name"),
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                )
            )
        order.add_status_history(
            StatusEntry(
                sequence=1,
                status=OrderStatus.PLACED.value,
                timestamp=now,
                note="Order placed",
            )
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                customer_email=customer_email,
                total=total,
                currency=order.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status history
    # -------------------------------------------------------------------
    def history(self) -> list:
        """Status history, oldest first."""
        return sorted(self.status_history or [], key=lambda entry: entry.sequence)

    def allowed_transitions(self) -> list[str]:
        return allowed_transitions(self.status)

    @property
    def progress(self) -> int:
        return progress_percentage(self.status)

    @property
    def total_minor_units(self) -> int:
        return to_minor_units(self.total)

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def transition(
        self,
        target,
        note=None,
        tracking_number=None,
        courier_service=None,
        reason=None,
    ):
        """Move the order to ``target``.

        Raises InvalidTransitionError, leaving the order untouched, when the
        state machine has no such edge.
        """
        target_status = _as_status(target)
        if target_status is None or not can_transition(self.status, target_status):
            raise InvalidTransitionError(self.status, getattr(target_status, "value", str(target)))

        previous = self.status
        now = datetime.now(UTC)
        history = self.history()
        next_sequence = history[-1].sequence + 1 if history else 1

        self.add_status_history(
            StatusEntry(
                sequence=next_sequence,
                status=target_status.value,
                timestamp=now,
                note=note or f"Status updated to {target_status.value}",
            )
        )
        self.status = target_status.value
        self.updated_at = now

        if target_status == OrderStatus.SHIPPED:
            self.shipped_at = now
            if tracking_number:
                self.tracking_number = tracking_number
            if courier_service:
                self.courier_service = courier_service
        elif target_status == OrderStatus.DELIVERED:
            self.delivered_at = now
        elif target_status == OrderStatus.CANCELLED:
            self.cancelled_at = now
            self.cancel_reason = reason or "Order cancelled"

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                customer_email=self.customer_email,
                previous_status=previous,
                new_status=target_status.value,
                note=note,
                tracking_number=self.tracking_number,
                courier_service=self.courier_service,
                reason=self.cancel_reason if target_status == OrderStatus.CANCELLED else reason,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def _assert_payment_status(self, expected: PaymentStatus) -> None:
        if PaymentStatus(self.payment_status) != expected:
            raise ValidationError(
                {"payment_status": [f"Payment is {self.payment_status}, expected {expected.value}"]}
            )

    def _set_payment_status(self, status: PaymentStatus, amount=None) -> datetime:
        now = datetime.now(UTC)
        self.payment_status = status.value
        self.updated_at = now
        self.raise_(
            PaymentStatusUpdated(
                order_id=str(self.id),
                payment_status=status.value,
                payment_gateway=self.payment_gateway,
                payment_id=self.payment_id,
                amount=amount,
                updated_at=now,
            )
        )
        return now

    def record_payment_success(self, provider, payment_id=None, amount=None):
        """Mark the order paid and confirm it if it is still awaiting payment."""
        self._assert_payment_status(PaymentStatus.PENDING)
        self.payment_gateway = provider
        self.payment_id = payment_id
        self.paid_at = self._set_payment_status(PaymentStatus.PAID, amount if amount is not None else self.total)

        if OrderStatus(self.status) == OrderStatus.PLACED:
            self.transition(OrderStatus.CONFIRMED, note=f"Payment successful via {provider}")

    def record_payment_failure(self, provider, reason=None):
        """Mark the payment failed and cancel the order if it is still awaiting payment."""
        self._assert_payment_status(PaymentStatus.PENDING)
        self.payment_gateway = provider
        self._set_payment_status(PaymentStatus.FAILED)

        if OrderStatus(self.status) == OrderStatus.PLACED:
            self.transition(OrderStatus.CANCELLED, note="Payment failed", reason=reason or "Payment failed")

    def record_refund(self, amount=None):
        """Mark the payment refunded; a returned order moves to REFUNDED."""
        self._assert_payment_status(PaymentStatus.PAID)
        self.refunded_at = self._set_payment_status(PaymentStatus.REFUNDED, amount)

        if OrderStatus(self.status) == OrderStatus.RETURNED:
            self.transition(OrderStatus.REFUNDED, note="Refund processed")
