"""Tests for Order placement, status history and payment recording."""

from datetime import date

import pytest
from ordering.order.events import OrderPlaced, OrderStatusChanged, PaymentStatusUpdated
from ordering.order.order import Order, OrderStatus, PaymentStatus, to_minor_units
from protean.exceptions import ValidationError

ITEMS = [
    {"product_id": "prod-001", "name": "Kurta", "quantity": 2, "unit_price": 1250.0},
    {"product_id": "prod-002", "name": "Dupatta", "quantity": 1, "unit_price": 499.99},
]


def _order(**overrides):
    defaults = {
        "order_number": "ZM-2024-000001",
        "customer_id": "cust-001",
        "customer_email": "asha@example.com",
        "items_data": ITEMS,
    }
    defaults.update(overrides)
    return Order.create(**defaults)


class TestPlacement:
    def test_initial_state(self):
        order = _order()
        assert order.status == OrderStatus.PLACED.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.currency == "INR"
        assert len(order.items) == 2
        assert order.created_at is not None

    def test_total_computed_from_items(self):
        assert _order().total == 2999.99

    def test_explicit_total(self):
        assert _order(total=2800.0).total == 2800.0

    def test_estimated_delivery(self):
        assert _order(estimated_delivery=date(2024, 6, 1)).estimated_delivery == date(2024, 6, 1)

    def test_first_history_entry(self):
        order = _order()
        (entry,) = order.history()
        assert entry.sequence == 1
        assert entry.status == OrderStatus.PLACED.value
        assert entry.note == "Order placed"

    def test_raises_order_placed(self):
        order = _order()
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.order_number == "ZM-2024-000001"
        assert event.total == 2999.99

    def test_requires_items(self):
        with pytest.raises(ValidationError) as exc:
            _order(items_data=[])
        assert "items" in exc.value.messages

    def test_rejects_non_positive_quantity(self):
        with pytest.raises(ValidationError):
            _order(items_data=[{"product_id": "prod-001", "quantity": 0, "unit_price": 10.0}])

    def test_minor_units(self):
        assert _order().total_minor_units == 299999
        assert to_minor_units(2500) == 250000


class TestStatusHistory:
    def test_every_transition_appends_one_entry(self):
        order = _order()
        for status in ("confirmed", "processing", "packed", "shipped"):
            order.transition(status)

        history = order.history()
        assert [entry.sequence for entry in history] == [1, 2, 3, 4, 5]
        assert [entry.status for entry in history] == ["placed", "confirmed", "processing", "packed", "shipped"]

    def test_status_matches_latest_entry(self):
        order = _order()
        order.transition("confirmed")
        order.transition("cancelled")
        assert order.history()[-1].status == order.status

    def test_timestamps_are_non_decreasing(self):
        order = _order()
        order.transition("confirmed")
        order.transition("processing")
        timestamps = [entry.timestamp for entry in order.history()]
        assert timestamps == sorted(timestamps)

    def test_default_note(self):
        order = _order()
        order.transition("confirmed")
        assert order.history()[-1].note == "Status updated to confirmed"

    def test_earlier_entries_are_unchanged(self):
        order = _order()
        first = order.history()[0]
        snapshot = (first.sequence, first.status, first.timestamp, first.note)
        order.transition("confirmed", note="ok")
        first = order.history()[0]
        assert (first.sequence, first.status, first.timestamp, first.note) == snapshot


class TestPaymentSuccess:
    def test_confirms_placed_order(self):
        order = _order()
        order.record_payment_success("paytm", payment_id="TXN-1", amount=2999.99)

        assert order.payment_status == PaymentStatus.PAID.value
        assert order.payment_gateway == "paytm"
        assert order.payment_id == "TXN-1"
        assert order.paid_at is not None
        assert order.status == OrderStatus.CONFIRMED.value
        assert order.history()[-1].note == "Payment successful via paytm"

    def test_raises_payment_and_status_events(self):
        order = _order()
        order.record_payment_success("zoho", payment_id="pay_1")
        kinds = [type(event) for event in order._events[1:]]
        assert kinds == [PaymentStatusUpdated, OrderStatusChanged]
        assert order._events[1].amount == order.total

    def test_does_not_move_an_order_past_placed(self):
        order = _order()
        order.transition("confirmed")
        order.record_payment_success("paytm")
        assert order.status == OrderStatus.CONFIRMED.value
        assert len(order.history()) == 2

    def test_cannot_pay_twice(self):
        order = _order()
        order.record_payment_success("paytm")
        with pytest.raises(ValidationError) as exc:
            order.record_payment_success("paytm")
        assert "payment_status" in exc.value.messages


class TestPaymentFailure:
    def test_cancels_placed_order(self):
        order = _order()
        order.record_payment_failure("paytm", reason="Insufficient balance")

        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancel_reason == "Insufficient balance"
        assert order.history()[-1].note == "Payment failed"

    def test_failure_after_success_rejected(self):
        order = _order()
        order.record_payment_success("paytm")
        with pytest.raises(ValidationError):
            order.record_payment_failure("paytm")
        assert order.payment_status == PaymentStatus.PAID.value


class TestRefund:
    def test_requires_paid(self):
        order = _order()
        with pytest.raises(ValidationError):
            order.record_refund(100.0)

    def test_refund_on_returned_order_completes_it(self):
        order = _order()
        order.record_payment_success("paytm")
        for status in ("processing", "packed", "shipped", "returned"):
            order.transition(status)

        order.record_refund(2999.99)

        assert order.payment_status == PaymentStatus.REFUNDED.value
        assert order.refunded_at is not None
        assert order.status == OrderStatus.REFUNDED.value

    def test_refund_before_return_only_marks_payment(self):
        order = _order()
        order.record_payment_success("paytm")
        order.record_refund(100.0)
        assert order.payment_status == PaymentStatus.REFUNDED.value
        assert order.status == OrderStatus.CONFIRMED.value
