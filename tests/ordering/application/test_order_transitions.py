"""Application tests for operator-driven status transitions."""

import json

import pytest
from ordering.order.order import InvalidTransitionError, Order, OrderStatus
from ordering.order.placement import PlaceOrder
from ordering.order.transition import transition_order
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _place_order():
    return current_domain.process(
        PlaceOrder(
            customer_id="cust-001",
            customer_email="asha@example.com",
            items=json.dumps([{"product_id": "prod-001", "quantity": 1, "unit_price": 999.0}]),
        ),
        asynchronous=False,
    )


def _get(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestTransitionOrder:
    def test_full_delivery_path(self):
        order_id = _place_order()
        for status in ("confirmed", "processing", "packed"):
            assert transition_order(order_id, status) == status
        transition_order(order_id, "shipped", tracking_number="TRK-1", courier_service="Delhivery")
        transition_order(order_id, "out_for_delivery")
        transition_order(order_id, "delivered")

        order = _get(order_id)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.tracking_number == "TRK-1"
        assert [entry.sequence for entry in order.history()] == list(range(1, 8))

    def test_invalid_transition_leaves_stored_order_untouched(self):
        order_id = _place_order()

        with pytest.raises(InvalidTransitionError) as exc:
            transition_order(order_id, "shipped")

        assert exc.value.from_status == "placed"
        assert exc.value.to_status == "shipped"
        order = _get(order_id)
        assert order.status == OrderStatus.PLACED.value
        assert len(order.status_history) == 1

    def test_cancel_with_reason(self):
        order_id = _place_order()
        transition_order(order_id, "cancelled", reason="Ordered by mistake")

        order = _get(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancel_reason == "Ordered by mistake"

    def test_cancelled_order_is_terminal(self):
        order_id = _place_order()
        transition_order(order_id, "cancelled")
        with pytest.raises(InvalidTransitionError):
            transition_order(order_id, "confirmed")

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            transition_order("missing-order", "confirmed")
