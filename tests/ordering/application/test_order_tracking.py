"""Application tests for order tracking and status listings."""

import json

import pytest
from ordering.order.placement import PlaceOrder
from ordering.order.tracking import get_order_tracking, list_orders_by_status
from ordering.order.transition import transition_order
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _place_order():
    return current_domain.process(
        PlaceOrder(
            customer_id="cust-001",
            customer_email="asha@example.com",
            items=json.dumps([{"product_id": "prod-001", "quantity": 1, "unit_price": 799.0}]),
        ),
        asynchronous=False,
    )


class TestTracking:
    def test_new_order(self):
        order_id = _place_order()
        tracking = get_order_tracking(order_id)

        assert tracking["order_id"] == order_id
        assert tracking["status"] == "placed"
        assert tracking["payment_status"] == "pending"
        assert tracking["progress"] == 10
        assert [entry["status"] for entry in tracking["status_history"]] == ["placed"]
        assert tracking["status_history"][0]["description"] == "Your order has been placed successfully"

    def test_shipped_order(self):
        order_id = _place_order()
        for status in ("confirmed", "processing", "packed"):
            transition_order(order_id, status)
        transition_order(order_id, "shipped", tracking_number="TRK-9", courier_service="Ekart")

        tracking = get_order_tracking(order_id)
        assert tracking["progress"] == 70
        assert tracking["tracking_number"] == "TRK-9"
        assert tracking["courier_service"] == "Ekart"
        assert tracking["shipped_at"] is not None
        assert [entry["status"] for entry in tracking["status_history"]] == [
            "placed",
            "confirmed",
            "processing",
            "packed",
            "shipped",
        ]

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            get_order_tracking("missing-order")


class TestListing:
    def test_filters_by_status(self):
        placed = _place_order()
        confirmed = _place_order()
        transition_order(confirmed, "confirmed")

        result = list_orders_by_status("placed")
        assert [str(order.id) for order in result["orders"]] == [placed]
        assert result["pagination"]["total"] == 1

    def test_all_orders_newest_first(self):
        first = _place_order()
        second = _place_order()

        result = list_orders_by_status()
        assert [str(order.id) for order in result["orders"]] == [second, first]

    def test_pagination(self):
        for _ in range(5):
            _place_order()

        result = list_orders_by_status("placed", page=2, limit=2)
        assert len(result["orders"]) == 2
        assert result["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}

    def test_empty(self):
        result = list_orders_by_status("delivered")
        assert result["orders"] == []
        assert result["pagination"]["pages"] == 0

    @pytest.mark.parametrize("kwargs", [{"page": 0}, {"limit": 0}, {"limit": 101}, {"status": "teleported"}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValidationError):
            list_orders_by_status(**kwargs)
