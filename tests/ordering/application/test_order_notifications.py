"""Application tests for customer notifications on status changes."""

import json
from datetime import UTC, datetime

import pytest
from ordering.notification import reset_dispatcher, set_dispatcher
from ordering.notification.fake import FakeNotificationDispatcher
from ordering.order.events import OrderStatusChanged
from ordering.order.notification import OrderNotificationHandler
from ordering.order.order import Order, OrderStatus
from ordering.order.placement import PlaceOrder
from ordering.order.transition import transition_order
from protean import current_domain


@pytest.fixture()
def dispatcher():
    fake = FakeNotificationDispatcher()
    set_dispatcher(fake)
    yield fake
    reset_dispatcher()


def _place_order():
    return current_domain.process(
        PlaceOrder(
            customer_id="cust-001",
            customer_email="asha@example.com",
            items=json.dumps([{"product_id": "prod-001", "quantity": 1, "unit_price": 999.0}]),
        ),
        asynchronous=False,
    )


def _status_changed(order, new_status, **extra):
    return OrderStatusChanged(
        order_id=str(order.id),
        order_number=order.order_number,
        customer_id=str(order.customer_id),
        customer_email=order.customer_email,
        previous_status="packed",
        new_status=new_status,
        changed_at=order.updated_at,
        **extra,
    )


class TestOrderNotificationHandler:
    def test_sends_update_with_tracking_info(self, dispatcher):
        order = current_domain.repository_for(Order).get(_place_order())
        event = _status_changed(order, "shipped", tracking_number="TRK-1", courier_service="BlueDart")

        OrderNotificationHandler().on_order_status_changed(event)

        (message,) = dispatcher.sent
        assert message["to"] == "asha@example.com"
        assert message["status"] == "shipped"
        assert message["tracking_info"]["tracking_number"] == "TRK-1"
        assert message["tracking_info"]["courier_service"] == "BlueDart"

    def test_delivery_failure_is_swallowed(self, dispatcher):
        order = current_domain.repository_for(Order).get(_place_order())
        dispatcher.configure(should_succeed=False)

        OrderNotificationHandler().on_order_status_changed(_status_changed(order, "confirmed"))

        assert dispatcher.sent == []

    def test_missing_order_is_swallowed(self, dispatcher):
        event = OrderStatusChanged(
            order_id="missing-order",
            order_number="ZM-2024-000404",
            customer_id="cust-001",
            previous_status="placed",
            new_status="confirmed",
            changed_at=datetime.now(UTC),
        )

        OrderNotificationHandler().on_order_status_changed(event)

        assert dispatcher.sent == []


class TestTransitionWithFailingDispatcher:
    def test_transition_commits_even_when_dispatch_fails(self, dispatcher):
        order_id = _place_order()
        dispatcher.configure(should_succeed=False)

        assert transition_order(order_id, "confirmed") == OrderStatus.CONFIRMED.value

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.CONFIRMED.value
        assert len(order.status_history) == 2
