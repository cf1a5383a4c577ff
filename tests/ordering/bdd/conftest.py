"""Shared BDD fixtures for the Ordering domain."""

import json

import pytest
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def context():
    """Mutable scratchpad shared across the steps of one scenario."""
    return {}


@given(parsers.parse("a customer placed an order for {amount:d} INR"), target_fixture="order_id")
def _(amount):
    return current_domain.process(
        PlaceOrder(
            customer_id="cust-bdd-001",
            customer_email="bdd@example.com",
            items=json.dumps([{"product_id": "prod-bdd", "quantity": 1, "unit_price": float(amount)}]),
        ),
        asynchronous=False,
    )


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


@then(parsers.parse('the order status is "{status}"'))
def _(order_id, status):
    assert _order(order_id).status == status


@then(parsers.parse('the payment status is "{status}"'))
def _(order_id, status):
    assert _order(order_id).payment_status == status


@then(parsers.parse('the status history is "{statuses}"'))
def _(order_id, statuses):
    expected = [status.strip() for status in statuses.split(",")]
    assert [entry.status for entry in _order(order_id).history()] == expected
