"""Concurrent writers against one order."""

import json
import threading

from ordering.domain import ordering
from ordering.order.locking import order_locks
from ordering.order.order import InvalidTransitionError, Order
from ordering.order.placement import PlaceOrder
from ordering.order.transition import transition_order
from protean import current_domain


def _packed_order():
    order_id = current_domain.process(
        PlaceOrder(
            customer_id="cust-001",
            customer_email="asha@example.com",
            items=json.dumps([{"product_id": "prod-001", "quantity": 1, "unit_price": 999.0}]),
        ),
        asynchronous=False,
    )
    for status in ("confirmed", "processing", "packed"):
        transition_order(order_id, status)
    return order_id


def _race(order_id, targets):
    barrier = threading.Barrier(len(targets))
    applied, rejected = [], []

    def worker(target):
        with ordering.domain_context():
            barrier.wait()
            try:
                applied.append(transition_order(order_id, target))
            except InvalidTransitionError as exc:
                rejected.append(exc)

    threads = [threading.Thread(target=worker, args=(target,)) for target in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return applied, rejected


class TestConcurrentTransitions:
    def test_ship_and_cancel_race_has_one_winner(self):
        order_id = _packed_order()
        before = len(current_domain.repository_for(Order).get(order_id).history())

        applied, rejected = _race(order_id, ["shipped", "cancelled"])

        assert len(applied) == 1
        assert len(rejected) == 1
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == applied[0]
        assert len(order.history()) == before + 1
        assert rejected[0].from_status == applied[0]

    def test_same_transition_twice_applies_once(self):
        order_id = _packed_order()

        applied, rejected = _race(order_id, ["shipped", "shipped"])

        assert applied == ["shipped"]
        assert len(rejected) == 1
        history = current_domain.repository_for(Order).get(order_id).history()
        assert [entry.status for entry in history][-2:] == ["packed", "shipped"]

    def test_order_locks_are_released(self):
        order_id = _packed_order()

        _race(order_id, ["shipped", "cancelled"])

        assert order_id not in order_locks
        assert len(order_locks) == 0
