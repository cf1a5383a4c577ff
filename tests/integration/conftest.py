"""Fixtures for cross-domain integration tests.

These tests settle a payment in the Payments domain and deliver the
resulting event to the Ordering domain's handlers, switching the active
domain context between the two steps the way the Engine does.
"""

import pytest


def _reset(domain):
    with domain.domain_context():
        for _, provider in domain.providers.items():
            provider._data_reset()
        for _, broker in domain.brokers.items():
            broker._data_reset()
        domain.event_store.store._data_reset()


@pytest.fixture
def ordering_ctx(ordering_bed):
    """Push the ordering domain context for a test, with cleanup."""
    from ordering.domain import ordering

    ctx = ordering.domain_context()
    ctx.push()

    yield ordering

    _reset(ordering)
    ctx.pop()


@pytest.fixture
def payments_domain(payments_bed):
    """The initialized payments domain; tests push its context where needed."""
    from payments.domain import payments

    yield payments

    _reset(payments)
