"""Ordering bounded context — order lifecycle and tracking.

Owns the Order aggregate and its status state machine, reacts to payment
settlement events from the Payments domain, and cancels stale unpaid orders.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
