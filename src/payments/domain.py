"""Payments bounded context — gateway orders, settlement and refunds.

Talks to the payment providers through the adapters in ``payments.gateway``
and records every provider answer on the Transaction and RefundRequest
aggregates. Settlement events are consumed by the Ordering domain.
"""

import structlog
from protean.domain import Domain

payments = Domain(name="payments")

logger = structlog.get_logger(__name__)
