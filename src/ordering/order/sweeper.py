"""Auto-cancellation of unpaid orders.

Orders still PLACED with payment pending after the threshold are cancelled
through the state machine. Each candidate is re-read under its lock before
``transition_order`` runs; an order that another writer paid or moved in the
meantime is skipped.
Re-running the sweep therefore cancels nothing new.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from protean.utils.globals import current_domain

from ordering.order.locking import order_locks
from ordering.order.order import InvalidTransitionError, Order, OrderStatus, PaymentStatus
from ordering.order.transition import transition_order

logger = structlog.get_logger(__name__)

DEFAULT_THRESHOLD_HOURS = 24
_BATCH_SIZE = 100


def _utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class AutoCancellationSweeper:
    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self.clock = clock or (lambda: datetime.now(UTC))

    def _stale_order_ids(self, cutoff: datetime) -> list[str]:
        repo = current_domain.repository_for(Order)
        stale, offset = [], 0
        while True:
            batch = (
                repo._dao.query.filter(
                    status=OrderStatus.PLACED.value,
                    payment_status=PaymentStatus.PENDING.value,
                )
                .order_by("created_at")
                .offset(offset)
                .limit(_BATCH_SIZE)
                .all()
            )
            stale.extend(
                str(order.id) for order in batch.items if order.created_at and _utc(order.created_at) < cutoff
            )
            offset += _BATCH_SIZE
            if offset >= batch.total:
                return stale

    def sweep(self, threshold_hours: float = DEFAULT_THRESHOLD_HOURS) -> int:
        """Cancel unpaid orders older than ``threshold_hours``. Returns how many were cancelled."""
        cutoff = _utc(self.clock()) - timedelta(hours=threshold_hours)
        reason = f"Auto-cancelled after {threshold_hours:g} hours of non-payment"

        cancelled = 0
        for order_id in self._stale_order_ids(cutoff):
            if self._cancel_if_unpaid(order_id, reason):
                cancelled += 1

        logger.info("Auto-cancellation sweep finished", cancelled=cancelled, threshold_hours=threshold_hours)
        return cancelled

    def _cancel_if_unpaid(self, order_id: str, reason: str) -> bool:
        with order_locks.hold(order_id):
            order = current_domain.repository_for(Order).get(order_id)
            if order.status != OrderStatus.PLACED.value or order.payment_status != PaymentStatus.PENDING.value:
                logger.info(
                    "Skipping order already moved by another writer",
                    order_id=order_id,
                    status=order.status,
                    payment_status=order.payment_status,
                )
                return False
            try:
                transition_order(order_id, OrderStatus.CANCELLED.value, reason=reason)
            except InvalidTransitionError as exc:
                logger.info("Skipping order that can no longer be cancelled", order_id=order_id, status=exc.from_status)
                return False
        return True
