"""Order status transitions — command, handler and the locked entry point.

``transition_order`` is what callers use: it holds the order's lock around
the whole read-validate-write, so the Unit of Work commits before another
writer can read the order.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.locking import order_locks
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class TransitionOrder:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    note = String(max_length=500)
    tracking_number = String(max_length=255)
    courier_service = String(max_length=100)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class TransitionOrderHandler:
    @handle(TransitionOrder)
    def transition_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.transition(
            command.status,
            note=command.note,
            tracking_number=command.tracking_number,
            courier_service=command.courier_service,
            reason=command.reason,
        )
        repo.add(order)
        return order.status


def transition_order(
    order_id: str,
    status: str,
    note: str | None = None,
    tracking_number: str | None = None,
    courier_service: str | None = None,
    reason: str | None = None,
) -> str:
    """Apply a status transition under the order's lock. Returns the new status.

    Raises ``InvalidTransitionError`` or ``ObjectNotFoundError``.
    """
    with order_locks.hold(order_id):
        new_status = current_domain.process(
            TransitionOrder(
                order_id=order_id,
                status=status,
                note=note,
                tracking_number=tracking_number,
                courier_service=courier_service,
                reason=reason,
            ),
            asynchronous=False,
        )
    logger.info("Order status updated", order_id=str(order_id), status=new_status)
    return new_status
