"""Post-commit customer notification of order status changes.

Dispatch failures are logged and dropped: the status change has already
been committed and is never rolled back because a message could not be sent.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.domain import ordering
from ordering.notification import get_dispatcher
from ordering.order.events import OrderStatusChanged
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        tracking_info = {
            "tracking_number": event.tracking_number,
            "courier_service": event.courier_service,
            "note": event.note,
            "reason": event.reason,
        }
        try:
            order = current_domain.repository_for(Order).get(event.order_id)
            get_dispatcher().send_order_status_update(order, event.new_status, tracking_info)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Order status notification failed",
                order_id=str(event.order_id),
                new_status=event.new_status,
                error=str(exc),
            )
