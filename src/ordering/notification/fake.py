"""Fake notification dispatcher — records status updates for testing."""

from uuid import uuid4

from ordering.notification.port import NotificationDispatcher


class NotificationDeliveryError(Exception):
    pass


class FakeNotificationDispatcher(NotificationDispatcher):
    """Dispatcher that records messages in memory for test assertions."""

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Make subsequent sends raise ``NotificationDeliveryError`` when ``should_succeed`` is False."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send_order_status_update(self, order, new_status: str, tracking_info: dict) -> dict:
        if not self.should_succeed:
            raise NotificationDeliveryError(self.failure_reason)

        message_id = f"notif-{uuid4().hex[:12]}"
        self.sent.append(
            {
                "message_id": message_id,
                "order_id": str(order.id),
                "order_number": order.order_number,
                "to": order.customer_email,
                "status": new_status,
                "tracking_info": dict(tracking_info),
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"
