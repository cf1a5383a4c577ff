"""Notification dispatcher port — abstract interface for order status updates."""

from abc import ABC, abstractmethod


class NotificationDispatcher(ABC):
    """Abstract interface for customer notification adapters."""

    @abstractmethod
    def send_order_status_update(self, order, new_status: str, tracking_info: dict) -> dict:
        """Tell the customer their order moved to ``new_status``.

        Args:
            order: The Order aggregate, already in its new status.
            tracking_info: tracking_number, courier_service, note and reason
                           from the transition.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
