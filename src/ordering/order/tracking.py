"""Order tracking queries — read-only views over the Order aggregate."""

import math

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.order.order import Order, OrderStatus, progress_percentage, status_description

MAX_PAGE_SIZE = 100


def get_order_tracking(order_id: str) -> dict:
    """Customer-facing tracking view of one order. Raises ``ObjectNotFoundError``."""
    order = current_domain.repository_for(Order).get(order_id)
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "progress": progress_percentage(order.status),
        "tracking_number": order.tracking_number,
        "courier_service": order.courier_service,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "estimated_delivery": order.estimated_delivery,
        "status_history": [
            {
                "status": entry.status,
                "timestamp": entry.timestamp,
                "note": entry.note,
                "description": status_description(entry.status),
            }
            for entry in order.history()
        ],
    }


def list_orders_by_status(status: str | None = None, page: int = 1, limit: int = 20) -> dict:
    """One page of orders, newest first. ``status=None`` lists every order."""
    if page < 1:
        raise ValidationError({"page": ["Page must be at least 1"]})
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError({"limit": [f"Limit must be between 1 and {MAX_PAGE_SIZE}"]})

    query = current_domain.repository_for(Order)._dao.query
    if status is not None:
        try:
            OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {status}"]}) from None
        query = query.filter(status=status)

    results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "orders": results.items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": results.total,
            "pages": math.ceil(results.total / limit) if results.total else 0,
        },
    }
