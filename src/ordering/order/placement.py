"""Order placement — command and handler."""

import json
import threading
from datetime import UTC, date, datetime

from protean import handle
from protean.fields import Date, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

_numbering_lock = threading.Lock()


def next_order_number(today: date | None = None) -> str:
    """``ZM-{year}-{sequence}``, the sequence being one past the number of orders on file."""
    year = (today or datetime.now(UTC).date()).year
    count = current_domain.repository_for(Order)._dao.query.all().total
    return f"ZM-{year}-{count + 1:06d}"


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    customer_email = String(max_length=254)
    items = Text(required=True)  # JSON: list of {product_id, name, quantity, unit_price}
    total = Float()  # computed from items when omitted
    currency = String(max_length=3, default="INR")
    payment_gateway = String(max_length=20)
    estimated_delivery = Date()
    order_number = String(max_length=30)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items

        with _numbering_lock:
            order = Order.create(
                order_number=command.order_number or next_order_number(),
                customer_id=command.customer_id,
                items_data=items_data,
                customer_email=command.customer_email,
                total=command.total,
                currency=command.currency or "INR",
                payment_gateway=command.payment_gateway,
                estimated_delivery=command.estimated_delivery,
            )
            current_domain.repository_for(Order).add(order)
        return str(order.id)
