"""FastAPI routes for the Ordering domain — placement, tracking and status updates."""

import json

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    CancelOrderRequest,
    OrderIdResponse,
    OrderListResponse,
    OrderSummarySchema,
    PlaceOrderRequest,
    StatusResponse,
    TrackingResponse,
    UpdateStatusRequest,
)
from ordering.order.order import OrderStatus
from ordering.order.placement import PlaceOrder
from ordering.order.tracking import MAX_PAGE_SIZE, get_order_tracking, list_orders_by_status
from ordering.order.transition import transition_order

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    """Place a new order."""
    command = PlaceOrder(
        customer_id=body.customer_id,
        customer_email=body.customer_email,
        items=json.dumps([item.model_dump() for item in body.items]),
        total=body.total,
        currency=body.currency,
        payment_gateway=body.payment_gateway,
        estimated_delivery=body.estimated_delivery,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
) -> OrderListResponse:
    """List orders, newest first, optionally filtered by status."""
    result = list_orders_by_status(status, page=page, limit=limit)
    return OrderListResponse(
        orders=[
            OrderSummarySchema(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(order.customer_id),
                status=order.status,
                payment_status=order.payment_status,
                total=order.total,
                currency=order.currency,
                created_at=order.created_at,
            )
            for order in result["orders"]
        ],
        pagination=result["pagination"],
    )


@order_router.get("/{order_id}/tracking", response_model=TrackingResponse)
async def order_tracking(order_id: str) -> TrackingResponse:
    return TrackingResponse(**get_order_tracking(order_id))


@order_router.patch("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateStatusRequest) -> StatusResponse:
    """Move an order along the status state machine."""
    new_status = transition_order(
        order_id,
        body.status,
        note=body.note,
        tracking_number=body.tracking_number,
        courier_service=body.courier_service,
        reason=body.reason,
    )
    return StatusResponse(status=new_status)


@order_router.patch("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest | None = None) -> StatusResponse:
    """Cancel an order on the customer's request."""
    body = body or CancelOrderRequest()
    new_status = transition_order(
        order_id,
        OrderStatus.CANCELLED.value,
        note="Cancelled by customer",
        reason=body.reason,
    )
    return StatusResponse(status=new_status)
