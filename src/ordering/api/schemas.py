"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str
    name: str | None = None
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str
    customer_email: str | None = None
    items: list[OrderItemSchema] = Field(min_length=1)
    total: float | None = Field(default=None, ge=0)
    currency: str = "INR"
    payment_gateway: str | None = None
    estimated_delivery: date | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "customer_email": "asha@example.com",
                    "items": [
                        {"product_id": "prod-001", "name": "Handloom Saree", "quantity": 1, "unit_price": 2500.0}
                    ],
                    "currency": "INR",
                    "payment_gateway": "paytm",
                }
            ]
        }
    }


class UpdateStatusRequest(BaseModel):
    status: str
    note: str | None = None
    tracking_number: str | None = None
    courier_service: str | None = None
    reason: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str = "Cancelled by customer"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class StatusResponse(BaseModel):
    status: str


class StatusHistorySchema(BaseModel):
    status: str
    timestamp: datetime
    note: str | None = None
    description: str


class TrackingResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    progress: int
    tracking_number: str | None = None
    courier_service: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    estimated_delivery: date | None = None
    status_history: list[StatusHistorySchema]


class OrderSummarySchema(BaseModel):
    order_id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    total: float
    currency: str
    created_at: datetime | None = None


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListResponse(BaseModel):
    orders: list[OrderSummarySchema]
    pagination: PaginationSchema
