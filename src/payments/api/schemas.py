"""Pydantic request/response schemas for the Payments API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands and from the gateway dataclasses.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreatePaymentRequest(BaseModel):
    order_id: str
    order_number: str
    amount: float = Field(gt=0)
    currency: str = "INR"
    customer_name: str
    customer_email: str
    customer_phone: str = ""

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ord-001",
                    "order_number": "ZM-2024-000001",
                    "amount": 2500.0,
                    "currency": "INR",
                    "customer_name": "Asha Rao",
                    "customer_email": "asha@example.com",
                    "customer_phone": "9876543210",
                }
            ]
        }
    }


class VerifyPaymentRequest(BaseModel):
    gateway_order_id: str


class RefundPaymentRequest(BaseModel):
    transaction_id: str
    amount: float = Field(gt=0)
    reason: str = "Customer requested refund"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class PaymentOrderResponse(BaseModel):
    transaction_id: str
    provider: str
    gateway_order_id: str
    payment_url: str
    amount: float
    currency: str
    checksum: str | None = None
    txn_token: str | None = None
    is_mock: bool


class VerificationResponse(BaseModel):
    outcome: str
    success: bool
    status: str
    gateway_transaction_id: str | None = None
    amount: float | None = None
    is_mock: bool


class RefundResponse(BaseModel):
    refund_id: str | None = None
    status: str | None = None
    amount: float | None = None
    message: str | None = None
    is_mock: bool


class StatusResponse(BaseModel):
    status: str


class PaymentMethodSchema(BaseModel):
    id: str
    name: str
    description: str
    enabled: bool


class PaymentMethodsResponse(BaseModel):
    provider: str
    methods: list[PaymentMethodSchema]


class GatewayStatusResponse(BaseModel):
    provider: str
    configured: bool
    mock_mode: bool
    base_url: str
    merchant_id: str
