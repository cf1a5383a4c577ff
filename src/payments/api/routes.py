"""FastAPI routes for the Payments domain — gateway orders, webhooks and refunds.

Every route is scoped by provider (``paytm`` or ``zoho``). The routes obtain
the ``PaymentService`` from ``app.state``; the composition root builds it from
the environment and tests install their own.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from payments.api.schemas import (
    CreatePaymentRequest,
    GatewayStatusResponse,
    PaymentMethodsResponse,
    PaymentOrderResponse,
    RefundPaymentRequest,
    RefundResponse,
    StatusResponse,
    VerificationResponse,
    VerifyPaymentRequest,
)
from payments.gateway.port import GatewayOrderRequest
from payments.transaction.service import PaymentService


def get_payment_service(request: Request) -> PaymentService:
    return request.app.state.payment_service


payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/{provider}/orders", status_code=201, response_model=PaymentOrderResponse)
async def create_payment(
    provider: str,
    body: CreatePaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentOrderResponse:
    """Create a payment order at the provider and record the transaction."""
    transaction_id, gateway_order = service.create_payment(
        provider,
        GatewayOrderRequest(
            order_id=body.order_id,
            order_number=body.order_number,
            amount=body.amount,
            customer_name=body.customer_name,
            customer_email=body.customer_email,
            customer_phone=body.customer_phone,
            currency=body.currency,
        ),
    )
    return PaymentOrderResponse(
        transaction_id=transaction_id,
        provider=gateway_order.provider,
        gateway_order_id=gateway_order.external_order_id,
        payment_url=gateway_order.payment_url,
        amount=gateway_order.amount,
        currency=gateway_order.currency,
        checksum=gateway_order.checksum,
        txn_token=gateway_order.txn_token,
        is_mock=gateway_order.is_mock,
    )


@payment_router.post("/{provider}/verify", response_model=VerificationResponse)
async def verify_payment(
    provider: str,
    body: VerifyPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> VerificationResponse:
    """Poll the provider for a payment's status and settle the transaction."""
    outcome, verification = service.verify_payment(provider, body.gateway_order_id)
    return VerificationResponse(
        outcome=outcome,
        success=verification.success,
        status=verification.status,
        gateway_transaction_id=verification.external_transaction_id,
        amount=verification.amount,
        is_mock=verification.is_mock,
    )


@payment_router.post("/{provider}/webhook", response_model=StatusResponse)
async def process_webhook(
    provider: str,
    request: Request,
    payload: dict[str, Any] = Body(...),
    service: PaymentService = Depends(get_payment_service),
) -> StatusResponse:
    """Process a gateway webhook notification.

    The signature travels in the provider's own header (``x-paytm-signature``
    or ``x-zoho-signature``); Paytm may embed it as ``CHECKSUMHASH`` instead.
    """
    signature = request.headers.get(service.registry.get(provider).signature_header)
    outcome = service.handle_webhook(provider, payload, signature)
    return StatusResponse(status=outcome)


@payment_router.post("/{provider}/refunds", response_model=RefundResponse)
async def refund_payment(
    provider: str,
    body: RefundPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> RefundResponse:
    """Refund part or all of a successful transaction."""
    result = service.refund(body.transaction_id, body.amount, body.reason, provider=provider)
    return RefundResponse(
        refund_id=result.refund_id,
        status=result.status,
        amount=result.amount,
        message=result.message,
        is_mock=result.is_mock,
    )


@payment_router.get("/{provider}/methods", response_model=PaymentMethodsResponse)
async def payment_methods(
    provider: str,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentMethodsResponse:
    gateway = service.registry.get(provider)
    return PaymentMethodsResponse(provider=gateway.provider.value, methods=gateway.payment_methods())


@payment_router.get("/{provider}/status", response_model=GatewayStatusResponse)
async def gateway_status(
    provider: str,
    service: PaymentService = Depends(get_payment_service),
) -> GatewayStatusResponse:
    return GatewayStatusResponse(**service.registry.get(provider).configuration_status())
