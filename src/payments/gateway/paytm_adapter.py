"""Paytm payment gateway adapter.

Paytm flow:
    1. Initiate a transaction with a signed ``{body, head: {signature}}`` request
    2. Redirect the customer to Paytm's payment page
    3. Paytm posts a webhook/callback with ORDERID, STATUS, TXNID, TXNAMOUNT
    4. Verify the webhook checksum, or poll the order status endpoint

All requests are signed with the merchant key via the sorted-parameter
checksum. Without a merchant id/key (or with the placeholders) the adapter
serves everything from the mock backend.
"""

import time
from collections.abc import Callable, Mapping
from typing import Any
from uuid import uuid4

import httpx
import structlog

from payments.gateway import checksum
from payments.gateway.errors import ConfigurationError, GatewayError
from payments.gateway.http import build_client, post_json, with_backoff
from payments.gateway.mock_backend import MockGatewayBackend
from payments.gateway.port import (
    GatewayOrder,
    GatewayOrderRequest,
    PaymentGatewayClient,
    Provider,
    RefundInstruction,
    RefundResult,
    TransactionVerification,
    WebhookNotification,
    WebhookOutcome,
    format_amount,
    require_fields,
)
from payments.gateway.settings import PaytmSettings

logger = structlog.get_logger(__name__)

ENDPOINTS = {
    "initiate_transaction": "/theia/api/v1/initiateTransaction",
    "transaction_status": "/v3/order/status",
    "refund": "/refund/apply",
    "show_payment_page": "/theia/api/v1/showPaymentPage",
}

WEBHOOK_REQUIRED_FIELDS = ("ORDERID", "STATUS", "TXNID", "TXNAMOUNT")
CHECKSUM_FIELD = "CHECKSUMHASH"

_OUTCOMES = {
    "TXN_SUCCESS": WebhookOutcome.SUCCESS,
    "TXN_FAILURE": WebhookOutcome.FAILURE,
    "PENDING": WebhookOutcome.PENDING,
}


def _split_name(full_name: str) -> tuple[str, str]:
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def _to_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class PaytmGateway(PaymentGatewayClient):
    """Paytm adapter with transparent mock mode."""

    provider = Provider.PAYTM
    signature_header = "x-paytm-signature"

    def __init__(
        self,
        settings: PaytmSettings,
        client: httpx.Client | None = None,
        mock_backend: MockGatewayBackend | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self._sleep = sleep
        self._mock: MockGatewayBackend | None = None
        try:
            settings.require_live_credentials()
        except ConfigurationError as exc:
            logger.warning("Paytm payments running in mock mode", reason=str(exc))
            self._mock = mock_backend or MockGatewayBackend(Provider.PAYTM, settings.client_url)
        self._client = client if client is not None else build_client(settings.base_url, settings.timeout)

    @property
    def is_mock(self) -> bool:
        return self._mock is not None

    @property
    def mock_backend(self) -> MockGatewayBackend | None:
        return self._mock

    def _signed(self, body: dict) -> dict:
        return {"body": body, "head": {"signature": checksum.sign(body, self.settings.merchant_key)}}

    # -------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------
    def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        if self._mock:
            return self._mock.create_order(request)

        first_name, last_name = _split_name(request.customer_name)
        body = {
            "requestType": "Payment",
            "mid": self.settings.merchant_id,
            "websiteName": self.settings.website,
            "orderId": request.order_number,
            "txnAmount": {"value": format_amount(request.amount), "currency": request.currency},
            "userInfo": {
                "custId": request.order_id,
                "mobile": request.customer_phone,
                "email": request.customer_email,
                "firstName": first_name,
                "lastName": last_name,
            },
            "callbackUrl": self.settings.callback_url,
            "channelId": self.settings.channel_id,
            "industryType": self.settings.industry_type,
        }
        payload = self._signed(body)
        data = post_json(
            self._client,
            self.provider.value,
            ENDPOINTS["initiate_transaction"],
            payload,
            params={"mid": self.settings.merchant_id, "orderId": request.order_number},
        )

        response_body = data.get("body") or {}
        result_info = response_body.get("resultInfo") or {}
        if result_info.get("resultStatus") != "S":
            message = result_info.get("resultMsg") or "Paytm transaction initiation failed"
            logger.error("Paytm transaction initiation rejected", order_number=request.order_number, message=message)
            raise GatewayError(message, provider=self.provider.value, raw=data)

        logger.info("Paytm transaction initiated", order_number=request.order_number, amount=request.amount)
        return GatewayOrder(
            provider=self.provider.value,
            external_order_id=request.order_number,
            payment_url=(
                f"{self.settings.base_url}{ENDPOINTS['show_payment_page']}"
                f"?mid={self.settings.merchant_id}&orderId={request.order_number}"
            ),
            amount=request.amount,
            currency=request.currency,
            checksum=payload["head"]["signature"],
            txn_token=response_body.get("txnToken"),
            raw=response_body,
        )

    def verify_transaction(self, external_order_id: str) -> TransactionVerification:
        if self._mock:
            return self._mock.verify_transaction(external_order_id)

        payload = self._signed({"mid": self.settings.merchant_id, "orderId": external_order_id})
        data = with_backoff(
            lambda: post_json(self._client, self.provider.value, ENDPOINTS["transaction_status"], payload),
            attempts=self.settings.verify_attempts,
            base_delay=self.settings.backoff_seconds,
            sleep=self._sleep,
        )

        response_body = data.get("body") or {}
        result_info = response_body.get("resultInfo") or {}
        status = result_info.get("resultStatus") or "UNKNOWN"
        return TransactionVerification(
            provider=self.provider.value,
            success=status == "TXN_SUCCESS",
            status=status,
            external_order_id=response_body.get("orderId") or external_order_id,
            external_transaction_id=response_body.get("txnId"),
            amount=_to_float(response_body.get("txnAmount")),
            message=result_info.get("resultMsg"),
            raw=response_body,
        )

    def process_refund(self, transaction_id: str, request: RefundInstruction) -> RefundResult:
        if self._mock:
            return self._mock.process_refund(transaction_id, request)

        refund_id = f"REFUND_{int(time.time() * 1000)}_{uuid4().hex[:7]}"
        body = {
            "mid": self.settings.merchant_id,
            "txnType": "REFUND",
            "orderId": request.gateway_order_id,
            "txnId": transaction_id,
            "refId": refund_id,
            "refundAmount": format_amount(request.amount),
        }
        data = post_json(self._client, self.provider.value, ENDPOINTS["refund"], self._signed(body))

        response_body = data.get("body") or {}
        result_info = response_body.get("resultInfo") or {}
        status = result_info.get("resultStatus")
        return RefundResult(
            provider=self.provider.value,
            success=status == "TXN_SUCCESS",
            refund_id=refund_id,
            status=status,
            amount=request.amount,
            message=result_info.get("resultMsg"),
            raw=response_body,
        )

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def validate_webhook_payload(self, payload: Mapping[str, Any]) -> WebhookNotification:
        require_fields(payload, WEBHOOK_REQUIRED_FIELDS)
        status = str(payload["STATUS"])
        return WebhookNotification(
            provider=self.provider.value,
            gateway_order_id=str(payload["ORDERID"]),
            transaction_id=str(payload["TXNID"]),
            status=status,
            outcome=_OUTCOMES.get(status, WebhookOutcome.PENDING),
            amount=_to_float(payload["TXNAMOUNT"]),
            event=payload.get("EVENT"),
            raw=dict(payload),
        )

    def verify_webhook_signature(self, payload: Mapping[str, Any], signature: str | None) -> bool:
        params = {key: value for key, value in payload.items() if key != CHECKSUM_FIELD}
        return checksum.verify(params, signature or payload.get(CHECKSUM_FIELD), self.settings.merchant_key)

    # -------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------
    def payment_methods(self) -> list[dict]:
        enabled = not self.is_mock
        return [
            {"id": "paytm", "name": "Paytm", "description": "Pay using Paytm Wallet", "enabled": enabled},
            {
                "id": "paytm_upi",
                "name": "UPI via Paytm",
                "description": "Pay using UPI (Google Pay, PhonePe, Paytm)",
                "enabled": enabled,
            },
            {"id": "paytm_card", "name": "Cards via Paytm", "description": "Credit/Debit Cards", "enabled": enabled},
            {
                "id": "paytm_netbanking",
                "name": "Net Banking via Paytm",
                "description": "All major banks supported",
                "enabled": enabled,
            },
        ]

    def configuration_status(self) -> dict:
        merchant_id = self.settings.merchant_id or ""
        return {
            "provider": self.provider.value,
            "configured": not self.is_mock,
            "mock_mode": self.is_mock,
            "base_url": self.settings.base_url,
            "merchant_id": "NOT_CONFIGURED" if self.is_mock else f"{merchant_id[:4]}***",
        }
