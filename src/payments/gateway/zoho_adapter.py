"""Zoho Payments gateway adapter.

Every call first obtains an OAuth token through the client-credentials
grant, then sends the request with ``Authorization: Bearer`` and an
``X-Signature`` header signed with the client secret. Amounts travel in
minor units (paisa). Webhooks are signed over their JSON payload with the
webhook secret and carry the signature in ``x-zoho-signature``. Besides
capture and failure they report authorizations and refunds issued at Zoho.
"""

import time
from collections.abc import Callable, Mapping
from typing import Any

import httpx
import structlog

from payments.gateway import checksum
from payments.gateway.errors import ConfigurationError, GatewayError
from payments.gateway.http import build_client, get_json, post_form, post_json, with_backoff
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
    from_minor_units,
    require_fields,
    to_minor_units,
)
from payments.gateway.settings import ZohoSettings

logger = structlog.get_logger(__name__)

TOKEN_PATH = "/oauth/v2/token"
WEBHOOK_REQUIRED_FIELDS = ("event", "payment_id", "order_id", "status")
REFUND_WEBHOOK_FIELDS = ("refund_id", "refund_amount")
PAID_STATUSES = frozenset({"paid", "captured"})

_EVENT_OUTCOMES = {
    "payment.captured": WebhookOutcome.SUCCESS,
    "payment.failed": WebhookOutcome.FAILURE,
    "payment.authorized": WebhookOutcome.AUTHORIZED,
    "refund.processed": WebhookOutcome.REFUNDED,
}


class ZohoGateway(PaymentGatewayClient):
    provider = Provider.ZOHO
    signature_header = "x-zoho-signature"

    def __init__(
        self,
        settings: ZohoSettings,
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
            logger.warning("Zoho payments running in mock mode", reason=str(exc))
            self._mock = mock_backend or MockGatewayBackend(Provider.ZOHO, settings.client_url)
        self._client = client if client is not None else build_client(settings.base_url, settings.timeout)

    @property
    def is_mock(self) -> bool:
        return self._mock is not None

    @property
    def mock_backend(self) -> MockGatewayBackend | None:
        return self._mock

    def _access_token(self) -> str:
        data = post_form(
            self._client,
            self.provider.value,
            TOKEN_PATH,
            {
                "grant_type": "client_credentials",
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "scope": "ZohoPayments.fullaccess.all",
            },
        )
        token = data.get("access_token")
        if not token:
            raise GatewayError("Failed to obtain Zoho access token", provider=self.provider.value, raw=data)
        return token

    def _headers(self, body: Mapping[str, Any] | None = None) -> dict:
        headers = {"Authorization": f"Bearer {self._access_token()}"}
        if body is not None:
            headers["X-Signature"] = checksum.sign(body, self.settings.client_secret)
        return headers

    def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        if self._mock:
            return self._mock.create_order(request)

        body = {
            "amount": to_minor_units(request.amount),
            "currency": request.currency,
            "receipt": request.order_number,
            "payment_capture": 1,
            "notes": {
                "order_id": request.order_id,
                "customer_email": request.customer_email,
                "customer_phone": request.customer_phone,
            },
            "customer": {
                "name": request.customer_name,
                "email": request.customer_email,
                "contact": request.customer_phone,
            },
            "callback_url": self.settings.callback_url,
            "callback_method": "get",
        }
        data = post_json(self._client, self.provider.value, "/orders", body, headers=self._headers(body))

        external_order_id = data.get("id")
        if not external_order_id:
            raise GatewayError("Zoho did not return an order id", provider=self.provider.value, raw=data)

        logger.info("Zoho order created", order_number=request.order_number, external_order_id=external_order_id)
        return GatewayOrder(
            provider=self.provider.value,
            external_order_id=external_order_id,
            payment_url=data.get("payment_url") or data.get("short_url") or "",
            amount=request.amount,
            currency=request.currency,
            checksum=checksum.sign(body, self.settings.client_secret),
            raw=data,
        )

    def verify_transaction(self, external_order_id: str) -> TransactionVerification:
        if self._mock:
            return self._mock.verify_transaction(external_order_id)

        path = f"/orders/{external_order_id}"
        data = with_backoff(
            lambda: get_json(self._client, self.provider.value, path, headers=self._headers()),
            attempts=self.settings.verify_attempts,
            base_delay=self.settings.backoff_seconds,
            sleep=self._sleep,
        )

        status = str(data.get("status") or "unknown")
        amount = data.get("amount")
        return TransactionVerification(
            provider=self.provider.value,
            success=status in PAID_STATUSES,
            status=status,
            external_order_id=data.get("id") or external_order_id,
            external_transaction_id=data.get("payment_id"),
            amount=from_minor_units(amount) if amount is not None else None,
            message=data.get("message"),
            raw=data,
        )

    def process_refund(self, transaction_id: str, request: RefundInstruction) -> RefundResult:
        if self._mock:
            return self._mock.process_refund(transaction_id, request)

        body = {
            "amount": to_minor_units(request.amount),
            "notes": {"reason": request.reason, "order_id": request.order_id},
        }
        data = post_json(
            self._client,
            self.provider.value,
            f"/payments/{transaction_id}/refund",
            body,
            headers=self._headers(body),
        )

        status = data.get("status")
        return RefundResult(
            provider=self.provider.value,
            success=status in ("processed", "pending"),
            refund_id=data.get("id"),
            status=status,
            amount=request.amount,
            message=data.get("message"),
            raw=data,
        )

    def validate_webhook_payload(self, payload: Mapping[str, Any]) -> WebhookNotification:
        require_fields(payload, WEBHOOK_REQUIRED_FIELDS)
        event = str(payload["event"])
        outcome = _EVENT_OUTCOMES.get(event, WebhookOutcome.PENDING)
        amount = payload.get("amount")

        refund_id = refund_amount = reason = None
        if outcome is WebhookOutcome.REFUNDED:
            require_fields(payload, REFUND_WEBHOOK_FIELDS)
            refund_id = str(payload["refund_id"])
            refund_amount = from_minor_units(payload["refund_amount"])
            reason = (payload.get("notes") or {}).get("reason")

        return WebhookNotification(
            provider=self.provider.value,
            gateway_order_id=str(payload["order_id"]),
            transaction_id=str(payload["payment_id"]),
            status=str(payload["status"]),
            outcome=outcome,
            amount=from_minor_units(amount) if amount is not None else None,
            event=event,
            refund_id=refund_id,
            refund_amount=refund_amount,
            reason=reason,
            raw=dict(payload),
        )

    def verify_webhook_signature(self, payload: Mapping[str, Any], signature: str | None) -> bool:
        return checksum.verify_payload(payload, signature, self.settings.webhook_secret)

    def payment_methods(self) -> list[dict]:
        return [
            {"id": "upi", "name": "UPI", "description": "Pay using any UPI app", "enabled": True},
            {"id": "card", "name": "Credit/Debit Card", "description": "Visa, Mastercard, RuPay", "enabled": True},
            {"id": "netbanking", "name": "Net Banking", "description": "All major banks supported", "enabled": True},
            {"id": "wallet", "name": "Wallets", "description": "Popular mobile wallets", "enabled": True},
        ]

    def configuration_status(self) -> dict:
        client_id = self.settings.client_id or ""
        return {
            "provider": self.provider.value,
            "configured": not self.is_mock,
            "mock_mode": self.is_mock,
            "base_url": self.settings.base_url,
            "merchant_id": "NOT_CONFIGURED" if self.is_mock else f"{client_id[:4]}***",
        }
