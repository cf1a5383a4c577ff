"""Mock gateway backend for environments without live credentials.

Adapters route every operation here when their settings carry no usable
credentials. Responses have the same shape as live ones and are tagged with
``is_mock=True``; nothing leaves the process.

Verification outcomes come from an injectable success source, so tests can
pin them down instead of relying on the default 90% random policy.
"""

import random
import time
from collections.abc import Callable
from urllib.parse import urlencode
from uuid import uuid4

import structlog

from payments.gateway import checksum
from payments.gateway.port import (
    GatewayOrder,
    GatewayOrderRequest,
    Provider,
    RefundInstruction,
    RefundResult,
    TransactionVerification,
)

logger = structlog.get_logger(__name__)

MOCK_SIGNING_KEY = "mock-signing-key"
DEFAULT_SUCCESS_RATE = 0.9


def random_success(rate: float = DEFAULT_SUCCESS_RATE, rng: random.Random | None = None) -> Callable[[], bool]:
    """Success source that succeeds with probability ``rate``."""
    generator = rng or random.Random()
    return lambda: generator.random() < rate


def always_succeed() -> bool:
    return True


def always_fail() -> bool:
    return False


def _stamp() -> int:
    return int(time.time() * 1000)


class MockGatewayBackend:
    """Synthetic responses for a single provider."""

    def __init__(
        self,
        provider: Provider,
        client_url: str = "http://localhost:8080",
        success_source: Callable[[], bool] | None = None,
    ) -> None:
        self.provider = provider
        self.client_url = client_url.rstrip("/")
        self.success_source = success_source or random_success()
        self.calls: list[dict] = []

    def _payment_url(self, request: GatewayOrderRequest, mock_order_id: str, txn_token: str | None) -> str:
        params = {"orderId": request.order_id, "mockOrderId": mock_order_id, "amount": request.amount}
        if txn_token:
            params["txnToken"] = txn_token
        path = "/mock-payment/paytm" if self.provider is Provider.PAYTM else "/mock-payment"
        return f"{self.client_url}{path}?{urlencode(params)}"

    def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        self.calls.append({"method": "create_order", "order_id": request.order_id, "amount": request.amount})

        if self.provider is Provider.PAYTM:
            mock_order_id = request.order_number or f"MOCK_ORD_{_stamp()}"
            txn_token = f"MOCK_TXN_{_stamp()}_{uuid4().hex[:13]}"
        else:
            mock_order_id = f"mock_{_stamp()}_{uuid4().hex[:9]}"
            txn_token = None

        params = {"orderId": mock_order_id, "amount": request.amount, "currency": request.currency}
        logger.info(
            "Creating mock gateway order",
            provider=self.provider.value,
            order_id=request.order_id,
            mock_order_id=mock_order_id,
            amount=request.amount,
        )
        return GatewayOrder(
            provider=self.provider.value,
            external_order_id=mock_order_id,
            payment_url=self._payment_url(request, mock_order_id, txn_token),
            amount=request.amount,
            currency=request.currency,
            checksum=checksum.sign(params, MOCK_SIGNING_KEY),
            txn_token=txn_token,
            raw={"status": "created", "receipt": request.order_number},
            is_mock=True,
        )

    def verify_transaction(self, external_order_id: str) -> TransactionVerification:
        self.calls.append({"method": "verify_transaction", "external_order_id": external_order_id})

        succeeded = bool(self.success_source())
        if self.provider is Provider.PAYTM:
            status = "TXN_SUCCESS" if succeeded else "TXN_FAILURE"
        else:
            status = "captured" if succeeded else "failed"

        logger.info(
            "Verifying mock gateway transaction",
            provider=self.provider.value,
            external_order_id=external_order_id,
            success=succeeded,
        )
        return TransactionVerification(
            provider=self.provider.value,
            success=succeeded,
            status=status,
            external_order_id=external_order_id,
            external_transaction_id=f"MOCK_TXN_{_stamp()}",
            message="Transaction successful" if succeeded else "Transaction failed",
            raw={"paymentMode": "MOCK_UPI", "bankName": "MOCK_BANK"},
            is_mock=True,
        )

    def process_refund(self, transaction_id: str, request: RefundInstruction) -> RefundResult:
        self.calls.append(
            {"method": "process_refund", "transaction_id": transaction_id, "amount": request.amount}
        )
        logger.info(
            "Processing mock gateway refund",
            provider=self.provider.value,
            transaction_id=transaction_id,
            order_id=request.order_id,
            amount=request.amount,
        )
        return RefundResult(
            provider=self.provider.value,
            success=True,
            refund_id=f"MOCK_REFUND_{_stamp()}",
            status="TXN_SUCCESS" if self.provider is Provider.PAYTM else "processed",
            amount=request.amount,
            message="Mock refund processed for testing",
            is_mock=True,
        )
