"""Payment gateway port (abstract interface).

Defines the contract every provider adapter implements, plus the typed
request/response structures exchanged at the gateway boundary. Results are
tagged with the provider name and with ``is_mock`` so callers never have to
guess where an answer came from.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from payments.gateway.errors import WebhookValidationError


class Provider(Enum):
    PAYTM = "paytm"
    ZOHO = "zoho"


class WebhookOutcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    AUTHORIZED = "authorized"
    REFUNDED = "refunded"


def to_minor_units(amount: float | Decimal | str) -> int:
    """Convert a major-unit amount (rupees) to minor units (paisa)."""
    major = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return int(major * 100)


def from_minor_units(amount: int | str) -> float:
    return float(Decimal(str(amount)) / 100)


def format_amount(amount: float | Decimal | str) -> str:
    """Render an amount with exactly two decimals, as the providers expect."""
    return str(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class GatewayOrderRequest:
    """What the checkout flow asks a gateway to collect."""

    order_id: str
    order_number: str
    amount: float
    customer_name: str
    customer_email: str
    customer_phone: str = ""
    currency: str = "INR"


@dataclass(frozen=True)
class GatewayOrder:
    """A payment order created at the provider."""

    provider: str
    external_order_id: str
    payment_url: str
    amount: float
    currency: str
    checksum: str | None = None
    txn_token: str | None = None
    raw: dict = field(default_factory=dict)
    is_mock: bool = False


@dataclass(frozen=True)
class TransactionVerification:
    """The provider's view of a transaction, from a status poll."""

    provider: str
    success: bool
    status: str
    external_order_id: str
    external_transaction_id: str | None = None
    amount: float | None = None
    message: str | None = None
    raw: dict = field(default_factory=dict)
    is_mock: bool = False


@dataclass(frozen=True)
class RefundInstruction:
    order_id: str
    gateway_order_id: str
    amount: float
    reason: str = "Customer requested refund"


@dataclass(frozen=True)
class RefundResult:
    provider: str
    success: bool
    refund_id: str | None = None
    status: str | None = None
    amount: float | None = None
    message: str | None = None
    raw: dict = field(default_factory=dict)
    is_mock: bool = False


@dataclass(frozen=True)
class WebhookNotification:
    """A validated, provider-neutral view of an inbound webhook."""

    provider: str
    gateway_order_id: str
    transaction_id: str
    status: str
    outcome: WebhookOutcome
    amount: float | None = None
    event: str | None = None
    refund_id: str | None = None
    refund_amount: float | None = None
    reason: str | None = None
    raw: dict = field(default_factory=dict)


def require_fields(payload: Mapping[str, Any], required: tuple[str, ...]) -> None:
    """Raise ``WebhookValidationError`` for the first absent or empty field."""
    for name in required:
        value = payload.get(name)
        if value is None or value == "":
            raise WebhookValidationError(name)


class PaymentGatewayClient(ABC):
    """Abstract payment gateway interface."""

    provider: Provider
    # inbound webhook header carrying the signature
    signature_header: str

    @property
    @abstractmethod
    def is_mock(self) -> bool:
        """Whether every operation is served by the mock backend."""
        ...

    @abstractmethod
    def create_order(self, request: GatewayOrderRequest) -> GatewayOrder:
        """Create a payment order at the provider."""
        ...

    @abstractmethod
    def verify_transaction(self, external_order_id: str) -> TransactionVerification:
        """Poll the provider for the status of a payment order."""
        ...

    @abstractmethod
    def process_refund(self, transaction_id: str, request: RefundInstruction) -> RefundResult:
        """Refund (part of) a captured transaction."""
        ...

    @abstractmethod
    def validate_webhook_payload(self, payload: Mapping[str, Any]) -> WebhookNotification:
        """Check the provider's mandated webhook fields and normalize the payload."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: Mapping[str, Any], signature: str | None) -> bool:
        """Verify that a webhook payload is authentically from the provider."""
        ...

    @abstractmethod
    def payment_methods(self) -> list[dict]:
        """Payment methods offered through this provider."""
        ...

    @abstractmethod
    def configuration_status(self) -> dict:
        """Non-secret summary of how the adapter is configured."""
        ...
