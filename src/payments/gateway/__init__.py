"""Payment gateway adapters.

``PaytmGateway`` and ``ZohoGateway`` implement ``PaymentGatewayClient``.
Each falls back to the mock backend when its settings carry no live
credentials. ``GatewayRegistry`` groups the configured adapters.
"""

from payments.gateway.errors import (
    ChecksumMismatchError,
    ConfigurationError,
    GatewayError,
    WebhookValidationError,
)
from payments.gateway.port import PaymentGatewayClient, Provider
from payments.gateway.registry import GatewayRegistry, UnknownProviderError

__all__ = [
    "ChecksumMismatchError",
    "ConfigurationError",
    "GatewayError",
    "GatewayRegistry",
    "PaymentGatewayClient",
    "Provider",
    "UnknownProviderError",
    "WebhookValidationError",
]
