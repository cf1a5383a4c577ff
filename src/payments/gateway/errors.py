"""Gateway error taxonomy.

Raised by the gateway adapters and the payment application service. HTTP
routes translate these into responses; nothing here is retried automatically.
"""

from protean.exceptions import ValidationError


class ConfigurationError(Exception):
    """Live credentials are missing or still set to a known placeholder.

    Non-fatal for the adapters: catching it at construction switches the
    adapter into mock mode.
    """


class GatewayError(Exception):
    """A live provider answered with a non-success indicator, or could not be reached."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        raw: dict | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.raw = raw or {}
        self.retryable = retryable


class ChecksumMismatchError(Exception):
    """A request or webhook signature did not verify."""

    def __init__(self, provider: str, gateway_order_id: str | None = None) -> None:
        super().__init__(f"Invalid {provider} signature")
        self.provider = provider
        self.gateway_order_id = gateway_order_id


class WebhookValidationError(ValidationError):
    """A webhook payload is missing a field the provider mandates."""

    def __init__(self, missing_field: str) -> None:
        self.missing_field = missing_field
        super().__init__({missing_field: [f"Missing required field: {missing_field}"]})
