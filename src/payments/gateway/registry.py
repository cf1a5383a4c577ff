"""Explicitly constructed set of gateway adapters, one per provider."""

from collections.abc import Iterator

import structlog

from payments.gateway.port import PaymentGatewayClient, Provider
from payments.gateway.paytm_adapter import PaytmGateway
from payments.gateway.settings import PaytmSettings, ZohoSettings
from payments.gateway.zoho_adapter import ZohoGateway

logger = structlog.get_logger(__name__)


class UnknownProviderError(LookupError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Unknown payment provider: {provider}")
        self.provider = provider


class GatewayRegistry:
    """Maps provider names to adapter instances.

    Built once by the composition root and handed to whatever needs a
    gateway. Tests build their own registry around mock-backed adapters.
    """

    def __init__(self, *gateways: PaymentGatewayClient) -> None:
        self._gateways: dict[str, PaymentGatewayClient] = {g.provider.value: g for g in gateways}

    @classmethod
    def from_env(cls) -> "GatewayRegistry":
        registry = cls(PaytmGateway(PaytmSettings.from_env()), ZohoGateway(ZohoSettings.from_env()))
        logger.info(
            "Payment gateways configured",
            providers={name: ("mock" if g.is_mock else "live") for name, g in registry._gateways.items()},
        )
        return registry

    def get(self, provider: str | Provider) -> PaymentGatewayClient:
        name = provider.value if isinstance(provider, Provider) else str(provider).lower()
        try:
            return self._gateways[name]
        except KeyError:
            raise UnknownProviderError(name) from None

    def __iter__(self) -> Iterator[PaymentGatewayClient]:
        return iter(self._gateways.values())

    def __contains__(self, provider: str) -> bool:
        return str(provider).lower() in self._gateways
