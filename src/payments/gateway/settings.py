"""Gateway configuration.

Settings are plain frozen dataclasses built explicitly (``from_env()`` reads
the process environment once, at composition time). Each adapter takes its
settings as a constructor argument, so several independently configured
adapters can coexist in one process.
"""

import os
from dataclasses import dataclass

from payments.gateway.errors import ConfigurationError

PAYTM_MERCHANT_ID_PLACEHOLDER = "MERCHANT_ID_PLACEHOLDER"
PAYTM_MERCHANT_KEY_PLACEHOLDER = "MERCHANT_KEY_PLACEHOLDER"

PAYTM_STAGING_URL = "https://securegw-stage.paytm.in"
PAYTM_PRODUCTION_URL = "https://securegw.paytm.in"

ZOHO_PRODUCTION_URL = "https://payments.zoho.com/api/v1"
ZOHO_SANDBOX_URL = "https://payments-sandbox.zoho.com/api/v1"

DEFAULT_CLIENT_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_SECONDS = 10.0


def _is_production() -> bool:
    return os.environ.get("PROTEAN_ENV") == "production"


@dataclass(frozen=True)
class PaytmSettings:
    merchant_id: str | None = None
    merchant_key: str | None = None
    website: str = "WEBSTAGING"
    channel_id: str = "WEB"
    industry_type: str = "Retail"
    callback_url: str = "http://localhost:5000/api/payments/paytm/callback"
    client_url: str = DEFAULT_CLIENT_URL
    base_url: str = PAYTM_STAGING_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    verify_attempts: int = 3
    backoff_seconds: float = 0.5

    @classmethod
    def from_env(cls) -> "PaytmSettings":
        merchant_id = os.environ.get("PAYTM_MERCHANT_ID")
        server_url = os.environ.get("SERVER_URL", "http://localhost:5000")
        return cls(
            merchant_id=merchant_id,
            merchant_key=os.environ.get("PAYTM_MERCHANT_KEY"),
            website=os.environ.get("PAYTM_WEBSITE", "WEBSTAGING"),
            channel_id=os.environ.get("PAYTM_CHANNEL_ID", "WEB"),
            industry_type=os.environ.get("PAYTM_INDUSTRY_TYPE", "Retail"),
            callback_url=os.environ.get("PAYTM_CALLBACK_URL", f"{server_url}/api/payments/paytm/callback"),
            client_url=os.environ.get("CLIENT_URL", DEFAULT_CLIENT_URL),
            base_url=PAYTM_PRODUCTION_URL if _is_production() and merchant_id else PAYTM_STAGING_URL,
            timeout=float(os.environ.get("PAYTM_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
        )

    def require_live_credentials(self) -> None:
        """Raise ``ConfigurationError`` unless real merchant credentials are set."""
        if not self.merchant_id or self.merchant_id == PAYTM_MERCHANT_ID_PLACEHOLDER:
            raise ConfigurationError("PAYTM_MERCHANT_ID is not configured")
        if not self.merchant_key or self.merchant_key == PAYTM_MERCHANT_KEY_PLACEHOLDER:
            raise ConfigurationError("PAYTM_MERCHANT_KEY is not configured")


@dataclass(frozen=True)
class ZohoSettings:
    client_id: str | None = None
    client_secret: str | None = None
    webhook_secret: str | None = None
    base_url: str = ZOHO_SANDBOX_URL
    client_url: str = DEFAULT_CLIENT_URL
    force_mock: bool = False
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    verify_attempts: int = 3
    backoff_seconds: float = 0.5

    @property
    def callback_url(self) -> str:
        return f"{self.client_url}/payment/callback"

    @classmethod
    def from_env(cls) -> "ZohoSettings":
        if _is_production():
            base_url = os.environ.get("ZOHO_PAYMENTS_BASE_URL", ZOHO_PRODUCTION_URL)
        else:
            base_url = os.environ.get("ZOHO_PAYMENTS_SANDBOX_URL", ZOHO_SANDBOX_URL)
        return cls(
            client_id=os.environ.get("ZOHO_PAYMENTS_CLIENT_ID"),
            client_secret=os.environ.get("ZOHO_PAYMENTS_CLIENT_SECRET"),
            webhook_secret=os.environ.get("ZOHO_PAYMENTS_WEBHOOK_SECRET"),
            base_url=base_url,
            client_url=os.environ.get("CLIENT_URL", DEFAULT_CLIENT_URL),
            force_mock=os.environ.get("USE_MOCK_PAYMENTS") == "true",
            timeout=float(os.environ.get("ZOHO_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)),
        )

    def require_live_credentials(self) -> None:
        if self.force_mock:
            raise ConfigurationError("USE_MOCK_PAYMENTS is enabled")
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("ZOHO_PAYMENTS_CLIENT_ID / ZOHO_PAYMENTS_CLIENT_SECRET are not configured")
