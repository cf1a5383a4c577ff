"""Outbound HTTP helpers shared by the live adapters.

Every call carries the adapter's timeout. Transport failures and non-2xx
answers become ``GatewayError``. Only idempotent reads go through
``with_backoff``; order-mutating calls (create, refund) are attempted once.
"""

import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import structlog

from payments.gateway.errors import GatewayError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def build_client(base_url: str, timeout: float) -> httpx.Client:
    return httpx.Client(base_url=base_url, timeout=timeout)


def post_json(
    client: httpx.Client,
    provider: str,
    path: str,
    body: dict,
    headers: dict | None = None,
    params: dict | None = None,
) -> dict[str, Any]:
    return _send(client, provider, "POST", path, json=body, headers=headers, params=params)


def get_json(client: httpx.Client, provider: str, path: str, headers: dict | None = None) -> dict[str, Any]:
    return _send(client, provider, "GET", path, headers=headers)


def _send(client: httpx.Client, provider: str, method: str, path: str, **kwargs) -> dict[str, Any]:
    try:
        response = client.request(method, path, **kwargs)
    except httpx.TimeoutException as exc:
        logger.error("Gateway request timed out", provider=provider, path=path)
        raise GatewayError(f"{provider} request to {path} timed out", provider=provider, retryable=True) from exc
    except httpx.TransportError as exc:
        logger.error("Gateway request failed", provider=provider, path=path, error=str(exc))
        raise GatewayError(f"{provider} request to {path} failed: {exc}", provider=provider, retryable=True) from exc

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.is_error:
        message = data.get("message") if isinstance(data, dict) else None
        logger.error("Gateway returned an error", provider=provider, path=path, status_code=response.status_code)
        raise GatewayError(
            f"{provider} API error: {message or response.reason_phrase}",
            provider=provider,
            raw=data if isinstance(data, dict) else {},
        )
    return data if isinstance(data, dict) else {"data": data}


def with_backoff(
    operation: Callable[[], T],
    attempts: int,
    base_delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying timeouts and transport failures with exponential backoff.

    ``operation`` runs at most ``attempts`` times; the last error is re-raised.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    attempt = 1
    while True:
        try:
            return operation()
        except GatewayError as exc:
            if not exc.retryable or attempt >= attempts:
                raise
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning("Retrying gateway read", attempt=attempt, delay=delay, error=exc.message)
            sleep(delay)
            attempt += 1


def post_form(client: httpx.Client, provider: str, path: str, form: dict) -> dict[str, Any]:
    return _send(client, provider, "POST", path, data=form)
