"""Request/response signing shared by every gateway adapter.

Two schemes are in use:

- Sorted-parameter checksum (provider A and all outbound requests): keys are
  sorted ascending, joined as ``k1=v1&k2=v2`` and signed with HMAC-SHA256.
  Nested mappings and lists are rendered as compact key-sorted JSON, so the
  canonical string never depends on insertion order.
- Payload signature (provider B webhooks): HMAC-SHA256 over the compact JSON
  serialization of the payload as received.

Both verifications compare digests in constant time and fail closed.
"""

import hashlib
import hmac
import json
from collections.abc import Mapping
from typing import Any

import structlog

from payments.gateway.errors import ConfigurationError

logger = structlog.get_logger(__name__)


def _require_secret(secret: str | None) -> bytes:
    if not secret:
        raise ConfigurationError("Signing secret is not configured")
    return secret.encode("utf-8")


def _canonical_value(value: Any) -> str:
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def canonical_string(params: Mapping[str, Any]) -> str:
    """Render ``params`` as the ``k=v&k=v`` string that gets signed."""
    return "&".join(f"{key}={_canonical_value(params[key])}" for key in sorted(params))


def sign(params: Mapping[str, Any], secret: str | None) -> str:
    """Return the lowercase hex HMAC-SHA256 checksum of ``params``."""
    key = _require_secret(secret)
    return hmac.new(key, canonical_string(params).encode("utf-8"), hashlib.sha256).hexdigest()


def verify(params: Mapping[str, Any], signature: str | None, secret: str | None) -> bool:
    """Check ``signature`` against ``params``. Never raises."""
    if not signature:
        return False
    try:
        expected = sign(params, secret)
        return hmac.compare_digest(expected, signature.lower())
    except Exception as exc:  # noqa: BLE001
        logger.warning("Checksum verification failed", error=str(exc))
        return False


def serialize_payload(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def sign_payload(payload: Mapping[str, Any], secret: str | None) -> str:
    """Return the hex HMAC-SHA256 of the JSON-serialized ``payload``."""
    key = _require_secret(secret)
    return hmac.new(key, serialize_payload(payload).encode("utf-8"), hashlib.sha256).hexdigest()


def verify_payload(payload: Mapping[str, Any], signature: str | None, secret: str | None) -> bool:
    """Constant-time check of a payload signature. Never raises."""
    if not signature:
        return False
    try:
        expected = bytes.fromhex(sign_payload(payload, secret))
        received = bytes.fromhex(signature)
        return hmac.compare_digest(expected, received)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Payload signature verification failed", error=str(exc))
        return False
