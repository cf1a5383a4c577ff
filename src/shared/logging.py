"""Process-wide logging for the API app, the Engine runner and the sweeper.

structlog renders every event; stdlib logging carries library output through
the same handlers. Gateway credentials and signatures never reach a log line:
``redact_secrets`` masks them before rendering, wherever they appear in the
event dict.
"""

import logging
import os
import sys
from collections.abc import Mapping, MutableMapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

LOG_FILE = "zm-commerce.log"
ERROR_LOG_FILE = "zm-commerce_error.log"
MAX_LOG_BYTES = 10 * 1024 * 1024

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_QUIET_LOGGERS = ("protean", "httpx", "httpcore", "asyncio", "uvicorn.access")

SECRET_KEYS = frozenset(
    {
        "merchant_key",
        "client_secret",
        "webhook_secret",
        "access_token",
        "signature",
        "checksum",
        "checksumhash",
        "authorization",
        "x-signature",
    }
)
MASK = "***"


def environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def log_level() -> str:
    """``LOG_LEVEL`` wins; otherwise the environment decides."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(environment(), "INFO")).upper()


def _mask(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: MASK if str(key).lower() in SECRET_KEYS else _mask(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_mask(item) for item in value]
    return value


def redact_secrets(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """structlog processor masking gateway secrets at any nesting depth."""
    for key in list(event_dict):
        if key.lower() in SECRET_KEYS:
            event_dict[key] = MASK
        else:
            event_dict[key] = _mask(event_dict[key])
    return event_dict


def _file_handlers(directory: str, level: str) -> list[logging.Handler]:
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)

    everything = RotatingFileHandler(path / LOG_FILE, maxBytes=MAX_LOG_BYTES, backupCount=5, encoding="utf-8")
    everything.setLevel(level)
    errors = RotatingFileHandler(path / ERROR_LOG_FILE, maxBytes=MAX_LOG_BYTES, backupCount=5, encoding="utf-8")
    errors.setLevel(logging.ERROR)
    return [everything, errors]


def configure_stdlib(log_dir: str | None = None) -> None:
    """Route stdlib logging to stdout, plus rotating files when a log directory is set."""
    level = log_level()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    directory = log_dir or os.getenv("LOG_DIR")
    if directory:
        handlers.extend(_file_handlers(directory, level))

    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_structlog() -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if environment() in ("production", "staging")
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | None = None) -> None:
    """Configure stdlib and structlog. Called once per process by each entry point."""
    configure_stdlib(log_dir)
    configure_structlog()


def add_context(**kwargs: Any) -> None:
    """Bind key/values to every log line emitted by the current request or task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
