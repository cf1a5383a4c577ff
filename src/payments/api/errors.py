"""HTTP translation of gateway errors.

Protean's own exceptions (``ValidationError``, ``ObjectNotFoundError``) are
handled by ``protean.integrations.fastapi.register_exception_handlers``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from payments.gateway.errors import ChecksumMismatchError, GatewayError
from payments.gateway.registry import UnknownProviderError

logger = structlog.get_logger(__name__)


def register_gateway_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ChecksumMismatchError)
    async def checksum_mismatch(request: Request, exc: ChecksumMismatchError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": str(exc)})

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        logger.error("Gateway error", provider=exc.provider, message=exc.message, path=request.url.path)
        return JSONResponse(status_code=502, content={"error": exc.message, "provider": exc.provider})

    @app.exception_handler(UnknownProviderError)
    async def unknown_provider(request: Request, exc: UnknownProviderError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})
