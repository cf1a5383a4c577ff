"""FastAPI application for order and payment processing.

Serves /orders and /payments. Each request runs inside the domain context
its path prefix belongs to, with the domain and path bound to its log lines.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering
from payments.domain import payments
from protean.integrations.fastapi import register_exception_handlers
from shared.logging import add_context, clear_context, configure_logging

# PROTEAN_ENV selects the config overlay: "test" runs handlers inside the
# request, "production" leaves them to the Engine (src/server.py).
configure_logging()

ordering.init()
payments.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
    "/payments": payments,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="ZM Commerce API",
    description="Order lifecycle and payment gateway reconciliation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        add_context(domain=domain.name, path=request.url.path)
        try:
            with domain.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # Health check and docs run outside any domain
    return await call_next(request)


# ---------------------------------------------------------------------------
# Gateways, error handlers and routers
# ---------------------------------------------------------------------------
from ordering.api.routes import order_router  # noqa: E402
from ordering.order.payment_events import PaymentEventRelay  # noqa: E402
from payments.api.errors import register_gateway_exception_handlers  # noqa: E402
from payments.api.routes import payment_router  # noqa: E402
from payments.gateway.registry import GatewayRegistry  # noqa: E402
from payments.transaction.service import PaymentService  # noqa: E402

# Settled payments and refunds reconcile their orders in the Ordering domain
app.state.payment_service = PaymentService(GatewayRegistry.from_env(), publish=PaymentEventRelay(ordering))

register_exception_handlers(app)
register_gateway_exception_handlers(app)

app.include_router(order_router)
app.include_router(payment_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "ordering": {"name": ordering.name},
                "payments": {"name": payments.name},
            },
            "gateways": {
                gateway.provider.value: "mock" if gateway.is_mock else "live"
                for gateway in app.state.payment_service.registry
            },
        }
    )
