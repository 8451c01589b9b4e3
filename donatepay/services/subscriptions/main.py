"""HTTP surface for monthly donation subscriptions.

One endpoint accepts the donation form as JSON, answers CORS preflight
probes, and rejects every other method. The workflow itself lives in
`SubscriptionOrchestrator`.
"""

from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Header, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from donatepay.common.config import settings
from donatepay.common.logging import configure_logging, logger, request_context
from donatepay.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from donatepay.common.startup import log_startup_config
from donatepay.common.tracing import instrument_app, setup_tracing
from donatepay.services.subscriptions.errors import MethodNotAllowed
from donatepay.services.subscriptions.processor import StripeProcessor
from donatepay.services.subscriptions.schemas import ErrorResponse
from donatepay.services.subscriptions.service import SubscriptionOrchestrator

SUBSCRIPTION_PATH = "/create-subscription"

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings,
    [
        "stripe_secret_key",
        "stripe_api_version",
        "default_currency",
        "default_country",
        "allowed_origin",
        "compensation_policy",
        "tracing_enabled",
    ],
)
service = SubscriptionOrchestrator(
    StripeProcessor(settings.stripe_secret_key, settings.stripe_api_version),
    settings,
)

app = FastAPI(title="Monthly Donation Subscriptions")
instrument_app(app)


def cors_headers() -> dict[str, str]:
    """CORS headers scoped to the single deploying origin."""

    return {
        "Access-Control-Allow-Origin": settings.allowed_origin,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Vary": "Origin",
    }


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Answer unlisted methods on the subscription endpoint with the documented 405 body."""

    if exc.status_code == 405 and request.url.path == SUBSCRIPTION_PATH:
        return JSONResponse(
            status_code=405,
            content=ErrorResponse(error=MethodNotAllowed.message).model_dump(),
            headers=cors_headers(),
        )
    return await http_exception_handler(request, exc)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


@app.api_route(SUBSCRIPTION_PATH, methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def create_subscription(request: Request, x_correlation_id: str | None = Header(default=None)):
    """Create a monthly donation subscription.

    Returns the subscription status and, when the donor still has to
    authenticate the first payment, the client secret to finish it with.
    """

    headers = cors_headers()
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=headers)

    with request_context(x_correlation_id or str(uuid4())):
        body = await request.body() if request.method == "POST" else None
        status_code, payload = await service.handle(request.method, body)
    if status_code >= 500:
        logger.error("subscription request failed status_code=%s", status_code)
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
