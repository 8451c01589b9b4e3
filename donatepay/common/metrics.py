"""Prometheus metric definitions for the donation service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


donation_requests_total = Counter(
    "donation_requests_total",
    "Total subscription requests that passed validation",
    ["service"],
)
donation_outcomes_total = Counter(
    "donation_outcomes_total",
    "Terminal subscription request outcomes",
    ["service", "outcome"],
)
validation_failures_total = Counter(
    "validation_failures_total",
    "Requests rejected before any remote call",
    ["service", "error_type"],
)
saga_step_duration_seconds = Histogram(
    "saga_step_duration_seconds",
    "Duration of one saga step including its remote calls",
    ["service", "step"],
)
saga_step_failures_total = Counter(
    "saga_step_failures_total",
    "Saga steps that raised",
    ["service", "step"],
)
saga_compensations_total = Counter(
    "saga_compensations_total",
    "Compensating actions executed after a saga failure",
    ["service", "step", "result"],
)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
