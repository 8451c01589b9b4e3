"""Structured JSON logging with request context fields."""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from donatepay.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
customer_id_ctx: ContextVar[str] = ContextVar("customer_id", default="")
subscription_id_ctx: ContextVar[str] = ContextVar("subscription_id", default="")


class ContextFilter(logging.Filter):
    """Inject service and correlation identifiers into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.customer_id = customer_id_ctx.get()
        record.subscription_id = subscription_id_ctx.get()
        return True


def configure_logging() -> None:
    """Configure root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(customer_id)s "
        "%(subscription_id)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)
    root.addFilter(context_filter)


@contextmanager
def request_context(trace_id: str):
    """Bind a fresh trace id and clear customer/subscription ids for one request."""

    tokens = [
        (trace_id_ctx, trace_id_ctx.set(trace_id)),
        (customer_id_ctx, customer_id_ctx.set("")),
        (subscription_id_ctx, subscription_id_ctx.set("")),
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


logger = logging.getLogger("donatepay")
