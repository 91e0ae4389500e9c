# Request Logging Middleware with Correlation IDs
# The current request ID is kept in a context variable so that log records
# emitted by services (catalog, analytics) carry it too.

import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("bookshelf.api")

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Attach the current request ID to every record as `request_id`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with timing, and echo the request ID."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        started_at = time.perf_counter()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip(request),
        }

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                extra={**fields, "duration_ms": _elapsed_ms(started_at)},
            )
            raise
        finally:
            request_id_var.reset(token)

        logger.info(
            "Request completed",
            extra={
                **fields,
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": _elapsed_ms(started_at),
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(started_at: float) -> float:
    return round((time.perf_counter() - started_at) * 1000, 2)


def client_ip(request: Request) -> str:
    """Client address, honouring reverse proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (
        request.client.host if request.client else "unknown"
    )


def run_with_request_id(request_id: str, func, *args, **kwargs):
    """Call func with request_id bound, for work that outlives the request."""
    token = request_id_var.set(request_id)
    try:
        return func(*args, **kwargs)
    finally:
        request_id_var.reset(token)
