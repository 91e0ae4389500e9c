# Prometheus Metrics for FastAPI
# Provides /metrics endpoint for scraping

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from fastapi import APIRouter, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import time

router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status"]
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge("http_requests_active", "Number of active HTTP requests")

# Search-specific metrics
SEARCH_COUNT = Counter(
    "review_search_requests_total",
    "Total review search requests",
    ["cached"],
)

SEARCH_LATENCY = Histogram(
    "review_search_duration_seconds",
    "Review search latency",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0],
)

SEARCH_ZERO_RESULTS = Counter(
    "review_search_zero_results_total",
    "Searches with a query that returned no reviews",
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path.endswith("/metrics"):
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start_time = time.time()

        try:
            response = await call_next(request)

            duration = time.time() - start_time
            path = self._normalize_path(request.url.path)

            REQUEST_COUNT.labels(
                method=request.method, path=path, status=response.status_code
            ).inc()
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration)

            return response
        finally:
            ACTIVE_REQUESTS.dec()

    def _normalize_path(self, path: str) -> str:
        """Normalize path to reduce cardinality."""
        if path.startswith("/api/"):
            return path
        if path.startswith("/health"):
            return "/health"
        return "other"


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_search(duration: float, *, cached: bool, total: int, has_query: bool):
    """Record search-specific metrics."""
    SEARCH_COUNT.labels(cached=str(cached).lower()).inc()
    SEARCH_LATENCY.observe(duration)
    if has_query and total == 0:
        SEARCH_ZERO_RESULTS.inc()
