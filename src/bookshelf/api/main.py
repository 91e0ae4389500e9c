import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi.errors import RateLimitExceeded

from bookshelf.core.config import settings
from bookshelf.api.routers import search_api, system
from bookshelf.api.middleware.rate_limiter import limiter, rate_limit_exceeded_handler
from bookshelf.api.middleware.request_logging import (
    RequestIdFilter,
    RequestLoggingMiddleware,
)
from bookshelf.api.metrics import router as metrics_router, MetricsMiddleware
from bookshelf.services.analytics import SearchAnalytics, build_analytics
from bookshelf.services.catalog import ReviewCatalog
from bookshelf.services.search import ReviewSearchService


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def configure_logging() -> None:
    """Root logging for local runs; every line carries the request ID."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO, format=LOG_FORMAT
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())


def create_app(
    search_service: ReviewSearchService | None = None,
    analytics: SearchAnalytics | None = None,
) -> FastAPI:
    """
    Build the API application.

    Services default to the configured catalog file and analytics backend;
    pass them in to run against other data (tests, previews).
    """
    if search_service is None:
        catalog = ReviewCatalog.from_json_file(settings.REVIEWS_PATH)
        search_service = ReviewSearchService(catalog)

    app = FastAPI(
        title="Bookshelf Search API",
        version="0.1.0",
        description="Review search with field-weighted relevance, highlighting and snippets.",
        openapi_tags=[
            {"name": "search", "description": "Review search and discovery endpoints"},
            {"name": "system", "description": "Health checks and system info"},
            {"name": "metrics", "description": "Prometheus metrics"},
        ],
    )
    app.state.search_service = search_service
    app.state.analytics = analytics or build_analytics()

    # --- Rate Limiter ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Middleware (order matters: last added = first executed) ---
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    # --- Routers ---
    app.include_router(system.router, tags=["system"])
    app.include_router(search_api.router, prefix="/api/v1", tags=["search"])
    app.include_router(metrics_router, prefix="/api/v1", tags=["metrics"])

    return app


app = create_app()


if __name__ == "__main__":
    configure_logging()
    uvicorn.run(
        "bookshelf.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
