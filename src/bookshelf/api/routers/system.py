"""
System Router

Health check endpoints:
- /health: Simple health for load balancers
- /health/live: Liveness probe (process alive)
- /health/ready: Readiness probe (dependencies healthy)
"""

import logging

import redis
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from bookshelf.api.deps import get_search_service
from bookshelf.services.analytics import RedisAnalyticsStore
from bookshelf.services.search import ReviewSearchService

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_analytics_store(request: Request) -> bool:
    """Ping Redis when analytics are stored there; memory stores are always up."""
    store = request.app.state.analytics.store
    if not isinstance(store, RedisAnalyticsStore):
        return True
    try:
        return bool(store.redis.ping())
    except redis.RedisError as e:
        logger.warning(f"Analytics store unreachable: {e}")
        return False


@router.get("/health")
async def health():
    """Simple health check for load balancers."""
    return {"status": "ok"}


@router.get("/health/live")
async def liveness():
    """Liveness probe - is the process running?"""
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness(
    request: Request,
    service: ReviewSearchService = Depends(get_search_service),
):
    """Readiness probe - are dependencies healthy?"""
    checks = {
        "catalog": "ok" if len(service.catalog) > 0 else "empty",
        "analytics": "ok" if _check_analytics_store(request) else "unhealthy",
    }
    # An empty catalog still serves (empty) results
    healthy = checks["analytics"] == "ok"

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "unhealthy", "checks": checks},
    )


@router.get("/api/v1/stats")
async def api_stats(service: ReviewSearchService = Depends(get_search_service)):
    """Return catalog and cache stats."""
    return {
        "index": service.get_index_stats(),
        "cache": {"size": service.cache.stats()["size"]},
    }
