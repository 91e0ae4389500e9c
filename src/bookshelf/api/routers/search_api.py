"""Search API Router - JSON endpoints for review search and analytics."""

import logging
import time

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from bookshelf.api.deps import get_analytics, get_search_service
from bookshelf.api.metrics import record_search
from bookshelf.api.middleware.rate_limiter import limiter
from bookshelf.api.middleware.request_logging import run_with_request_id
from bookshelf.core.config import settings
from bookshelf.search import (
    DEFAULT_HIGHLIGHT_CLASS,
    extract_snippets,
    highlight_search_terms,
)
from bookshelf.services.analytics import (
    ANON_SESSION_COOKIE,
    SearchAnalytics,
    get_or_set_anon_session_id,
)
from bookshelf.services.search import DEFAULT_SORT, ReviewSearchService

logger = logging.getLogger(__name__)


router = APIRouter()


def _parse_pos_int(value: str | None, default: int, *, min_v: int = 1) -> int:
    try:
        x = int(value) if value is not None else default
    except ValueError:
        x = default
    return max(x, min_v)


def _parse_tags(value: str | None) -> list[str]:
    return [t.strip() for t in (value or "").split(",") if t.strip()]


@router.get("/search")
@limiter.limit("100/minute")
async def api_search(
    request: Request,
    background_tasks: BackgroundTasks,
    q: str | None = None,
    tags: str | None = None,
    status: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    sort: str | None = None,
    service: ReviewSearchService = Depends(get_search_service),
    analytics: SearchAnalytics = Depends(get_analytics),
):
    """Search published reviews, ranked by relevance when a query is given."""
    started_at = time.perf_counter()
    query = (q or "").strip()
    if len(query) > settings.MAX_QUERY_LEN:
        query = query[: settings.MAX_QUERY_LEN]

    tag_slugs = _parse_tags(tags)
    reading_status = (status or "").strip()
    per_page = min(_parse_pos_int(limit, settings.RESULTS_LIMIT), settings.MAX_PER_PAGE)
    page_number = min(_parse_pos_int(page, 1), settings.MAX_PAGE)

    try:
        data = service.search(
            query,
            tags=tag_slugs,
            status=reading_status,
            page=page_number,
            limit=per_page,
            sort=sort or DEFAULT_SORT,
        )
    except Exception as e:
        logger.exception("Search API error")
        return JSONResponse(
            {
                "success": False,
                "error": "Failed to perform search",
                "message": str(e),
            },
            status_code=500,
        )

    total = data["data"]["totalDocs"]
    record_search(
        time.perf_counter() - started_at,
        cached=data.get("cached", False),
        total=total,
        has_query=bool(query),
    )

    response = JSONResponse(data)

    if query:
        session_id = get_or_set_anon_session_id(request, response)
        background_tasks.add_task(
            run_with_request_id,
            getattr(request.state, "request_id", "-"),
            analytics.track_search,
            session_id,
            query,
            tags=tag_slugs,
            status=reading_status,
            results_count=total,
        )

    return response


@router.get("/search/suggestions")
@limiter.limit("120/minute")
async def api_search_suggestions(
    request: Request,
    analytics: SearchAnalytics = Depends(get_analytics),
):
    """Recent searches of the caller's session plus the most popular queries."""
    session_id = request.cookies.get(ANON_SESSION_COOKIE)
    recent = analytics.recent_searches(session_id, 5) if session_id else []
    popular = [item["query"] for item in analytics.popular_queries(4)]
    return {"recent": recent, "popular": popular}


@router.get("/search/popular")
async def api_search_popular(
    limit: int = 10,
    analytics: SearchAnalytics = Depends(get_analytics),
):
    limit = min(max(limit, 1), settings.MAX_PER_PAGE)
    return {
        "queries": analytics.popular_queries(limit),
        "tags": analytics.popular_tags(limit),
    }


@router.get("/search/stats")
async def api_search_stats(
    request: Request,
    analytics: SearchAnalytics = Depends(get_analytics),
):
    return analytics.stats(request.cookies.get(ANON_SESSION_COOKIE))


@router.get("/tags")
async def api_tags(service: ReviewSearchService = Depends(get_search_service)):
    """All tags, for the tag filter."""
    return service.list_tags()


class HighlightRequest(BaseModel):
    text: str = Field(max_length=100_000)
    q: str = Field(default="", max_length=500)
    snippet_length: int = Field(default=150, ge=10, le=2000)
    max_snippets: int = Field(default=2, ge=1, le=10)
    highlight_class: str = Field(
        default=DEFAULT_HIGHLIGHT_CLASS, max_length=200, pattern=r"^[\w\s:/.-]*$"
    )


@router.post("/highlight")
@limiter.limit("60/minute")
async def api_highlight(request: Request, payload: HighlightRequest):
    """Highlight query terms in arbitrary text and cut result-preview snippets."""
    return {
        "highlighted": highlight_search_terms(
            payload.text, payload.q, payload.highlight_class
        ),
        "snippets": extract_snippets(
            payload.text, payload.q, payload.snippet_length, payload.max_snippets
        ),
    }
