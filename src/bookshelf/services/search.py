import copy
import logging
import math
from datetime import datetime
from typing import Any, Callable

from bookshelf.core.config import settings
from bookshelf.models import READING_STATUSES, Review
from bookshelf.search import (
    calculate_relevance_score,
    extract_snippets,
    highlight_search_terms,
)
from bookshelf.services.cache import SearchCache, generate_cache_key
from bookshelf.services.catalog import ReviewCatalog

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-publishedDate"

# Fields matched by the query filter (content is scored but not filtered on)
FILTER_FIELDS = ("title", "author", "excerpt", "genre")

SORT_KEYS: dict[str, Callable[[Review], Any]] = {
    "publishedDate": lambda r: r.published_date or datetime.min,
    "title": lambda r: (r.title or "").lower(),
    "author": lambda r: (r.author or "").lower(),
    "rating": lambda r: r.rating if r.rating is not None else -1.0,
}


def _sort_reviews(reviews: list[Review], sort: str) -> list[Review]:
    descending = sort.startswith("-")
    name = sort.lstrip("-")
    key = SORT_KEYS.get(name)
    if key is None:
        logger.debug(f"Unknown sort field '{name}', using {DEFAULT_SORT}")
        key, descending = SORT_KEYS["publishedDate"], True
    return sorted(reviews, key=key, reverse=descending)


class ReviewSearchService:
    """
    Review search over the in-memory catalog.

    Filters published reviews by query, tags and reading status, ranks them
    by relevance when a query is given, and decorates each hit with a
    highlighted title and excerpt snippets.
    """

    def __init__(
        self,
        catalog: ReviewCatalog,
        cache: SearchCache | None = None,
        snippet_length: int = settings.SNIPPET_LENGTH,
        max_snippets: int = settings.MAX_SNIPPETS,
    ):
        self.catalog = catalog
        if cache is None:
            cache = SearchCache(
                default_ttl=settings.SEARCH_CACHE_TTL,
                maxsize=settings.SEARCH_CACHE_MAXSIZE,
            )
        self.cache = cache
        self.snippet_length = snippet_length
        self.max_snippets = max_snippets

    def search(
        self,
        q: str = "",
        tags: list[str] | None = None,
        status: str = "",
        page: int = 1,
        limit: int = 10,
        sort: str = DEFAULT_SORT,
    ) -> dict[str, Any]:
        tags = list(tags or [])
        page = max(int(page), 1)
        limit = max(int(limit), 1)
        sort = sort or DEFAULT_SORT

        cache_key = generate_cache_key(
            q=q, tags=tags, status=status, page=page, limit=limit, sort=sort
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            # Entries are shared; hand out a copy echoing this caller's query
            response = copy.deepcopy(cached)
            response["query"]["q"] = q
            response["cached"] = True
            return response

        query = (q or "").strip()
        reviews = self._filter(query, tags, status)
        reviews = _sort_reviews(reviews, sort)

        scored = [
            (review, calculate_relevance_score(review.search_fields(), query))
            for review in reviews
        ]
        if query:
            # Stable: equal scores keep the requested sort order
            scored.sort(key=lambda item: item[1], reverse=True)

        total = len(scored)
        total_pages = max(math.ceil(total / limit), 1)
        offset = (page - 1) * limit
        page_items = scored[offset : offset + limit]

        response = {
            "success": True,
            "data": {
                "docs": [self._format_hit(r, score, query) for r, score in page_items],
                "totalDocs": total,
                "totalPages": total_pages,
                "page": page,
                "hasPrevPage": page > 1,
                "hasNextPage": page < total_pages,
                "prevPage": page - 1 if page > 1 else None,
                "nextPage": page + 1 if page < total_pages else None,
            },
            "query": {
                "q": q,
                "tags": tags,
                "status": status,
                "page": page,
                "limit": limit,
                "sort": sort,
            },
        }

        self.cache.set(cache_key, copy.deepcopy(response))
        return response

    def _filter(self, query: str, tags: list[str], status: str) -> list[Review]:
        reviews = self.catalog.published()

        if query:
            needle = query.lower()
            reviews = [
                r
                for r in reviews
                if any(needle in (getattr(r, f) or "").lower() for f in FILTER_FIELDS)
            ]

        # Unknown tag slugs are ignored; no known slug means no tag filter
        known = set(tags) & self.catalog.tag_slugs()
        if known:
            reviews = [r for r in reviews if any(t.slug in known for t in r.tags)]

        if status in READING_STATUSES:
            reviews = [r for r in reviews if r.reading_status == status]

        return reviews

    def _format_hit(self, review: Review, score: float, query: str) -> dict[str, Any]:
        hit = review.to_dict()
        hit["searchScore"] = score
        if query:
            hit["highlightedTitle"] = highlight_search_terms(review.title, query)
            hit["snippets"] = [
                highlight_search_terms(snippet, query)
                for snippet in extract_snippets(
                    review.content or review.excerpt,
                    query,
                    self.snippet_length,
                    self.max_snippets,
                )
            ]
        return hit

    def list_tags(self) -> dict[str, Any]:
        docs = [t.to_dict() for t in self.catalog.tags()]
        return {"success": True, "docs": docs, "totalDocs": len(docs)}

    def get_index_stats(self) -> dict[str, int]:
        return {
            "reviews": len(self.catalog),
            "published": len(self.catalog.published()),
            "tags": len(self.catalog.tags()),
        }
