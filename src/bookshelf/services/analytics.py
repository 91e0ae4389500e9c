"""
Search Analytics

Counts queries and tag filters for "popular searches" and per-session
"recent searches". State lives behind an AnalyticsStore so the same
bookkeeping runs against process memory or Redis.
"""

import json
import logging
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

import redis
from fastapi import Request, Response

from bookshelf.core.config import Environment, settings

logger = logging.getLogger(__name__)

ANON_SESSION_COOKIE = "anon_sid"
ANON_SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 30


@dataclass
class SearchEvent:
    query: str
    tags: list[str]
    status: str
    results_count: int
    timestamp: float
    session_id: str


@dataclass
class AnalyticsSnapshot:
    total_searches: int = 0
    unique_queries: int = 0
    popular_queries: dict[str, int] = field(default_factory=dict)
    popular_tags: dict[str, int] = field(default_factory=dict)
    events: list[SearchEvent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalyticsSnapshot":
        return cls(
            total_searches=int(data.get("total_searches", 0)),
            unique_queries=int(data.get("unique_queries", 0)),
            popular_queries=dict(data.get("popular_queries", {})),
            popular_tags=dict(data.get("popular_tags", {})),
            events=[SearchEvent(**e) for e in data.get("events", [])],
        )


class AnalyticsStore(Protocol):
    def record(self, event: SearchEvent, max_events: int) -> None:
        """Apply one search atomically: counters, tag counts, capped event log."""
        ...

    def load(self) -> AnalyticsSnapshot: ...

    def clear(self) -> None: ...


def _apply_event(snapshot: AnalyticsSnapshot, event: SearchEvent, max_events: int):
    snapshot.total_searches += 1
    snapshot.events.append(event)

    if event.query not in snapshot.popular_queries:
        snapshot.unique_queries += 1
        snapshot.popular_queries[event.query] = 0
    snapshot.popular_queries[event.query] += 1

    for tag in event.tags:
        snapshot.popular_tags[tag] = snapshot.popular_tags.get(tag, 0) + 1

    if len(snapshot.events) > max_events:
        snapshot.events = snapshot.events[-max_events:]


class InMemoryAnalyticsStore:
    """Process-local store; state is lost on restart."""

    def __init__(self):
        self._data: dict[str, Any] | None = None
        self._lock = threading.Lock()

    def record(self, event: SearchEvent, max_events: int) -> None:
        with self._lock:
            snapshot = self._load()
            _apply_event(snapshot, event, max_events)
            # Keep a detached copy so callers cannot mutate stored state
            self._data = json.loads(json.dumps(snapshot.to_dict()))

    def load(self) -> AnalyticsSnapshot:
        with self._lock:
            return self._load()

    def _load(self) -> AnalyticsSnapshot:
        if self._data is None:
            return AnalyticsSnapshot()
        return AnalyticsSnapshot.from_dict(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data = None


class RedisAnalyticsStore:
    """
    Analytics kept in native Redis structures so that every worker can
    record concurrently:

        {key}:total    string  INCR per search
        {key}:queries  hash    HINCRBY per query
        {key}:tags     hash    HINCRBY per tag filter
        {key}:events   list    RPUSH + LTRIM, newest last

    The client must be created with decode_responses=True.
    """

    KEY = "search:analytics"

    def __init__(self, redis_client: redis.Redis, key: str = KEY):
        self.redis = redis_client
        self.key = key
        self.total_key = f"{key}:total"
        self.queries_key = f"{key}:queries"
        self.tags_key = f"{key}:tags"
        self.events_key = f"{key}:events"

    def record(self, event: SearchEvent, max_events: int) -> None:
        pipe = self.redis.pipeline(transaction=True)
        pipe.incr(self.total_key)
        pipe.hincrby(self.queries_key, event.query, 1)
        for tag in event.tags:
            pipe.hincrby(self.tags_key, tag, 1)
        pipe.rpush(self.events_key, json.dumps(asdict(event)))
        pipe.ltrim(self.events_key, -max_events, -1)
        try:
            pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"Failed to record search analytics: {e}")

    def load(self) -> AnalyticsSnapshot:
        pipe = self.redis.pipeline(transaction=True)
        pipe.get(self.total_key)
        pipe.hgetall(self.queries_key)
        pipe.hgetall(self.tags_key)
        pipe.lrange(self.events_key, 0, -1)
        try:
            total, queries, tags, raw_events = pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"Failed to load search analytics: {e}")
            return AnalyticsSnapshot()

        events = []
        for raw in raw_events:
            try:
                events.append(SearchEvent(**json.loads(raw)))
            except (ValueError, TypeError) as e:
                logger.error(f"Skipping unreadable analytics event: {e}")

        popular_queries = {q: int(c) for q, c in queries.items()}
        return AnalyticsSnapshot(
            total_searches=int(total or 0),
            unique_queries=len(popular_queries),
            popular_queries=popular_queries,
            popular_tags={t: int(c) for t, c in tags.items()},
            events=events,
        )

    def clear(self) -> None:
        try:
            self.redis.delete(
                self.total_key, self.queries_key, self.tags_key, self.events_key
            )
        except redis.RedisError as e:
            logger.warning(f"Failed to clear search analytics: {e}")


class SearchAnalytics:
    def __init__(self, store: AnalyticsStore, max_stored_events: int = 100):
        self.store = store
        self.max_stored_events = max_stored_events

    def track_search(
        self,
        session_id: str,
        query: str,
        tags: list[str] | None = None,
        status: str = "",
        results_count: int = 0,
    ) -> None:
        """Record a search. Blank queries are not tracked."""
        if not query or not query.strip():
            return

        event = SearchEvent(
            query=query.strip().lower(),
            tags=list(tags or []),
            status=status or "",
            results_count=results_count,
            timestamp=time.time(),
            session_id=session_id,
        )
        self.store.record(event, self.max_stored_events)

    def popular_queries(self, limit: int = 10) -> list[dict[str, Any]]:
        counts = self.store.load().popular_queries
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [{"query": q, "count": c} for q, c in ranked[:limit]]

    def popular_tags(self, limit: int = 10) -> list[dict[str, Any]]:
        counts = self.store.load().popular_tags
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [{"tag": t, "count": c} for t, c in ranked[:limit]]

    def recent_searches(self, session_id: str, limit: int = 5) -> list[str]:
        """Distinct queries of one session, most recent first."""
        events = self.store.load().events
        recent: list[str] = []
        for event in reversed(events):
            if event.session_id == session_id and event.query not in recent:
                recent.append(event.query)
        return recent[:limit]

    def stats(self, session_id: str | None = None) -> dict[str, Any]:
        snapshot = self.store.load()
        events = snapshot.events

        total_results = sum(e.results_count for e in events)
        average = (
            round(total_results / snapshot.total_searches, 1)
            if snapshot.total_searches > 0
            else 0
        )

        return {
            "totalSearches": snapshot.total_searches,
            "uniqueQueries": snapshot.unique_queries,
            "averageResultsPerSearch": average,
            "searchesThisSession": sum(1 for e in events if e.session_id == session_id),
            "noResultSearches": sum(1 for e in events if e.results_count == 0),
        }

    def clear(self) -> None:
        self.store.clear()

    def export(self) -> dict[str, Any]:
        return self.store.load().to_dict()


def build_analytics() -> SearchAnalytics:
    """Create analytics backed by the configured store."""
    if settings.ANALYTICS_BACKEND == "redis":
        client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
        store: AnalyticsStore = RedisAnalyticsStore(client)
    else:
        store = InMemoryAnalyticsStore()
    return SearchAnalytics(store, max_stored_events=settings.ANALYTICS_MAX_EVENTS)


def get_or_set_anon_session_id(request: Request, response: Response) -> str:
    existing = request.cookies.get(ANON_SESSION_COOKIE)
    if existing:
        return existing

    session_id = uuid.uuid4().hex
    response.set_cookie(
        key=ANON_SESSION_COOKIE,
        value=session_id,
        max_age=ANON_SESSION_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.ENVIRONMENT == Environment.PRODUCTION,
        samesite="lax",
    )
    return session_id
