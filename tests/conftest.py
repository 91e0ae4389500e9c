"""Test fixtures for the bookshelf search service."""

import os

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

# Set before importing any bookshelf module: settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ANALYTICS_BACKEND", "memory")
os.environ.setdefault("REVIEWS_PATH", os.path.join(FIXTURES_DIR, "reviews.json"))

import fakeredis
import pytest

from bookshelf.services.analytics import (
    InMemoryAnalyticsStore,
    RedisAnalyticsStore,
    SearchAnalytics,
)
from bookshelf.services.catalog import ReviewCatalog
from bookshelf.services.search import ReviewSearchService


@pytest.fixture
def reviews_path():
    return os.path.join(FIXTURES_DIR, "reviews.json")


@pytest.fixture
def catalog(reviews_path):
    return ReviewCatalog.from_json_file(reviews_path)


@pytest.fixture
def search_service(catalog):
    return ReviewSearchService(catalog)


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture(params=["memory", "redis"])
def analytics(request, fake_redis):
    """Analytics over each store implementation."""
    if request.param == "redis":
        store = RedisAnalyticsStore(fake_redis)
    else:
        store = InMemoryAnalyticsStore()
    return SearchAnalytics(store)
