"""Dependency providers for services held on the application state."""

from fastapi import Request

from bookshelf.services.analytics import SearchAnalytics
from bookshelf.services.search import ReviewSearchService


def get_search_service(request: Request) -> ReviewSearchService:
    return request.app.state.search_service


def get_analytics(request: Request) -> SearchAnalytics:
    return request.app.state.analytics
