"""Test review search: filtering, ranking, pagination and previews."""

from bookshelf.search import DEFAULT_HIGHLIGHT_CLASS
from bookshelf.services.cache import SearchCache
from bookshelf.services.catalog import ReviewCatalog
from bookshelf.services.search import ReviewSearchService

MARK = f'<mark class="{DEFAULT_HIGHLIGHT_CLASS}">'


def _ids(result):
    return [doc["id"] for doc in result["data"]["docs"]]


class TestFiltering:
    def test_no_query_lists_published_newest_first(self, search_service):
        result = search_service.search()
        assert result["success"] is True
        assert _ids(result) == ["6", "3", "2", "1", "4"]
        assert result["data"]["totalDocs"] == 5

    def test_no_query_has_no_previews(self, search_service):
        doc = search_service.search()["data"]["docs"][0]
        assert doc["searchScore"] == 0
        assert "snippets" not in doc
        assert "highlightedTitle" not in doc

    def test_drafts_excluded(self, search_service):
        result = search_service.search(q="dune")
        assert _ids(result) == ["2"]

    def test_query_matches_case_insensitively(self, search_service):
        assert _ids(search_service.search(q="FRANK")) == ["2"]

    def test_query_ignores_content(self, search_service):
        # "Carraway" appears only in the review body
        assert search_service.search(q="carraway")["data"]["totalDocs"] == 0

    def test_tag_filter(self, search_service):
        result = search_service.search(tags=["sci-fi"])
        assert _ids(result) == ["3", "2"]

    def test_tag_filter_matches_any_tag(self, search_service):
        result = search_service.search(tags=["classics", "sci-fi"])
        assert sorted(_ids(result)) == ["1", "2", "3"]

    def test_unknown_tags_ignored(self, search_service):
        assert search_service.search(tags=["no-such-tag"])["data"]["totalDocs"] == 5

    def test_reading_status_filter(self, search_service):
        assert _ids(search_service.search(status="currently-reading")) == ["3"]

    def test_invalid_reading_status_ignored(self, search_service):
        assert search_service.search(status="abandoned")["data"]["totalDocs"] == 5

    def test_combined_filters(self, search_service):
        result = search_service.search(q="science", tags=["sci-fi"], status="finished")
        assert _ids(result) == ["2"]


class TestRanking:
    def test_relevance_overrides_date_order(self, search_service):
        # Gone Girl is newer, but The Silent Patient matches in genre and excerpt
        result = search_service.search(q="thriller")
        assert _ids(result) == ["4", "6"]
        scores = [doc["searchScore"] for doc in result["data"]["docs"]]
        assert scores == [37.5, 17.5]

    def test_ties_keep_requested_order(self, search_service):
        result = search_service.search(q="science fiction")
        docs = result["data"]["docs"]
        assert docs[0]["searchScore"] == docs[1]["searchScore"]
        assert _ids(result) == ["3", "2"]

    def test_sort_by_title(self, search_service):
        assert _ids(search_service.search(sort="title")) == ["2", "6", "3", "1", "4"]

    def test_sort_by_rating_descending(self, search_service):
        assert _ids(search_service.search(sort="-rating")) == ["2", "1", "3", "6", "4"]

    def test_unknown_sort_falls_back_to_date(self, search_service):
        assert _ids(search_service.search(sort="-pages")) == ["6", "3", "2", "1", "4"]


class TestPagination:
    def test_middle_page(self, search_service):
        data = search_service.search(page=2, limit=2)["data"]
        assert [d["id"] for d in data["docs"]] == ["2", "1"]
        assert data["totalPages"] == 3
        assert data["hasPrevPage"] is True
        assert data["hasNextPage"] is True
        assert data["prevPage"] == 1
        assert data["nextPage"] == 3

    def test_last_page(self, search_service):
        data = search_service.search(page=3, limit=2)["data"]
        assert [d["id"] for d in data["docs"]] == ["4"]
        assert data["hasNextPage"] is False
        assert data["nextPage"] is None

    def test_page_past_end(self, search_service):
        data = search_service.search(page=10, limit=2)["data"]
        assert data["docs"] == []
        assert data["totalDocs"] == 5

    def test_no_results(self, search_service):
        data = search_service.search(q="zzz")["data"]
        assert data["totalDocs"] == 0
        assert data["totalPages"] == 1
        assert data["hasNextPage"] is False
        assert data["prevPage"] is None


class TestPreviews:
    def test_highlighted_title(self, search_service):
        doc = search_service.search(q="gatsby")["data"]["docs"][0]
        assert doc["highlightedTitle"] == f"The Great {MARK}Gatsby</mark>"

    def test_snippets_from_content(self, search_service):
        doc = search_service.search(q="gatsby")["data"]["docs"][0]
        assert len(doc["snippets"]) == 1
        assert f"{MARK}Gatsby</mark>" in doc["snippets"][0]

    def test_snippet_settings(self, catalog):
        service = ReviewSearchService(catalog, snippet_length=20, max_snippets=1)
        doc = service.search(q="gatsby")["data"]["docs"][0]
        assert len(doc["snippets"]) == 1
        assert doc["snippets"][0].startswith("...")


class TestCaching:
    def test_repeat_search_is_cached(self, search_service):
        first = search_service.search(q="dune")
        second = search_service.search(q="dune")
        assert "cached" not in first
        assert second["cached"] is True
        assert second["data"] == first["data"]

    def test_key_normalizes_query(self, search_service):
        search_service.search(q="dune")
        assert search_service.search(q="  DUNE ")["cached"] is True

    def test_cache_hit_echoes_callers_query(self, search_service):
        search_service.search(q="Dune")
        result = search_service.search(q="dune")
        assert result["cached"] is True
        assert result["query"]["q"] == "dune"

    def test_cache_hit_is_a_copy(self, search_service):
        search_service.search(q="dune")
        search_service.search(q="dune")["data"]["docs"].clear()
        assert len(search_service.search(q="dune")["data"]["docs"]) == 1

    def test_first_response_is_not_the_cached_entry(self, search_service):
        first = search_service.search(q="dune")
        first["data"]["docs"].clear()
        assert len(search_service.search(q="dune")["data"]["docs"]) == 1

    def test_distinct_queries_do_not_grow_cache_past_maxsize(self, catalog):
        service = ReviewSearchService(catalog, SearchCache(maxsize=10))
        for i in range(200):
            service.search(q=f"query{i}")
        assert service.cache.stats()["size"] == 10

    def test_different_page_not_cached(self, search_service):
        search_service.search(q="dune")
        assert "cached" not in search_service.search(q="dune", page=2)


class TestTags:
    def test_list_tags(self, search_service):
        result = search_service.list_tags()
        assert result["success"] is True
        assert result["totalDocs"] == 5
        assert result["docs"][1] == {
            "id": "1",
            "name": "Classics",
            "slug": "classics",
            "color": "#8b5cf6",
            "description": None,
        }

    def test_index_stats(self, search_service):
        assert search_service.get_index_stats() == {
            "reviews": 6,
            "published": 5,
            "tags": 5,
        }

    def test_empty_catalog(self):
        service = ReviewSearchService(ReviewCatalog())
        assert service.search(q="dune")["data"]["docs"] == []
        assert service.list_tags()["totalDocs"] == 0
