"""Test catalog loading and the review model."""

from datetime import datetime

import pytest

from bookshelf.models import Review, Tag
from bookshelf.services.catalog import CatalogError, ReviewCatalog


class TestReviewCatalog:
    def test_loads_fixture(self, catalog):
        assert len(catalog) == 6
        assert len(catalog.published()) == 5
        assert all(r.is_published for r in catalog.published())

    def test_tags_sorted_by_name(self, catalog):
        names = [t.name for t in catalog.tags()]
        assert names == ["Book Club", "Classics", "Poetry", "Science Fiction", "Thriller"]

    def test_tags_referenced_only_by_reviews_are_known(self, catalog):
        assert "book-club" in catalog.tag_slugs()

    def test_missing_file_gives_empty_catalog(self, tmp_path):
        catalog = ReviewCatalog.from_json_file(str(tmp_path / "missing.json"))
        assert len(catalog) == 0
        assert catalog.tags() == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogError):
            ReviewCatalog.from_json_file(str(path))

    def test_record_missing_required_field(self, tmp_path):
        path = tmp_path / "incomplete.json"
        path.write_text('{"reviews": [{"id": 1, "slug": "x"}]}', encoding="utf-8")
        with pytest.raises(CatalogError):
            ReviewCatalog.from_json_file(str(path))


class TestReviewModel:
    def test_from_dict(self, catalog):
        dune = next(r for r in catalog.all() if r.slug == "dune")
        assert dune.id == "2"
        assert dune.author == "Frank Herbert"
        assert dune.published_date == datetime(2024, 5, 10)
        assert dune.reading_status == "finished"
        assert [t.slug for t in dune.tags] == ["sci-fi"]

    def test_rich_text_content_is_not_searchable(self, catalog):
        messiah = next(r for r in catalog.all() if r.slug == "dune-messiah")
        assert messiah.content == ""
        assert not messiah.is_published

    def test_search_fields(self):
        review = Review(id="1", title="Dune", slug="dune", author="Frank Herbert")
        assert review.search_fields() == {
            "title": "Dune",
            "author": "Frank Herbert",
            "excerpt": "",
            "genre": "",
            "content": "",
        }

    def test_to_dict_uses_api_keys(self):
        review = Review(
            id="1",
            title="Dune",
            slug="dune",
            published_date=datetime(2024, 5, 10),
            reading_status="finished",
            tags=[Tag(slug="sci-fi", name="Science Fiction")],
        )
        data = review.to_dict()
        assert data["publishedDate"] == "2024-05-10T00:00:00"
        assert data["readingStatus"] == "finished"
        assert data["tags"][0]["slug"] == "sci-fi"
        assert "content" not in data

    def test_offset_dates_normalized_to_utc(self):
        review = Review.from_dict(
            {
                "id": 9,
                "title": "T",
                "slug": "t",
                "publishedDate": "2024-05-10T02:00:00+02:00",
            }
        )
        assert review.published_date == datetime(2024, 5, 10)
