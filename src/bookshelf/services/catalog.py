"""
Review Catalog

Read-only, in-memory set of reviews and tags loaded from the CMS JSON
export.
"""

import json
import logging
import os
from typing import Iterable

from bookshelf.models import Review, Tag

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when a catalog export cannot be parsed."""


class ReviewCatalog:
    def __init__(
        self,
        reviews: Iterable[Review] | None = None,
        tags: Iterable[Tag] | None = None,
    ):
        self._reviews = list(reviews or [])
        tag_map = {t.slug: t for t in tags or []}
        # Tags referenced by reviews but missing from the tag list still count
        for review in self._reviews:
            for tag in review.tags:
                tag_map.setdefault(tag.slug, tag)
        self._tags = tag_map

    @classmethod
    def from_json_file(cls, path: str) -> "ReviewCatalog":
        """
        Load a catalog from a JSON export.

        The file holds {"reviews": [...], "tags": [...]}. A missing file
        gives an empty catalog.

        Raises:
            CatalogError: the file is not valid JSON or a record is malformed
        """
        if not os.path.exists(path):
            logger.warning(f"Review catalog not found at {path}; starting empty")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            reviews = [Review.from_dict(r) for r in data.get("reviews", [])]
            tags = [Tag.from_dict(t) for t in data.get("tags", [])]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            raise CatalogError(f"Invalid review catalog {path}: {e}") from e

        logger.info(f"Loaded {len(reviews)} reviews and {len(tags)} tags from {path}")
        return cls(reviews, tags)

    def __len__(self) -> int:
        return len(self._reviews)

    def all(self) -> list[Review]:
        return list(self._reviews)

    def published(self) -> list[Review]:
        return [r for r in self._reviews if r.is_published]

    def tags(self) -> list[Tag]:
        """All tags, sorted by name."""
        return sorted(self._tags.values(), key=lambda t: t.name.lower())

    def tag_slugs(self) -> set[str]:
        return set(self._tags)
