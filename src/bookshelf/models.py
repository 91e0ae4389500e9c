"""Review and tag value types as exported from the CMS."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

READING_STATUSES = ("want-to-read", "currently-reading", "finished")
PUBLISHED = "published"


@dataclass
class Tag:
    """A review tag."""

    slug: str
    name: str
    color: str | None = None
    description: str | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tag":
        return cls(
            slug=data["slug"],
            name=data.get("name") or data["slug"],
            color=data.get("color"),
            description=data.get("description"),
            id=str(data["id"]) if data.get("id") is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "color": self.color,
            "description": self.description,
        }


def _parse_date(value: Any) -> datetime | None:
    """Parse to a naive UTC datetime so all review dates compare."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        # CMS exports use a trailing "Z" for UTC
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass
class Review:
    """A book review."""

    id: str
    title: str
    slug: str
    author: str = ""
    excerpt: str = ""
    content: str = ""
    genre: str = ""
    rating: float | None = None
    published_date: datetime | None = None
    status: str = PUBLISHED
    reading_status: str | None = None
    tags: list[Tag] = field(default_factory=list)

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED

    def search_fields(self) -> dict[str, str]:
        """Field map fed to relevance scoring."""
        return {
            "title": self.title or "",
            "author": self.author or "",
            "excerpt": self.excerpt or "",
            "genre": self.genre or "",
            "content": self.content or "",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Review":
        content = data.get("content")
        # Rich-text bodies come through as structured JSON; only plain
        # text takes part in search.
        if not isinstance(content, str):
            content = ""
        return cls(
            id=str(data["id"]),
            title=data["title"],
            slug=data["slug"],
            author=data.get("author") or "",
            excerpt=data.get("excerpt") or "",
            content=content,
            genre=data.get("genre") or "",
            rating=data.get("rating"),
            published_date=_parse_date(data.get("publishedDate")),
            status=data.get("status") or PUBLISHED,
            reading_status=data.get("readingStatus"),
            tags=[Tag.from_dict(t) for t in data.get("tags") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "author": self.author,
            "excerpt": self.excerpt,
            "genre": self.genre,
            "rating": self.rating,
            "publishedDate": (
                self.published_date.isoformat() if self.published_date else None
            ),
            "readingStatus": self.reading_status,
            "tags": [t.to_dict() for t in self.tags],
        }
