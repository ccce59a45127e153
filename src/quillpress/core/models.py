"""Data models for quillpress."""

from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

SUMMARY_MARKER = "<!-- more -->"

# Key of the index holding every post. slugify() never returns "".
MAIN_INDEX = ""

T = TypeVar("T")


class Tag(BaseModel):
    """A post tag, identified by its slug."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def to_value(self) -> dict[str, Any]:
        return {"tag": self.name, "url": self.url}


class PostSummary(BaseModel):
    """Read-only projection of a Post shown on index pages."""

    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    title: str
    date: str
    summary: str
    truncated: bool
    tags: tuple[Tag, ...] = ()

    def to_value(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "date": self.date,
            "summary": self.summary,
            "truncated": self.truncated,
            "tags": [tag.to_value() for tag in self.tags],
        }


class Post(BaseModel):
    """A rendered blog post."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    date: str
    body: str = ""
    tags: tuple[Tag, ...] = ()
    file_path: Path
    url: str

    def summary(self) -> tuple[str, bool]:
        """Return the body up to the summary marker and whether it was found."""
        idx = self.body.find(SUMMARY_MARKER)
        if idx < 0:
            return self.body, False
        return self.body[:idx], True

    def summarize(self) -> PostSummary:
        summary, truncated = self.summary()
        return PostSummary(
            id=self.id,
            url=self.url,
            title=self.title,
            date=self.date,
            summary=summary,
            truncated=truncated,
            tags=self.tags,
        )

    def to_value(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "date": self.date,
            "body": self.body,
            "tags": [tag.to_value() for tag in self.tags],
        }


class Page(BaseModel, Generic[T]):
    """One output file: a post, or a batch of summaries on an index page.

    ``prev`` is None only on the first page of a sequence and ``next`` only
    on the last.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    item: T
    url: str
    prev: str | None = None
    next: str | None = None

    def to_value(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "item": _to_value(self.item),
            "url": self.url,
            "prev": self.prev,
            "next": self.next,
        }


class Index(BaseModel):
    """The summaries listed under one tag, or under MAIN_INDEX for all posts."""

    tag: str
    base_url: str
    output_directory: Path
    summaries: list[PostSummary] = Field(default_factory=list)

    @property
    def is_main(self) -> bool:
        return self.tag == MAIN_INDEX


class StaticFile(BaseModel):
    """A bundle asset copied verbatim next to its post's output."""

    model_config = ConfigDict(frozen=True)

    source: Path
    destination: Path


def _to_value(item: Any) -> Any:
    if hasattr(item, "to_value"):
        return item.to_value()
    if isinstance(item, (list, tuple)):
        return [_to_value(i) for i in item]
    return item
