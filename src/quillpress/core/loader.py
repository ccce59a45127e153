"""Loading posts from the posts source directory."""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from quillpress.core.errors import (
    MissingEndFenceError,
    MissingStartFenceError,
    ParseError,
    StorageError,
    UrlParseError,
)
from quillpress.core.models import Post, StaticFile, Tag
from quillpress.core.parser import render_markdown
from quillpress.core.slug import slugify
from quillpress.core.urls import HTML_EXTENSION, MARKDOWN_EXTENSION, join_url

logger = logging.getLogger(__name__)

FENCE = "---"
BUNDLE_INDEX_FILE = "index" + MARKDOWN_EXTENSION


class Frontmatter(BaseModel):
    """Metadata block at the top of a post source file."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(alias="Title")
    date: str = Field(alias="Date")
    tags: list[str] = Field(default_factory=list, alias="Tags")

    @field_validator("title", "date", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        # YAML turns `Date: 2021-04-16` into a date; the post keeps the text.
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_text(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            # Numbers become tag text; null, booleans and nested values are rejected.
            return [
                str(item)
                if isinstance(item, (int, float)) and not isinstance(item, bool)
                else item
                for item in value
            ]
        return value


def split_frontmatter(post_id: str, content: str) -> tuple[str, str]:
    """Split post source into its raw metadata block and markdown body.

    The first line must be a ``---`` fence and the metadata block runs until
    the next ``---`` line.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != FENCE:
        raise MissingStartFenceError(post_id)
    for idx in range(1, len(lines)):
        if lines[idx].strip() == FENCE:
            return "".join(lines[1:idx]), "".join(lines[idx + 1 :])
    raise MissingEndFenceError(post_id)


def parse_frontmatter(post_id: str, raw: str) -> Frontmatter:
    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as err:
        raise ParseError(post_id, f"malformed metadata: {err}") from err
    if not isinstance(data, dict):
        raise ParseError(post_id, "metadata must be a mapping")
    try:
        return Frontmatter.model_validate(data)
    except ValidationError as err:
        raise ParseError(post_id, f"invalid metadata: {err}") from err


class PostLoader:
    """Parses posts from source files.

    Args:
        index_url: Base URL of the index pages; tag pages live at
            ``{index_url}/{tag}/index.html``.
        posts_url: Base URL of post pages; a post lives at
            ``{posts_url}/{post_id}.html``.
        posts_directory: Directory post pages are rendered into.
    """

    def __init__(self, index_url: str, posts_url: str, posts_directory: Path):
        self.index_url = index_url
        self.posts_url = posts_url
        self.posts_directory = posts_directory

    def make_tags(self, names: list[str]) -> tuple[Tag, ...]:
        """Slugify tag names, dropping duplicates and empty slugs."""
        tags: dict[str, Tag] = {}
        for name in names:
            slug = slugify(name)
            if not slug or slug in tags:
                continue
            tags[slug] = Tag(name=slug, url=join_url(self.index_url, slug, "index.html"))
        return tuple(tags.values())

    def parse_post(self, post_id: str, source_path: str, content: str) -> Post:
        """Parse a single post.

        Args:
            post_id: Output file stem, e.g. ``foo`` for ``foo.md`` or for the
                bundle ``foo/index.md``.
            source_path: Source path relative to the posts directory, used as
                the base for relative links.
            content: Full text of the source file.
        """
        raw, body = split_frontmatter(post_id, content)
        frontmatter = parse_frontmatter(post_id, raw)
        file_name = post_id + HTML_EXTENSION
        try:
            html = render_markdown(body, self.posts_url, source_path)
        except UrlParseError as err:
            raise UrlParseError(err.url, err.reason, post_id=post_id) from err
        return Post(
            id=post_id,
            title=frontmatter.title,
            date=frontmatter.date,
            body=html,
            tags=self.make_tags(frontmatter.tags),
            file_path=self.posts_directory / file_name,
            url=join_url(self.posts_url, file_name),
        )

    def parse_post_file(self, path: Path) -> Post:
        post_id = path.name.removesuffix(MARKDOWN_EXTENSION)
        return self.parse_post(post_id, path.name, _read_text(path))

    def parse_post_bundle(
        self, directory: Path, static_files: list[StaticFile]
    ) -> Post:
        """Parse a bundle directory and record its sibling assets."""
        post_id = directory.name
        post = self.parse_post(
            post_id,
            f"{post_id}/{BUNDLE_INDEX_FILE}",
            _read_text(directory / BUNDLE_INDEX_FILE),
        )
        for entry in sorted(_list_dir(directory)):
            if entry.name == BUNDLE_INDEX_FILE:
                continue
            static_files.append(
                StaticFile(
                    source=entry,
                    destination=self.posts_directory / post_id / entry.name,
                )
            )
        return post

    def load_posts(self, source_directory: Path) -> tuple[list[Post], list[StaticFile]]:
        """Load every post under ``source_directory``.

        ``*.md`` files and directories containing an ``index.md`` are posts;
        anything else is ignored. Returns the posts sorted by date, most
        recent first (ties keep directory-name order), and the bundle assets
        to copy.
        """
        posts: list[Post] = []
        static_files: list[StaticFile] = []
        for entry in sorted(_list_dir(source_directory)):
            if entry.is_file() and entry.name.endswith(MARKDOWN_EXTENSION):
                posts.append(self.parse_post_file(entry))
            elif entry.is_dir() and (entry / BUNDLE_INDEX_FILE).is_file():
                posts.append(self.parse_post_bundle(entry, static_files))
            else:
                logger.debug("Skipping %s", entry)

        posts.sort(key=lambda p: p.date, reverse=True)
        logger.info(
            "Loaded %d posts (%d bundle assets) from %s",
            len(posts),
            len(static_files),
            source_directory,
        )
        return posts, static_files


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as err:
        raise StorageError(path, err.strerror or str(err)) from err


def _list_dir(directory: Path) -> list[Path]:
    try:
        return list(directory.iterdir())
    except OSError as err:
        raise StorageError(directory, err.strerror or str(err)) from err
