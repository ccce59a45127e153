"""Shared fixtures for quillpress tests."""

from pathlib import Path

import pytest

from quillpress.core.models import Post, Tag

POSTS_URL = "https://example.org/posts"
INDEX_URL = "https://example.org/pages"


@pytest.fixture
def make_post():
    """Factory for Post objects with URLs under POSTS_URL."""

    def _make_post(
        post_id: str,
        date: str = "2021-01-01",
        tags: tuple[str, ...] = (),
        body: str = "",
        title: str | None = None,
    ) -> Post:
        return Post(
            id=post_id,
            title=title or post_id.title(),
            date=date,
            body=body or f"<p>{post_id}</p>",
            tags=tuple(
                Tag(name=tag, url=f"{INDEX_URL}/{tag}/index.html") for tag in tags
            ),
            file_path=Path("out/posts") / f"{post_id}.html",
            url=f"{POSTS_URL}/{post_id}.html",
        )

    return _make_post
