"""Atom feed serialization."""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from xml.etree.ElementTree import Element, SubElement, tostring

from pydantic import BaseModel

from quillpress.core.errors import FeedError, StorageError
from quillpress.core.models import Post

logger = logging.getLogger(__name__)

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"


class Author(BaseModel):
    name: str
    email: str | None = None


def parse_post_date(post: Post) -> datetime:
    """Interpret a post's date text as a UTC timestamp.

    Plain dates (``2021-04-16``) are taken as midnight UTC; full ISO
    timestamps without an offset are assumed to be UTC.
    """
    try:
        parsed = datetime.fromisoformat(post.date)
    except ValueError as err:
        raise FeedError(post.id, f"invalid date `{post.date}`") from err
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _add_author(parent: Element, author: Author | None) -> None:
    if author is None:
        return
    author_el = SubElement(parent, "author")
    SubElement(author_el, "name").text = author.name
    if author.email:
        SubElement(author_el, "email").text = author.email


def build_feed(
    posts: Sequence[Post],
    title: str,
    home_page: str,
    author: Author | None = None,
    updated: datetime | None = None,
) -> Element:
    """Build the Atom ``<feed>`` element for ``posts``."""
    updated = updated or datetime.now(timezone.utc)

    root = Element("feed", attrib={"xmlns": ATOM_NAMESPACE})
    SubElement(root, "id").text = home_page
    SubElement(root, "title").text = title
    SubElement(root, "updated").text = updated.isoformat()
    _add_author(root, author)
    SubElement(root, "link", attrib={"href": home_page, "rel": "alternate"})

    for post in posts:
        published = parse_post_date(post).isoformat()
        summary, _ = post.summary()

        entry_el = SubElement(root, "entry")
        SubElement(entry_el, "id").text = post.url
        SubElement(entry_el, "title").text = post.title
        SubElement(entry_el, "updated").text = published
        SubElement(entry_el, "published").text = published
        _add_author(entry_el, author)
        SubElement(entry_el, "link", attrib={"href": post.url, "rel": "alternate"})
        summary_el = SubElement(entry_el, "summary", attrib={"type": "html"})
        summary_el.text = summary

    return root


def write_feed(
    path: Path,
    posts: Sequence[Post],
    title: str,
    home_page: str,
    author: Author | None = None,
) -> None:
    """Write the Atom feed for ``posts`` to ``path``."""
    xml = tostring(build_feed(posts, title, home_page, author), encoding="unicode")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text('<?xml version="1.0" encoding="utf-8"?>\n' + xml, encoding="utf-8")
    except OSError as err:
        raise StorageError(path, err.strerror or str(err)) from err
    logger.info("Wrote feed with %d entries to %s", len(posts), path)
