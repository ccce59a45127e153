"""Grouping posts into tag indices and slicing them into linked pages."""

import logging
import math
from collections.abc import Sequence
from pathlib import Path

from quillpress.core.errors import ConfigError
from quillpress.core.models import MAIN_INDEX, Index, Page, Post, PostSummary
from quillpress.core.urls import HTML_EXTENSION, join_url

logger = logging.getLogger(__name__)

FIRST_PAGE_ID = "index"


def page_id(number: int) -> str:
    """Output file stem of the ``number``-th (0-based) page of a sequence."""
    return FIRST_PAGE_ID if number == 0 else str(number)


def page_url(base_url: str, number: int) -> str:
    return join_url(base_url, page_id(number) + HTML_EXTENSION)


def build_indices(
    posts: Sequence[Post], index_url: str, index_output_directory: Path
) -> dict[str, Index]:
    """Group post summaries by tag.

    ``posts`` must already be in display order; every index keeps that
    order. The main index (key ``MAIN_INDEX``) always exists, holds every
    post and comes first; tag indices follow in first-seen order.
    """
    indices: dict[str, Index] = {
        MAIN_INDEX: Index(
            tag=MAIN_INDEX,
            base_url=index_url,
            output_directory=index_output_directory,
        )
    }
    for post in posts:
        summary = post.summarize()
        indices[MAIN_INDEX].summaries.append(summary)
        for tag in post.tags:
            index = indices.get(tag.name)
            if index is None:
                index = indices[tag.name] = Index(
                    tag=tag.name,
                    base_url=join_url(index_url, tag.name),
                    output_directory=index_output_directory / tag.name,
                )
            index.summaries.append(summary)
    logger.debug("Built %d indices from %d posts", len(indices), len(posts))
    return indices


def paginate(
    summaries: Sequence[PostSummary], page_size: int, base_url: str
) -> list[Page[list[PostSummary]]]:
    """Slice summaries into pages of ``page_size`` linked by prev/next URLs.

    The first page is ``index.html``; the rest are ``1.html``, ``2.html``,
    and so on.

    Raises:
        ConfigError: If ``page_size`` is less than 1.
    """
    if page_size < 1:
        raise ConfigError(f"index page size must be at least 1, got {page_size}")

    total = math.ceil(len(summaries) / page_size)
    pages = []
    for number in range(total):
        start = number * page_size
        pages.append(
            Page(
                id=page_id(number),
                item=list(summaries[start : start + page_size]),
                url=page_url(base_url, number),
                prev=page_url(base_url, number - 1) if number > 0 else None,
                next=page_url(base_url, number + 1) if number + 1 < total else None,
            )
        )
    return pages


def chain(posts: Sequence[Post], base_url: str) -> list[Page[Post]]:
    """Make one page per post, each linked to its neighbours in ``posts``."""
    urls = [join_url(base_url, post.id + HTML_EXTENSION) for post in posts]
    if not posts:
        return []
    if len(posts) == 1:
        return [Page(id=posts[0].id, item=posts[0], url=urls[0])]

    last = len(posts) - 1
    return [
        Page(
            id=post.id,
            item=post,
            url=urls[i],
            prev=urls[i - 1] if i > 0 else None,
            next=urls[i + 1] if i < last else None,
        )
        for i, post in enumerate(posts)
    ]
