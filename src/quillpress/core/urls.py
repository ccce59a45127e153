"""URL joining and link resolution for post content.

Posts link to each other by their *source* names (``foo.md``,
``bundle/index.md``) so that links work when browsing the sources. The
resolver rewrites those references into the URLs of the rendered pages.
"""

import logging
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from quillpress.core.errors import UrlParseError

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = ".md"
HTML_EXTENSION = ".html"
BUNDLE_INDEX = "/index" + MARKDOWN_EXTENSION


def join_url(base: str, *parts: str) -> str:
    """Join path parts onto a base URL, ignoring any trailing slash on it.

    ``join_url("https://example.org/pages/", "tag", "index.html")`` is
    ``https://example.org/pages/tag/index.html``.
    """
    url = base.rstrip("/")
    for part in parts:
        url = f"{url}/{part}"
    return url


def split_url(url: str) -> SplitResult:
    """Split a URL, raising UrlParseError if it is malformed."""
    try:
        parts = urlsplit(url)
        # Port parsing is lazy in urllib; force it so bad ports fail here.
        parts.port
    except ValueError as err:
        raise UrlParseError(url, str(err)) from err
    return parts


def remove_dot_segments(path: str) -> str:
    """Normalize ``.`` and ``..`` segments of a hierarchical URL path."""
    if not path:
        return path
    segments = path.split("/")
    output: list[str] = []
    for segment in segments:
        if segment == ".":
            continue
        if segment == "..":
            # Never pop the empty segment that anchors an absolute path.
            if len(output) > 1 or (output and output[0]):
                output.pop()
            continue
        output.append(segment)
    if segments[-1] in (".", ".."):
        output.append("")
    return "/".join(output)


def md_to_html(relative_path: str) -> str:
    """Map a posts-root-relative source path to its output path.

    ``dir/index.md`` becomes ``dir.html``; ``x.md`` becomes ``x.html``;
    anything else is returned unchanged.
    """
    if relative_path.endswith(BUNDLE_INDEX):
        return relative_path[: -len(BUNDLE_INDEX)] + HTML_EXTENSION
    if relative_path.endswith(MARKDOWN_EXTENSION):
        return relative_path[: -len(MARKDOWN_EXTENSION)] + HTML_EXTENSION
    return relative_path


def _posts_root(posts_url: str) -> SplitResult:
    root = split_url(posts_url.rstrip("/") + "/")
    if not root.scheme:
        raise UrlParseError(posts_url, "relative URL without a base")
    return root


def _is_under(root: SplitResult, candidate: SplitResult) -> bool:
    return (
        candidate.scheme.lower() == root.scheme.lower()
        and candidate.netloc.lower() == root.netloc.lower()
        and candidate.path.startswith(root.path)
    )


def resolve_link(posts_url: str, source_path: str, raw_link: str) -> str:
    """Resolve a link found in a post into the URL it must have in the output.

    Args:
        posts_url: URL of the posts root, e.g. ``https://example.org/posts``.
        source_path: Path of the post's source relative to the posts
            directory, e.g. ``foo.md`` or ``bundle/index.md``.
        raw_link: The link exactly as written in the post.

    Returns:
        An absolute, dot-segment-normalized URL. Links into the posts root
        that point at markdown sources are rewritten to their ``.html``
        output; everything else (assets, external hosts, HTML targets) is
        returned normalized but otherwise untouched.

    Raises:
        UrlParseError: If ``posts_url`` or ``raw_link`` is malformed.
    """
    root = _posts_root(posts_url)
    base = urljoin(urlunsplit(root), source_path)
    split_url(raw_link)
    candidate = split_url(urljoin(base, raw_link))
    if candidate.netloc or candidate.path.startswith("/"):
        candidate = candidate._replace(path=remove_dot_segments(candidate.path))

    if _is_under(root, candidate):
        relative = candidate.path[len(root.path) :]
        candidate = candidate._replace(path=root.path + md_to_html(relative))

    resolved = urlunsplit(candidate)
    logger.debug("Resolved link %r in %s to %s", raw_link, source_path, resolved)
    return resolved
