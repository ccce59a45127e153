"""Markdown parser with output-link resolution."""

from xml.etree.ElementTree import Element

from markdown import Markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import SimpleTagInlineProcessor
from markdown.treeprocessors import Treeprocessor

from quillpress.core.urls import resolve_link

# Post headings sit below the site title (h1) and the post title (h2).
HEADING_OFFSET = 2
MAX_HEADING_LEVEL = 6

HEADING_TAGS = {f"h{level}": level for level in range(1, MAX_HEADING_LEVEL + 1)}

# Pattern for strikethrough: ~~text~~
# Group 2 must contain the text (SimpleTagInlineProcessor expectation)
STRIKETHROUGH_PATTERN = r"(~~)(.*?)~~"

# (tag, attribute) pairs holding URLs that must point at rendered output.
LINK_ATTRIBUTES = (("a", "href"), ("img", "src"))


class StrikethroughExtension(Extension):
    """Markdown extension for ~~strikethrough~~ text."""

    def extendMarkdown(self, md: Markdown) -> None:
        """Add strikethrough pattern to markdown parser."""
        md.inlinePatterns.register(
            SimpleTagInlineProcessor(STRIKETHROUGH_PATTERN, "del"),
            "strikethrough",
            50,
        )


class LinkResolverTreeprocessor(Treeprocessor):
    """Demotes headings and rewrites links in a single pass over the tree."""

    def __init__(self, md: Markdown, posts_url: str, source_path: str):
        super().__init__(md)
        self.posts_url = posts_url
        self.source_path = source_path

    def run(self, root: Element) -> None:
        for el in root.iter():
            level = HEADING_TAGS.get(el.tag)
            if level is not None:
                # HTML stops at h6, so source h5 and h6 both land there.
                el.tag = f"h{min(level + HEADING_OFFSET, MAX_HEADING_LEVEL)}"
                continue
            for tag, attribute in LINK_ATTRIBUTES:
                if el.tag == tag and el.get(attribute) is not None:
                    el.set(
                        attribute,
                        resolve_link(self.posts_url, self.source_path, el.get(attribute)),
                    )


class LinkResolverExtension(Extension):
    """Markdown extension resolving links relative to a post's source path."""

    def __init__(self, posts_url: str, source_path: str, **kwargs):
        self.posts_url = posts_url
        self.source_path = source_path
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:
        """Add the link resolver after inline and footnote processing."""
        md.treeprocessors.register(
            LinkResolverTreeprocessor(md, self.posts_url, self.source_path),
            "link_resolver",
            5,
        )


def create_parser(posts_url: str, source_path: str) -> Markdown:
    """Create a Markdown parser for one post.

    Args:
        posts_url: URL of the posts root.
        source_path: The post's source path relative to the posts directory.

    Returns:
        Configured Markdown parser instance.
    """
    return Markdown(
        extensions=[
            "footnotes",
            "smarty",  # Smart quotes and dashes
            "tables",
            "pymdownx.tasklist",  # Task lists with checkboxes
            StrikethroughExtension(),  # ~~strikethrough~~
            LinkResolverExtension(posts_url=posts_url, source_path=source_path),
        ]
    )


def render_markdown(content: str, posts_url: str, source_path: str) -> str:
    """Render a post body to HTML.

    Raises:
        UrlParseError: If a link in the body is malformed.
    """
    parser = create_parser(posts_url, source_path)
    return parser.convert(content)
