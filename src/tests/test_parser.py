"""Unit tests for the Markdown parser and extensions."""

import pytest

from quillpress.core.errors import UrlParseError
from quillpress.core.parser import create_parser, render_markdown

POSTS_URL = "https://example.org/posts"


def render(content: str, source_path: str = "bar.md") -> str:
    return render_markdown(content, POSTS_URL, source_path)


# ============================================================
# Strikethrough extension
# ============================================================


class TestStrikethrough:
    def test_basic_strikethrough(self):
        html = render("~~deleted~~")
        assert "<del>deleted</del>" in html

    def test_strikethrough_in_paragraph(self):
        html = render("This is ~~removed~~ text.")
        assert "<del>removed</del>" in html
        assert "This is" in html
        assert "text." in html

    def test_strikethrough_multiple(self):
        html = render("~~one~~ and ~~two~~")
        assert html.count("<del>") == 2


# ============================================================
# Heading demotion
# ============================================================


class TestHeadings:
    def test_h1_becomes_h3(self):
        html = render("# Title")
        assert "<h3>Title</h3>" in html
        assert "<h1" not in html

    def test_h2_becomes_h4(self):
        html = render("## Subtitle")
        assert "<h4>Subtitle</h4>" in html

    def test_deep_headings_capped_at_h6(self):
        html = render("#### Four\n\n##### Five\n\n###### Six")
        assert "<h6>Four</h6>" in html
        assert "<h6>Five</h6>" in html
        assert "<h6>Six</h6>" in html
        assert "<h7" not in html

    def test_every_heading_shifted(self):
        html = render("# A\n\ntext\n\n# B\n\n## C")
        assert html.count("<h3>") == 2
        assert html.count("<h4>") == 1


# ============================================================
# Link resolution
# ============================================================


class TestLinks:
    def test_post_link_rewritten(self):
        html = render("See [other](other.md).")
        assert 'href="https://example.org/posts/other.html"' in html

    def test_bundle_link_rewritten(self):
        html = render("See [bundle](trip/index.md).")
        assert 'href="https://example.org/posts/trip.html"' in html

    def test_external_link_kept(self):
        html = render("[site](https://python.org/docs/)")
        assert 'href="https://python.org/docs/"' in html

    def test_reference_link_rewritten(self):
        html = render("See [other][ref].\n\n[ref]: other.md")
        assert 'href="https://example.org/posts/other.html"' in html

    def test_image_in_bundle_points_at_asset(self):
        html = render("![pic](image.jpg)", source_path="trip/index.md")
        assert 'src="https://example.org/posts/trip/image.jpg"' in html

    def test_link_from_bundle_to_sibling_post(self):
        html = render("[up](../other.md)", source_path="trip/index.md")
        assert 'href="https://example.org/posts/other.html"' in html

    def test_invalid_link_raises(self):
        with pytest.raises(UrlParseError):
            render("<http://[::1/broken>")


# ============================================================
# Footnotes
# ============================================================


class TestFootnotes:
    def test_reference_points_at_post_url(self):
        html = render("Claim.[^1]\n\n[^1]: Source.")
        assert 'href="https://example.org/posts/bar.html#fn:1"' in html

    def test_backref_points_at_post_url(self):
        html = render("Claim.[^1]\n\n[^1]: Source.")
        assert 'href="https://example.org/posts/bar.html#fnref:1"' in html

    def test_bundle_footnote_points_at_bundle_output(self):
        html = render("Claim.[^1]\n\n[^1]: Source.", source_path="trip/index.md")
        assert 'href="https://example.org/posts/trip.html#fn:1"' in html


# ============================================================
# Full parser (end-to-end)
# ============================================================


class TestRenderMarkdown:
    def test_markdown_bold_italic(self):
        html = render("**bold** and *italic*")
        assert "<strong>bold</strong>" in html
        assert "<em>italic</em>" in html

    def test_task_list(self):
        html = render("- [ ] todo\n- [x] done")
        assert 'type="checkbox"' in html

    def test_table(self):
        md = "| A | B |\n|---|---|\n| 1 | 2 |"
        html = render(md)
        assert "<table>" in html
        assert "<td>1</td>" in html

    def test_smart_quotes(self):
        html = render('He said "hello".')
        assert "&ldquo;hello&rdquo;" in html

    def test_summary_marker_survives(self):
        html = render("Intro.\n\n<!-- more -->\n\nRest.")
        assert "<!-- more -->" in html
        assert html.index("Intro.") < html.index("<!-- more -->") < html.index("Rest.")


# ============================================================
# create_parser
# ============================================================


class TestCreateParser:
    def test_returns_markdown_instance(self):
        from markdown import Markdown

        parser = create_parser(POSTS_URL, "bar.md")
        assert isinstance(parser, Markdown)

    def test_uses_source_path(self):
        parser = create_parser(POSTS_URL, "trip/index.md")
        html = parser.convert("[pic](pic.png)")
        assert 'href="https://example.org/posts/trip/pic.png"' in html
