"""End-to-end tests for building a site and the command line."""

import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from quillpress.build import build_site
from quillpress.cli import app
from quillpress.config import load_config
from quillpress.core.errors import ParseError, TemplateError

PROJECT_YAML = """\
site_root: https://example.org
title: Test Blog
index_page_size: 2
author:
  name: Ada
"""

THEME_YAML = """\
index_template: index.html
posts_template: [header.html, post.html]
"""

INDEX_TEMPLATE = """\
{% for post in page.item %}<a href="{{ post.url }}">{{ post.title }}</a>
{{ post.summary }}{% if post.truncated %}[more]{% endif %}
{% for tag in post.tags %}#{{ tag.tag }} {% endfor %}
{% endfor %}prev={{ page.prev }} next={{ page.next }}
"""

HEADER_TEMPLATE = '<link href="{{ static_url }}/style.css"><a href="{{ home_page }}">home</a>'

POST_TEMPLATE = """\
<h1>{{ page.item.title }}</h1>
{{ page.item.body }}
prev={{ page.prev }} next={{ page.next }}
"""


def post(title: str, date: str, tags: str = "[]", body: str = "Body.") -> str:
    return f"---\nTitle: {title}\nDate: {date}\nTags: {tags}\n---\n{body}\n"


@pytest.fixture
def project(tmp_path):
    """A small blog: two posts, one bundle, a theme with a static file."""
    root = tmp_path / "blog"
    theme = root / "theme"
    (theme / "static").mkdir(parents=True)
    (root / "quillpress.yaml").write_text(PROJECT_YAML, encoding="utf-8")
    (theme / "theme.yaml").write_text(THEME_YAML, encoding="utf-8")
    (theme / "index.html").write_text(INDEX_TEMPLATE, encoding="utf-8")
    (theme / "header.html").write_text(HEADER_TEMPLATE, encoding="utf-8")
    (theme / "post.html").write_text(POST_TEMPLATE, encoding="utf-8")
    (theme / "static" / "style.css").write_text("body {}", encoding="utf-8")

    posts = root / "posts"
    posts.mkdir()
    (posts / "first.md").write_text(
        post("First", "2021-01-01", "[Python]", "# Hello\n\nIntro.\n\n<!-- more -->\n\nRest."),
        encoding="utf-8",
    )
    (posts / "second.md").write_text(
        post("Second", "2021-02-01", "[python, Rust]", "See [first](first.md)."),
        encoding="utf-8",
    )
    trip = posts / "trip"
    trip.mkdir()
    (trip / "index.md").write_text(
        post("Trip", "2021-03-01", body="![view](view.jpg)"), encoding="utf-8"
    )
    (trip / "view.jpg").write_bytes(b"\xff\xd8\xff")
    return root


def config_for(project: Path, output: Path):
    return load_config(project / "quillpress.yaml", output)


def read_tree(root: Path) -> dict[str, bytes]:
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


# ============================================================
# build_site
# ============================================================


class TestBuildSite:
    @pytest.mark.asyncio
    async def test_output_layout(self, project, tmp_path):
        out = tmp_path / "out"
        report = await build_site(config_for(project, out))

        assert report.posts == 3
        assert report.indices == 3
        assert report.static_files == 1
        assert sorted(read_tree(out)) == [
            "feed.atom",
            "index.html",
            "pages/1.html",
            "pages/index.html",
            "pages/python/index.html",
            "pages/rust/index.html",
            "posts/first.html",
            "posts/second.html",
            "posts/trip.html",
            "posts/trip/view.jpg",
            "static/style.css",
        ]
        # 3 posts + 2 main index pages + 1 python + 1 rust
        assert report.pages == 7

    @pytest.mark.asyncio
    async def test_post_pages(self, project, tmp_path):
        out = tmp_path / "out"
        await build_site(config_for(project, out))

        first = (out / "posts" / "first.html").read_text(encoding="utf-8")
        assert '<link href="https://example.org/static/style.css">' in first
        assert '<a href="https://example.org/pages/index.html">home</a>' in first
        assert "<h3>Hello</h3>" in first
        assert "prev=https://example.org/posts/second.html next=None" in first

        second = (out / "posts" / "second.html").read_text(encoding="utf-8")
        assert 'href="https://example.org/posts/first.html"' in second

        trip = (out / "posts" / "trip.html").read_text(encoding="utf-8")
        assert 'src="https://example.org/posts/trip/view.jpg"' in trip
        assert "prev=None next=https://example.org/posts/second.html" in trip

    @pytest.mark.asyncio
    async def test_index_pages(self, project, tmp_path):
        out = tmp_path / "out"
        await build_site(config_for(project, out))

        first_page = (out / "pages" / "index.html").read_text(encoding="utf-8")
        assert first_page.index(">Trip<") < first_page.index(">Second<")
        assert "prev=None next=https://example.org/pages/1.html" in first_page
        assert (out / "index.html").read_text(encoding="utf-8") == first_page

        last_page = (out / "pages" / "1.html").read_text(encoding="utf-8")
        assert ">First<" in last_page
        assert "[more]" in last_page
        assert "Rest." not in last_page

        python = (out / "pages" / "python" / "index.html").read_text(encoding="utf-8")
        assert ">Second<" in python and ">First<" in python
        assert ">Trip<" not in python

    @pytest.mark.asyncio
    async def test_feed(self, project, tmp_path):
        out = tmp_path / "out"
        await build_site(config_for(project, out))
        feed = (out / "feed.atom").read_text(encoding="utf-8")
        assert "<title>Test Blog</title>" in feed
        assert feed.count("<entry>") == 3

    @pytest.mark.asyncio
    async def test_parallel_matches_sequential(self, project, tmp_path):
        await build_site(config_for(project, tmp_path / "seq"), parallelism=1)
        await build_site(config_for(project, tmp_path / "par"), parallelism=8)
        seq = read_tree(tmp_path / "seq")
        par = read_tree(tmp_path / "par")
        # Feed timestamps differ between runs.
        seq.pop("feed.atom")
        par.pop("feed.atom")
        assert seq == par

    @pytest.mark.asyncio
    async def test_stale_output_removed(self, project, tmp_path):
        out = tmp_path / "out"
        stale = out / "posts" / "deleted.html"
        stale.parent.mkdir(parents=True)
        stale.write_text("old", encoding="utf-8")
        await build_site(config_for(project, out))
        assert not stale.exists()

    @pytest.mark.asyncio
    async def test_empty_site(self, project, tmp_path):
        shutil.rmtree(project / "posts")
        (project / "posts").mkdir()
        out = tmp_path / "out"
        report = await build_site(config_for(project, out))
        assert report.posts == 0
        assert report.pages == 0
        assert not (out / "index.html").exists()
        assert (out / "feed.atom").is_file()

    @pytest.mark.asyncio
    async def test_bad_post_fails_build(self, project, tmp_path):
        (project / "posts" / "broken.md").write_text("no fence", encoding="utf-8")
        with pytest.raises(ParseError):
            await build_site(config_for(project, tmp_path / "out"))

    @pytest.mark.asyncio
    async def test_bad_template_fails_before_writing(self, project, tmp_path):
        (project / "theme" / "post.html").write_text("{% if %}", encoding="utf-8")
        out = tmp_path / "out"
        with pytest.raises(TemplateError):
            await build_site(config_for(project, out))
        assert not out.exists()


# ============================================================
# Command line
# ============================================================


class TestCli:
    def test_build(self, project, tmp_path):
        out = tmp_path / "out"
        result = CliRunner().invoke(app, ["build", str(project), "-o", str(out), "-j", "2"])
        assert result.exit_code == 0, result.output
        assert "Built 3 posts and 7 pages" in result.output
        assert (out / "index.html").is_file()

    def test_build_from_subdirectory(self, project, tmp_path):
        out = tmp_path / "out"
        result = CliRunner().invoke(app, ["build", str(project / "posts"), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert (out / "posts" / "first.html").is_file()

    def test_missing_project(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = CliRunner().invoke(app, ["build", str(empty), "-o", str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "quillpress.yaml" in result.output

    def test_build_error_exit_code(self, project, tmp_path):
        (project / "posts" / "broken.md").write_text("no fence", encoding="utf-8")
        result = CliRunner().invoke(app, ["build", str(project), "-o", str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "broken" in result.output

    @pytest.mark.parametrize("jobs", ["1", "4"])
    def test_broken_theme_exit_code(self, project, tmp_path, jobs):
        (project / "theme" / "post.html").write_text("{{ page.id + 1 }}", encoding="utf-8")
        result = CliRunner().invoke(
            app, ["build", str(project), "-o", str(tmp_path / "out"), "-j", jobs]
        )
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert ".html" in result.output
