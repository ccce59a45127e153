"""Building a whole site from a SiteConfig.

The steps: load posts, compile templates, clear the previous output, write
post and index pages, copy assets, then write the feed.
"""

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel

from quillpress.config import SiteConfig
from quillpress.core.errors import StorageError
from quillpress.core.feed import write_feed
from quillpress.core.indexer import FIRST_PAGE_ID, build_indices, chain, paginate
from quillpress.core.loader import PostLoader
from quillpress.core.models import StaticFile
from quillpress.core.templates import create_environment, load_template
from quillpress.core.urls import HTML_EXTENSION
from quillpress.core.writer import SiteContext, write_pages

logger = logging.getLogger(__name__)

FEED_FILE = "feed.atom"


class BuildReport(BaseModel):
    """What a build produced."""

    posts: int
    indices: int
    pages: int
    static_files: int


def remove_directory(directory: Path) -> None:
    """Delete a previous output directory; a missing one is fine."""
    try:
        shutil.rmtree(directory)
    except FileNotFoundError:
        return
    except OSError as err:
        raise StorageError(directory, f"cleaning directory: {err}") from err
    logger.debug("Removed %s", directory)


def copy_path(source: Path, destination: Path) -> None:
    """Copy a file or directory tree verbatim."""
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if source.is_dir():
            shutil.copytree(source, destination, dirs_exist_ok=True)
        else:
            shutil.copy2(source, destination)
    except OSError as err:
        raise StorageError(source, f"copying to `{destination}`: {err}") from err


def copy_static_files(static_files: list[StaticFile]) -> None:
    for static_file in static_files:
        copy_path(static_file.source, static_file.destination)


async def build_site(config: SiteConfig, parallelism: int = 1) -> BuildReport:
    """Build the site described by ``config``.

    Output directories are wiped first; a failed build may leave partial
    output behind, which the next build clears.
    """
    loader = PostLoader(
        index_url=config.index_url,
        posts_url=config.posts_url,
        posts_directory=config.posts_output_directory,
    )
    posts, static_files = loader.load_posts(config.posts_source_directory)

    env = create_environment(config.theme_directory)
    index_template = load_template(env, config.index_template)
    posts_template = load_template(env, config.posts_template)

    for directory in (
        config.posts_output_directory,
        config.index_output_directory,
        config.static_output_directory,
    ):
        remove_directory(directory)

    site = SiteContext(home_page=config.home_page, static_url=config.static_url)

    pages = await write_pages(
        chain(posts, config.posts_url),
        config.posts_output_directory,
        posts_template,
        site,
        parallelism,
    )

    indices = build_indices(posts, config.index_url, config.index_output_directory)
    for index in indices.values():
        pages += await write_pages(
            paginate(index.summaries, config.index_page_size, index.base_url),
            index.output_directory,
            index_template,
            site,
            parallelism,
        )

    copy_static_files(static_files)
    if config.static_source_directory.is_dir():
        copy_path(config.static_source_directory, config.static_output_directory)

    first_index_page = config.index_output_directory / (FIRST_PAGE_ID + HTML_EXTENSION)
    if first_index_page.is_file():
        copy_path(first_index_page, config.root_output_directory / first_index_page.name)
    else:
        logger.warning("No posts found; %s was not written", first_index_page)

    write_feed(
        config.root_output_directory / FEED_FILE,
        posts,
        title=config.title,
        home_page=config.home_page,
        author=config.author,
    )

    report = BuildReport(
        posts=len(posts),
        indices=len(indices),
        pages=pages,
        static_files=len(static_files),
    )
    logger.info(
        "Built %d posts, %d indices, %d pages into %s",
        report.posts,
        report.indices,
        report.pages,
        config.root_output_directory,
    )
    return report
