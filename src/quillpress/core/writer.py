"""Rendering pages through a template and writing them to disk.

Pages are written either sequentially in the calling thread or by a fixed
set of worker tasks that pull from one shared queue and render in a
bounded thread pool. Both paths produce the same files and raise the same
errors.
"""

import asyncio
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import jinja2
from pydantic import BaseModel, ConfigDict

from quillpress.core.errors import StorageError, TemplateError
from quillpress.core.models import Page
from quillpress.core.urls import HTML_EXTENSION

logger = logging.getLogger(__name__)


class SiteContext(BaseModel):
    """Site-wide values available to every template."""

    model_config = ConfigDict(frozen=True)

    home_page: str
    static_url: str


def render_context(page: Page, site: SiteContext) -> dict[str, Any]:
    """Build the template context for one page."""
    return {
        "page": page.to_value(),
        "home_page": site.home_page,
        "static_url": site.static_url,
    }


def create_directory(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise StorageError(directory, err.strerror or str(err)) from err


def write_page(
    page: Page, directory: Path, template: jinja2.Template, site: SiteContext
) -> Path:
    """Render one page into ``{directory}/{page.id}.html``.

    Raises:
        StorageError: If the output file cannot be created or written.
        TemplateError: If the template fails to render, annotated with the
            output path.
    """
    path = directory / (page.id + HTML_EXTENSION)
    try:
        rendered = template.render(render_context(page, site))
    except Exception as err:
        # Runtime errors inside templates surface as plain TypeError or ValueError.
        raise TemplateError(str(err), path=path) from err
    try:
        path.write_text(rendered, encoding="utf-8")
    except OSError as err:
        raise StorageError(path, err.strerror or str(err)) from err
    logger.debug("Wrote %s", path)
    return path


def _write_pages_sequential(
    pages: Iterable[Page],
    directory: Path,
    template: jinja2.Template,
    site: SiteContext,
) -> int:
    create_directory(directory)
    written = 0
    for page in pages:
        write_page(page, directory, template, site)
        written += 1
    return written


async def _write_pages_parallel(
    pages: Iterable[Page],
    directory: Path,
    template: jinja2.Template,
    site: SiteContext,
    parallelism: int,
) -> int:
    loop = asyncio.get_running_loop()
    with ThreadPoolExecutor(
        max_workers=parallelism, thread_name_prefix="quillpress-writer"
    ) as executor:
        # Must complete before any worker exists.
        await loop.run_in_executor(executor, create_directory, directory)

        queue: asyncio.Queue[Page | None] = asyncio.Queue()

        async def worker(worker_id: int) -> int:
            written = 0
            while True:
                page = await queue.get()
                if page is None:
                    logger.debug("Writer %d done after %d pages", worker_id, written)
                    return written
                await loop.run_in_executor(
                    executor, write_page, page, directory, template, site
                )
                written += 1

        workers = [asyncio.create_task(worker(i)) for i in range(parallelism)]
        try:
            for page in pages:
                queue.put_nowait(page)
        finally:
            # One sentinel per worker; they queue up behind every page.
            for _ in workers:
                queue.put_nowait(None)
            results = await asyncio.gather(*workers, return_exceptions=True)

    for result in results:
        if isinstance(result, BaseException):
            raise result
    return sum(results)


async def write_pages(
    pages: Iterable[Page],
    directory: Path,
    template: jinja2.Template,
    site: SiteContext,
    parallelism: int = 1,
) -> int:
    """Render every page into ``directory`` and return how many were written.

    ``directory`` is created (recursively, idempotently) before any page is
    rendered. With ``parallelism`` below 2 the pages are written one by one
    in the calling thread; otherwise ``parallelism`` workers share a single
    FIFO queue. A failing worker stops taking pages; the call waits for the
    others to finish and then raises the first error. Files already written
    are left in place.

    Raises:
        StorageError: Directory or file I/O failed.
        TemplateError: The template failed to render a page.
    """
    if parallelism < 2:
        written = _write_pages_sequential(pages, directory, template, site)
    else:
        written = await _write_pages_parallel(
            pages, directory, template, site, parallelism
        )
    logger.info("Wrote %d pages to %s", written, directory)
    return written
