"""quillpress command line."""

import asyncio
import logging
from pathlib import Path

import typer

from quillpress.build import build_site
from quillpress.config import load_config_from_directory, settings
from quillpress.core.errors import QuillpressError

app = typer.Typer(name="quillpress", help="Build a static blog from markdown posts.")


@app.callback()
def main(
    debug: bool = typer.Option(settings.debug, "--debug", help="Enable debug logging."),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def build(
    project_dir: Path = typer.Argument(
        Path("."), help="Directory containing quillpress.yaml (or a subdirectory of it)."
    ),
    output: Path = typer.Option(
        settings.output_dir, "--output", "-o", help="Directory to write the site into."
    ),
    parallelism: int = typer.Option(
        settings.parallelism, "--parallelism", "-j", help="Number of page writers."
    ),
):
    """Build the site."""
    try:
        config = load_config_from_directory(project_dir, output)
        report = asyncio.run(build_site(config, parallelism=parallelism))
    except QuillpressError as err:
        typer.secho(f"error: {err}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from err
    typer.echo(
        f"Built {report.posts} posts and {report.pages} pages into {output}"
    )
