"""Application and project configuration."""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from quillpress.core.errors import ConfigError, UrlParseError
from quillpress.core.feed import Author
from quillpress.core.urls import join_url, split_url

logger = logging.getLogger(__name__)

PROJECT_FILE = "quillpress.yaml"
THEME_DIR = "theme"
THEME_FILE = "theme.yaml"


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    parallelism: int = Field(default_factory=lambda: os.cpu_count() or 1)
    debug: bool = False
    output_dir: Path = Path("_site")

    model_config = SettingsConfigDict(
        env_prefix="QUILLPRESS_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class Project(BaseModel):
    """Contents of ``quillpress.yaml``."""

    site_root: str
    home_page: str = "pages/index.html"
    index_page_size: int = Field(default=10, ge=1)
    title: str = ""
    author: Author | None = None


class Theme(BaseModel):
    """Contents of ``theme/theme.yaml``."""

    index_template: str | list[str]
    posts_template: str | list[str]


class SiteConfig(BaseModel):
    """Fully resolved configuration for one build."""

    title: str
    author: Author | None = None

    home_page: str
    posts_url: str
    index_url: str
    static_url: str
    index_page_size: int

    posts_source_directory: Path
    theme_directory: Path
    static_source_directory: Path

    root_output_directory: Path
    posts_output_directory: Path
    index_output_directory: Path
    static_output_directory: Path

    index_template: str | list[str]
    posts_template: str | list[str]


def find_project_file(directory: Path) -> Path:
    """Find ``quillpress.yaml`` in ``directory`` or its nearest ancestor."""
    directory = directory.resolve()
    for candidate in (directory, *directory.parents):
        path = candidate / PROJECT_FILE
        if path.is_file():
            return path
    raise ConfigError(f"could not find `{PROJECT_FILE}` in `{directory}` or any parent")


def _load_yaml(path: Path, model: type[BaseModel], what: str) -> BaseModel:
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as err:
        raise ConfigError(f"opening {what} file `{path}`: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigError(f"parsing {what} file `{path}`: {err}") from err
    try:
        return model.model_validate(data)
    except ValidationError as err:
        raise ConfigError(f"invalid {what} file `{path}`: {err}") from err


def load_config(project_file: Path, output_directory: Path) -> SiteConfig:
    """Load the project and theme files into a SiteConfig."""
    project = _load_yaml(project_file, Project, "project")
    try:
        site_root = split_url(project.site_root)
    except UrlParseError as err:
        raise ConfigError(f"invalid site_root: {err}") from err
    if not site_root.scheme:
        raise ConfigError(f"site_root must be an absolute URL, got `{project.site_root}`")

    project_root = project_file.parent
    theme_dir = project_root / THEME_DIR
    theme = _load_yaml(theme_dir / THEME_FILE, Theme, "theme")

    config = SiteConfig(
        title=project.title,
        author=project.author,
        home_page=join_url(project.site_root, project.home_page.lstrip("/")),
        posts_url=join_url(project.site_root, "posts"),
        index_url=join_url(project.site_root, "pages"),
        static_url=join_url(project.site_root, "static"),
        index_page_size=project.index_page_size,
        posts_source_directory=project_root / "posts",
        theme_directory=theme_dir,
        static_source_directory=theme_dir / "static",
        root_output_directory=output_directory,
        posts_output_directory=output_directory / "posts",
        index_output_directory=output_directory / "pages",
        static_output_directory=output_directory / "static",
        index_template=theme.index_template,
        posts_template=theme.posts_template,
    )
    logger.debug("Loaded config from %s", project_file)
    return config


def load_config_from_directory(directory: Path, output_directory: Path) -> SiteConfig:
    return load_config(find_project_file(directory), output_directory)


settings = Settings()
