"""quillpress error hierarchy.

All project exceptions inherit from QuillpressError so the CLI can catch
them at one boundary while deeper code catches the specific subclass.

Hierarchy:
    QuillpressError
    ├── ConfigError
    ├── ParseError
    │   ├── MissingStartFenceError
    │   └── MissingEndFenceError
    ├── UrlParseError
    ├── StorageError
    ├── TemplateError
    └── FeedError
"""

from pathlib import Path


class QuillpressError(Exception):
    """Base class for all quillpress errors."""


class ConfigError(QuillpressError):
    """Project, theme or runtime configuration is invalid."""


class ParseError(QuillpressError):
    """A post source file could not be parsed."""

    def __init__(self, post_id: str, reason: str):
        self.post_id = post_id
        self.reason = reason
        super().__init__(f"parsing post `{post_id}`: {reason}")


class MissingStartFenceError(ParseError):
    def __init__(self, post_id: str):
        super().__init__(post_id, "post must begin with `---`")


class MissingEndFenceError(ParseError):
    def __init__(self, post_id: str):
        super().__init__(post_id, "missing closing `---`")


class UrlParseError(QuillpressError):
    """A link or configured URL is not a valid URL."""

    def __init__(self, url: str, reason: str, post_id: str | None = None):
        self.url = url
        self.reason = reason
        self.post_id = post_id
        message = f"invalid URL `{url}`: {reason}"
        if post_id is not None:
            message = f"parsing post `{post_id}`: {message}"
        super().__init__(message)


class StorageError(QuillpressError):
    """A filesystem read, write or mkdir failed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class TemplateError(QuillpressError):
    """A template failed to load, compile or render."""

    def __init__(self, reason: str, path: Path | None = None):
        self.reason = reason
        self.path = path
        if path is None:
            super().__init__(reason)
        else:
            super().__init__(f"rendering `{path}`: {reason}")


class FeedError(QuillpressError):
    """A post could not be converted into a feed entry."""

    def __init__(self, post_id: str, reason: str):
        self.post_id = post_id
        self.reason = reason
        super().__init__(f"feed entry for post `{post_id}`: {reason}")
