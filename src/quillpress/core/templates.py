"""Loading theme templates."""

import logging
from pathlib import Path

import jinja2

from quillpress.core.errors import TemplateError

logger = logging.getLogger(__name__)


def create_environment(theme_dir: Path) -> jinja2.Environment:
    """Create the Jinja2 environment for a theme directory.

    Post bodies are already HTML, so autoescaping is off. StrictUndefined
    turns references to missing context fields into render errors.
    """
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(theme_dir),
        autoescape=False,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )


def load_template(
    env: jinja2.Environment, template_files: str | list[str]
) -> jinja2.Template:
    """Compile a page template.

    Args:
        env: Environment from create_environment().
        template_files: A template name, loaded through the environment's
            loader so ``{% extends %}`` and ``{% include %}`` work, or a list
            of names whose sources are concatenated (separated by a space)
            and compiled as one template.

    Raises:
        TemplateError: If a file is missing or a template has a syntax error.
    """
    try:
        if isinstance(template_files, str):
            template = env.get_template(template_files)
        else:
            sources = [env.loader.get_source(env, name)[0] for name in template_files]
            template = env.from_string(" ".join(sources))
    except jinja2.TemplateNotFound as err:
        raise TemplateError(f"template file not found: {err.name}") from err
    except jinja2.TemplateSyntaxError as err:
        raise TemplateError(
            f"{err.filename or err.name or '<template>'}:{err.lineno}: {err.message}"
        ) from err
    logger.debug("Loaded template %s", template_files)
    return template
