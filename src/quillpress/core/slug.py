"""Tag slugs."""

import re
from unicodedata import normalize

from pymdownx.slugs import slugify as _md_slugify

_slugify_lower = _md_slugify(case="lower")

# Separator runs left behind by pymdownx ("a  b" -> "a--b", "a_b").
_SEPARATOR_RUN = re.compile(r"[-_]+")


def slugify(text: str) -> str:
    """Convert a human-readable tag name to its comparison-stable slug.

    Tags merge iff their slugs are equal, so casing and separators fold
    together while letters and digits are kept.

    Examples:
        >>> slugify("macOS")
        'macos'
        >>> slugify("Mac  OS")
        'mac-os'
        >>> slugify("mac_os")
        'mac-os'
        >>> slugify("Café")
        'cafe'
    """
    normalized = normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _slugify_lower(normalized, sep="-")
    return _SEPARATOR_RUN.sub("-", slug).strip("-")
