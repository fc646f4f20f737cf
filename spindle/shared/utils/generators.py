"""ID and value generators (CUID identifiers, URL slugs)."""

import re
import unicodedata

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")
_STRICT_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_SEPARATOR_RUN = re.compile(r"[\s-]+")


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def _fold_to_ascii(value: str) -> str:
    """Strip accents (é -> e) and drop characters with no ASCII form."""
    normalized = unicodedata.normalize("NFKD", value)
    return normalized.encode("ascii", "ignore").decode("ascii")


def slugify(value: str) -> str:
    """Collection slug: lowercase, runs of non-alphanumerics become one hyphen.

    Leading and trailing hyphens are trimmed ("My Blog!" -> "my-blog").
    """
    return _NON_ALNUM_RUN.sub("-", _fold_to_ascii(value).lower()).strip("-")


def strict_slugify(value: str, fallback: str = "untitled") -> str:
    """Content slug: lowercase, punctuation removed, whitespace to hyphens.

    Characters outside [a-z0-9], whitespace and hyphen are dropped rather
    than replaced ("What's New?" -> "whats-new"). Returns ``fallback`` when
    nothing survives.

    Args:
        value: Source text (usually the item title).
        fallback: Slug used when the text has no slug-safe characters.
    """
    cleaned = _STRICT_DISALLOWED.sub("", _fold_to_ascii(value).lower())
    slug = _SEPARATOR_RUN.sub("-", cleaned.strip()).strip("-")
    return slug or fallback
