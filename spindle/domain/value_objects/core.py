"""Domain value objects for the Spindle engine.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass, field

# Lowercase alphanumeric with optional single hyphens (e.g. blog, landing-pages).
_SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
_PARAM_RE = re.compile(r"\{(\w+)\}")


def _validate_slug(value: str, max_len: int, field_name: str) -> None:
    """Validate non-empty, length and slug format. Raises ValueError on failure."""
    if not value:
        raise ValueError(f"{field_name} must be a non-empty string")
    if len(value) > max_len:
        raise ValueError(f"{field_name} must not exceed {max_len} characters")
    if not _SLUG_RE.match(value):
        raise ValueError(
            f"{field_name} must be lowercase alphanumeric with optional hyphens "
            "(e.g., 'blog', 'landing-pages')"
        )


@dataclass(frozen=True)
class CollectionSlug:
    """Collection identifier, unique per site (e.g. 'blog')."""

    value: str

    def __post_init__(self) -> None:
        _validate_slug(self.value, max_len=100, field_name="Collection slug")


@dataclass(frozen=True)
class ContentSlug:
    """Content item slug, unique per (site, collection)."""

    value: str

    def __post_init__(self) -> None:
        _validate_slug(self.value, max_len=255, field_name="Content slug")


def _strip_path(path: str) -> str:
    """Drop query string, fragment and trailing slash ('/' stays '/')."""
    path = path.split("#", 1)[0].split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


@dataclass(frozen=True)
class UrlPattern:
    """A collection URL pattern such as ``/blog/{slug}``.

    Placeholders ``{name}`` match one path segment. The pattern must carry
    a ``{slug}`` placeholder so an item can be located from its URL.
    The regex is compiled once at construction.
    """

    value: str
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate shape and compile the matching regex.

        Raises:
            ValueError: If the pattern is empty, relative, lacks {slug}, or has
                repeated or malformed placeholders.
        """
        if not self.value or not self.value.startswith("/"):
            raise ValueError("URL pattern must start with '/'")
        if "{slug}" not in self.value:
            raise ValueError("URL pattern must contain a {slug} placeholder")
        names = _PARAM_RE.findall(self.value)
        for name in names:
            if not name.isidentifier():
                raise ValueError(f"URL placeholder {{{name}}} must be a valid identifier")
        if len(set(names)) != len(names):
            raise ValueError("URL pattern must not repeat a placeholder")
        normalized = _strip_path(self.value)
        regex = ""
        last = 0
        for m in _PARAM_RE.finditer(normalized):
            regex += re.escape(normalized[last : m.start()])
            regex += f"(?P<{m.group(1)}>[^/]+)"
            last = m.end()
        regex += re.escape(normalized[last:])
        try:
            compiled = re.compile(f"^{regex}$")
        except re.error as e:
            raise ValueError(f"URL pattern {self.value!r} cannot be compiled: {e}") from e
        object.__setattr__(self, "_regex", compiled)

    @property
    def segments(self) -> list[str]:
        """Path segments of the pattern, without empty leading segment."""
        return [s for s in _strip_path(self.value).split("/") if s]

    def match(self, path: str) -> dict[str, str] | None:
        """Match a request path and return captured params, or None.

        A trailing slash, query string and fragment on the path are ignored.
        """
        m = self._regex.match(_strip_path(path))
        return m.groupdict() if m else None

    def overlaps(self, other: "UrlPattern") -> bool:
        """Return whether some path could match both patterns.

        Patterns overlap when they have the same number of segments and
        each pair of segments is either equal or involves a placeholder.
        """
        mine, theirs = self.segments, other.segments
        if len(mine) != len(theirs):
            return False
        for a, b in zip(mine, theirs, strict=True):
            if _PARAM_RE.fullmatch(a) or _PARAM_RE.fullmatch(b):
                continue
            if a != b:
                return False
        return True

    def build(self, **params: str) -> str:
        """Fill placeholders to produce a concrete path."""
        return _PARAM_RE.sub(lambda m: params.get(m.group(1), m.group(0)), self.value)
