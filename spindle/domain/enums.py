"""Domain enumerations for the Spindle engine.

Enums represent fixed sets of domain values (field kinds, publish status).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]  # type: ignore[attr-defined]


class ContentStatus(_ValuesMixin, str, Enum):
    """Content item publication status.

    Only published items are visible to the public read API.
    """

    DRAFT = "draft"
    PUBLISHED = "published"


class FieldType(_ValuesMixin, str, Enum):
    """Kinds of field a collection schema may declare."""

    TEXT = "text"
    MARKDOWN = "markdown"
    BOOLEAN = "boolean"
    IMAGE = "image"
    REFERENCE = "reference"
    MULTI_REFERENCE = "multi-reference"
    SELECT = "select"
    MULTISELECT = "multiselect"
    DATETIME = "datetime"
    DATE = "date"
    NUMBER = "number"
    JSON = "json"

    @property
    def is_reference(self) -> bool:
        """True for fields whose values are content item identifiers."""
        return self in (FieldType.REFERENCE, FieldType.MULTI_REFERENCE)

    @property
    def is_multi_valued(self) -> bool:
        """True for fields holding a list of values."""
        return self in (FieldType.MULTISELECT, FieldType.MULTI_REFERENCE)
