"""Domain value objects and shared value types."""

from spindle.domain.value_objects.core import CollectionSlug, ContentSlug, UrlPattern

__all__ = [
    "CollectionSlug",
    "ContentSlug",
    "UrlPattern",
]
