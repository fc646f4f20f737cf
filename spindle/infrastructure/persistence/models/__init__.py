"""Persistence models: ORM entities and mixins."""

from spindle.infrastructure.persistence.models.collection import Collection
from spindle.infrastructure.persistence.models.content_item import ContentItem
from spindle.infrastructure.persistence.models.mixins import (
    CuidMixin,
    JSONDocument,
    SiteMixin,
    SiteScopedModel,
    TimestampMixin,
)
from spindle.infrastructure.persistence.models.site import Site

__all__ = [
    "Collection",
    "ContentItem",
    "CuidMixin",
    "JSONDocument",
    "Site",
    "SiteMixin",
    "SiteScopedModel",
    "TimestampMixin",
]
