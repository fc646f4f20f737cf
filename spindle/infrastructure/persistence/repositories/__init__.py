"""Repositories: site-scoped data access returning application DTOs."""

from spindle.infrastructure.persistence.repositories.base import BaseRepository
from spindle.infrastructure.persistence.repositories.collection_repo import (
    CollectionRepository,
)
from spindle.infrastructure.persistence.repositories.content_item_repo import (
    ContentItemRepository,
)
from spindle.infrastructure.persistence.repositories.site_repo import SiteRepository

__all__ = [
    "BaseRepository",
    "CollectionRepository",
    "ContentItemRepository",
    "SiteRepository",
]
