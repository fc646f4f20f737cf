"""Application ports (repository protocols)."""

from spindle.application.interfaces.repositories import (
    ICollectionRepository,
    IContentItemRepository,
    ISiteRepository,
)

__all__ = ["ICollectionRepository", "IContentItemRepository", "ISiteRepository"]
