"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill.
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from spindle.application.dtos.collection import CollectionResult
    from spindle.application.dtos.content import ContentItemResult
    from spindle.application.dtos.site import SiteResult


class ISiteRepository(Protocol):
    """Protocol for site repository."""

    async def get_site(self, site_id: str) -> SiteResult | None:
        """Return the site or None."""


class ICollectionRepository(Protocol):
    """Protocol for collection repository. Every method is scoped by site_id."""

    async def get_by_slug(self, site_id: str, slug: str) -> CollectionResult | None:
        """Return the collection with this slug in this site, or None."""

    async def list_for_site(self, site_id: str) -> list[CollectionResult]:
        """Return all collections of the site in creation order."""

    async def create_collection(
        self,
        site_id: str,
        *,
        name: str,
        slug: str,
        url_pattern: str,
        schema: dict[str, Any],
        settings: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> CollectionResult:
        """Persist a new collection."""

    async def update_collection(
        self, site_id: str, slug: str, **updates: Any
    ) -> CollectionResult | None:
        """Apply updates; None when absent."""

    async def delete_collection(self, site_id: str, slug: str) -> bool:
        """Delete collection and its items; False when absent."""


class IContentItemRepository(Protocol):
    """Protocol for content item repository. Scoped by the collection DTO."""

    async def get_item(
        self, collection: CollectionResult, item_id: str
    ) -> ContentItemResult | None:
        """Return the item or None."""

    async def get_item_by_slug(
        self, collection: CollectionResult, slug: str, *, published_only: bool = False
    ) -> ContentItemResult | None:
        """Return the item with this slug or None."""

    async def slug_exists(
        self, collection: CollectionResult, slug: str, *, exclude_id: str | None = None
    ) -> bool:
        """Return whether another item already uses the slug."""

    async def list_items(
        self,
        collection: CollectionResult,
        *,
        limit: int,
        offset: int,
        sort: str = "updated_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
        published_only: bool = False,
    ) -> tuple[list[ContentItemResult], int]:
        """Return one page and the total count."""

    async def insert_item(
        self,
        collection: CollectionResult,
        *,
        slug: str,
        title: str,
        data: dict[str, Any],
        author_id: str | None = None,
    ) -> ContentItemResult:
        """Insert a draft item."""

    async def update_item(
        self,
        collection: CollectionResult,
        item_id: str,
        values: dict[str, Any],
        *,
        stamp_published_at: datetime | None = None,
    ) -> ContentItemResult | None:
        """Single-statement update; None when no row matched."""

    async def delete_item(self, collection: CollectionResult, item_id: str) -> bool:
        """Delete; False when absent."""

    async def insert_many_skip_duplicates(
        self, collection: CollectionResult, rows: list[dict[str, Any]]
    ) -> int:
        """Bulk insert skipping existing slugs; returns inserted count."""

    async def map_slugs_to_ids(
        self, collection: CollectionResult, slugs: list[str] | set[str]
    ) -> dict[str, str]:
        """Resolve slugs to ids within the collection."""

    async def search(
        self,
        site_id: str,
        query: str,
        *,
        collection_slugs: list[str] | None = None,
        published_only: bool = False,
        limit: int = 50,
    ) -> list[ContentItemResult]:
        """Substring search on title and body within the site."""

    async def list_published_for_site(self, site_id: str) -> list[ContentItemResult]:
        """All published items of the site."""
