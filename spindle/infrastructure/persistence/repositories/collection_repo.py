"""Collection repository. Every query is scoped by site_id; returns application DTOs."""

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from spindle.application.dtos.collection import CollectionResult
from spindle.domain.fields import (
    FieldDefinition,
    merge_with_default_fields,
    strip_default_fields,
)
from spindle.infrastructure.persistence.models.collection import Collection
from spindle.infrastructure.persistence.models.content_item import ContentItem
from spindle.infrastructure.persistence.repositories.base import BaseRepository
from spindle.shared.utils.datetime import ensure_utc, utc_now

# Columns update_collection may change. slug is immutable once created.
_UPDATABLE = frozenset({"name", "description", "url_pattern", "schema", "settings"})


def _to_result(c: Collection) -> CollectionResult:
    """Map ORM Collection to CollectionResult with default fields injected."""
    raw_fields = (c.schema or {}).get("fields") or []
    custom = tuple(FieldDefinition.from_dict(f) for f in raw_fields)
    return CollectionResult(
        id=c.id,
        site_id=c.site_id,
        name=c.name,
        slug=c.slug,
        description=c.description,
        url_pattern=c.url_pattern,
        fields=merge_with_default_fields(custom),
        custom_fields=tuple(strip_default_fields(custom)),
        settings=dict(c.settings or {}),
        created_at=ensure_utc(c.created_at),
        updated_at=ensure_utc(c.updated_at),
    )


class CollectionRepository(BaseRepository[Collection]):
    """Collection schema repository. Site-scoped via method args."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Collection)

    async def _get_row(self, site_id: str, slug: str) -> Collection | None:
        result = await self.db.execute(
            select(Collection).where(
                Collection.site_id == site_id,
                Collection.slug == slug,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_slug(self, site_id: str, slug: str) -> CollectionResult | None:
        """Return the collection with this slug in this site, or None."""
        row = await self._get_row(site_id, slug)
        return _to_result(row) if row else None

    async def list_for_site(self, site_id: str) -> list[CollectionResult]:
        """Return all collections of the site in creation order."""
        result = await self.db.execute(
            select(Collection)
            .where(Collection.site_id == site_id)
            .order_by(Collection.created_at.asc(), Collection.id.asc())
        )
        return [_to_result(c) for c in result.scalars().all()]

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
        now = utc_now()
        entity = Collection(
            site_id=site_id,
            name=name,
            slug=slug,
            url_pattern=url_pattern,
            schema=schema,
            settings=dict(settings or {}),
            description=description,
            created_at=now,
            updated_at=now,
        )
        created = await self.create(entity)
        return _to_result(created)

    async def update_collection(
        self, site_id: str, slug: str, **updates: Any
    ) -> CollectionResult | None:
        """Apply provided keys; returns None when the collection is absent."""
        entity = await self._get_row(site_id, slug)
        if entity is None:
            return None
        for key in _UPDATABLE:
            if key in updates:
                # JSON columns are reassigned, never mutated in place.
                value = updates[key]
                setattr(entity, key, dict(value) if isinstance(value, dict) else value)
        entity.updated_at = utc_now()
        await self.db.flush()
        await self.db.refresh(entity)
        return _to_result(entity)

    async def delete_collection(self, site_id: str, slug: str) -> bool:
        """Delete the collection and its items. Returns False when absent."""
        entity = await self._get_row(site_id, slug)
        if entity is None:
            return False
        await self.db.execute(
            delete(ContentItem)
            .where(
                ContentItem.site_id == site_id,
                ContentItem.collection_id == entity.id,
            )
            .execution_options(synchronize_session=False)
        )
        await self.delete(entity)
        return True
