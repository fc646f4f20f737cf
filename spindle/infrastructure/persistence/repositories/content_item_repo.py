"""ContentItem repository. Returns application DTOs.

Every item query filters by both collection_id and site_id of the resolved
collection, so an id or slug from another site never matches.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    ColumnElement,
    DateTime,
    delete,
    func,
    literal,
    or_,
    select,
    update,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spindle.application.dtos.collection import CollectionResult
from spindle.application.dtos.content import ContentItemResult
from spindle.domain.enums import ContentStatus
from spindle.domain.exceptions import DuplicateSlugException, ValidationException
from spindle.infrastructure.persistence.models.collection import Collection
from spindle.infrastructure.persistence.models.content_item import ContentItem
from spindle.infrastructure.persistence.repositories.base import BaseRepository
from spindle.shared.utils.datetime import ensure_utc, utc_now
from spindle.shared.utils.generators import generate_cuid

_SORT_COLUMNS: dict[str, Any] = {
    "created_at": ContentItem.created_at,
    "updated_at": ContentItem.updated_at,
    "published_at": ContentItem.published_at,
    "title": ContentItem.title,
    "slug": ContentItem.slug,
    "status": ContentItem.status,
}
_CAMEL_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "publishedAt": "published_at",
}
_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}
_CONFLICT_KEYS = ["site_id", "collection_id", "slug"]


def _to_result(row: ContentItem, collection_slug: str) -> ContentItemResult:
    """Map ORM ContentItem to ContentItemResult."""
    return ContentItemResult(
        id=row.id,
        site_id=row.site_id,
        collection_id=row.collection_id,
        collection_slug=collection_slug,
        slug=row.slug,
        title=row.title,
        data=dict(row.data or {}),
        status=ContentStatus(row.status),
        draft_data=dict(row.draft_data) if row.draft_data is not None else None,
        author_id=row.author_id,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        published_at=ensure_utc(row.published_at),
    )


def _scope(collection: CollectionResult) -> tuple[ColumnElement[bool], ...]:
    return (
        ContentItem.collection_id == collection.id,
        ContentItem.site_id == collection.site_id,
    )


def _published() -> tuple[ColumnElement[bool], ...]:
    return (
        ContentItem.status == ContentStatus.PUBLISHED.value,
        ContentItem.published_at.is_not(None),
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _column_or_data_key(key: str) -> Any:
    key = _CAMEL_ALIASES.get(key, key)
    if key in _SORT_COLUMNS:
        return _SORT_COLUMNS[key]
    return ContentItem.data[key].as_string()


def _filter_clause(key: str, value: Any) -> ColumnElement[bool]:
    """Equality on a column, or on a top-level data key typed by the Python value.

    None matches SQL NULL on columns, and a missing key or JSON null in data.
    """
    column_key = _CAMEL_ALIASES.get(key, key)
    if column_key in _SORT_COLUMNS:
        if value is None:
            return _SORT_COLUMNS[column_key].is_(None)
        if isinstance(value, ContentStatus):
            value = value.value
        return _SORT_COLUMNS[column_key] == value
    element = ContentItem.data[key]
    if value is None:
        return element.as_string().is_(None)
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    return element.as_string() == str(value)


class ContentItemRepository(BaseRepository[ContentItem]):
    """Content item repository. Scoped by the collection DTO passed to each method."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, ContentItem)

    async def get_item(
        self, collection: CollectionResult, item_id: str
    ) -> ContentItemResult | None:
        result = await self.db.execute(
            select(ContentItem)
            .where(ContentItem.id == item_id, *_scope(collection))
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return _to_result(row, collection.slug) if row else None

    async def get_item_by_slug(
        self,
        collection: CollectionResult,
        slug: str,
        *,
        published_only: bool = False,
    ) -> ContentItemResult | None:
        stmt = select(ContentItem).where(ContentItem.slug == slug, *_scope(collection))
        if published_only:
            stmt = stmt.where(*_published())
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        row = result.scalar_one_or_none()
        return _to_result(row, collection.slug) if row else None

    async def slug_exists(
        self, collection: CollectionResult, slug: str, *, exclude_id: str | None = None
    ) -> bool:
        stmt = select(ContentItem.id).where(ContentItem.slug == slug, *_scope(collection))
        if exclude_id is not None:
            stmt = stmt.where(ContentItem.id != exclude_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

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
        """Return one page of items and the total count matching the filters."""
        if order not in ("asc", "desc"):
            raise ValidationException(
                f"order must be 'asc' or 'desc', got {order!r}", field="order"
            )
        conditions: list[ColumnElement[bool]] = list(_scope(collection))
        if published_only:
            conditions.extend(_published())
        for key, value in (filters or {}).items():
            conditions.append(_filter_clause(key, value))

        total = await self.db.scalar(
            select(func.count()).select_from(ContentItem).where(*conditions)
        )
        sort_expr = _column_or_data_key(sort)
        ordering = sort_expr.asc() if order == "asc" else sort_expr.desc()
        tiebreak = ContentItem.id.asc() if order == "asc" else ContentItem.id.desc()
        result = await self.db.execute(
            select(ContentItem)
            .where(*conditions)
            .order_by(ordering, tiebreak)
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        items = [_to_result(r, collection.slug) for r in result.scalars().all()]
        return items, int(total or 0)

    async def insert_item(
        self,
        collection: CollectionResult,
        *,
        slug: str,
        title: str,
        data: dict[str, Any],
        author_id: str | None = None,
    ) -> ContentItemResult:
        """Insert a draft item.

        Raises:
            DuplicateSlugException: If the slug is taken in this collection.
        """
        now = utc_now()
        entity = ContentItem(
            site_id=collection.site_id,
            collection_id=collection.id,
            slug=slug,
            title=title,
            data=data,
            status=ContentStatus.DRAFT.value,
            draft_data=None,
            author_id=author_id,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(entity)
                await self.db.flush()
        except IntegrityError as e:
            raise DuplicateSlugException(collection.slug, slug) from e
        return _to_result(entity, collection.slug)

    async def update_item(
        self,
        collection: CollectionResult,
        item_id: str,
        values: dict[str, Any],
        *,
        stamp_published_at: datetime | None = None,
    ) -> ContentItemResult | None:
        """Apply column values in one UPDATE and return the fresh row.

        Args:
            collection: Resolved collection (scopes the statement).
            item_id: Item to update.
            values: Column values (JSON columns receive new dicts).
            stamp_published_at: When given, published_at becomes
                COALESCE(published_at, stamp_published_at) so a first publish
                stamps it and later ones keep it.

        Returns:
            Updated item, or None when no row matched.
        """
        now = utc_now()
        stmt_values = dict(values)
        stmt_values["updated_at"] = now
        if stamp_published_at is not None:
            stmt_values["published_at"] = func.coalesce(
                ContentItem.published_at,
                literal(stamp_published_at, type_=DateTime(timezone=True)),
            )
        try:
            result = await self.db.execute(
                update(ContentItem)
                .where(ContentItem.id == item_id, *_scope(collection))
                .values(**stmt_values)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            raise DuplicateSlugException(collection.slug, str(values.get("slug"))) from e
        if result.rowcount == 0:
            return None
        return await self.get_item(collection, item_id)

    async def delete_item(self, collection: CollectionResult, item_id: str) -> bool:
        result = await self.db.execute(
            delete(ContentItem)
            .where(ContentItem.id == item_id, *_scope(collection))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def insert_many_skip_duplicates(
        self,
        collection: CollectionResult,
        rows: list[dict[str, Any]],
    ) -> int:
        """Bulk insert draft items, skipping rows whose slug already exists.

        One INSERT ... ON CONFLICT (site_id, collection_id, slug) DO NOTHING
        statement. Rows carry slug, title, data and optionally author_id.

        Returns:
            Number of rows actually inserted.
        """
        if not rows:
            return 0
        dialect = self.db.get_bind().dialect.name
        make_insert = _INSERTS.get(dialect)
        if make_insert is None:
            raise NotImplementedError(f"Bulk insert is not supported on {dialect!r}")
        now = utc_now()
        table = ContentItem.__table__
        payload = [
            {
                "id": generate_cuid(),
                "site_id": collection.site_id,
                "collection_id": collection.id,
                "slug": row["slug"],
                "title": row["title"],
                "data": row["data"],
                "status": ContentStatus.DRAFT.value,
                "draft_data": None,
                "author_id": row.get("author_id"),
                "created_at": now,
                "updated_at": now,
            }
            for row in rows
        ]
        stmt = (
            make_insert(table)
            .values(payload)
            .on_conflict_do_nothing(index_elements=_CONFLICT_KEYS)
            .returning(table.c.id)
        )
        # Savepoint: a failing chunk rolls back alone and leaves the session usable.
        async with self.db.begin_nested():
            result = await self.db.execute(stmt)
            inserted = len(result.scalars().all())
        return inserted

    async def map_slugs_to_ids(
        self, collection: CollectionResult, slugs: list[str] | set[str]
    ) -> dict[str, str]:
        """Resolve slugs to item ids within the collection (missing slugs are absent)."""
        if not slugs:
            return {}
        result = await self.db.execute(
            select(ContentItem.slug, ContentItem.id).where(
                ContentItem.slug.in_(list(slugs)), *_scope(collection)
            )
        )
        return {slug: item_id for slug, item_id in result.all()}

    async def search(
        self,
        site_id: str,
        query: str,
        *,
        collection_slugs: list[str] | None = None,
        published_only: bool = False,
        limit: int = 50,
    ) -> list[ContentItemResult]:
        """Case-insensitive substring match on title or data.body within one site."""
        pattern = f"%{_escape_like(query)}%"
        stmt = (
            select(ContentItem, Collection.slug)
            .join(Collection, Collection.id == ContentItem.collection_id)
            .where(
                ContentItem.site_id == site_id,
                Collection.site_id == site_id,
                or_(
                    ContentItem.title.ilike(pattern, escape="\\"),
                    ContentItem.data["body"].as_string().ilike(pattern, escape="\\"),
                ),
            )
        )
        if collection_slugs:
            stmt = stmt.where(Collection.slug.in_(collection_slugs))
        if published_only:
            stmt = stmt.where(*_published())
        result = await self.db.execute(
            stmt.order_by(ContentItem.updated_at.desc(), ContentItem.id.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [_to_result(item, slug) for item, slug in result.all()]

    async def list_published_for_site(self, site_id: str) -> list[ContentItemResult]:
        """All published items of a site, grouped by collection (sitemap input)."""
        result = await self.db.execute(
            select(ContentItem, Collection.slug)
            .join(Collection, Collection.id == ContentItem.collection_id)
            .where(
                ContentItem.site_id == site_id,
                Collection.site_id == site_id,
                *_published(),
            )
            .order_by(
                Collection.created_at.asc(),
                ContentItem.updated_at.desc(),
                ContentItem.id.asc(),
            )
            .execution_options(populate_existing=True)
        )
        return [_to_result(item, slug) for item, slug in result.all()]
