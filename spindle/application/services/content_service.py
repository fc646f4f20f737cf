"""Content store: CRUD and draft/publish lifecycle for content items of one site.

Every entry point resolves the collection by slug AND site_id before
touching items, and every item statement filters by collection_id and
site_id. A collection slug that exists only in another site is reported as
CollectionNotFoundException, never resolved there.

Lifecycle:
    create -> draft (edits write data directly)
    publish -> status published, published_at stamped once, overlay promoted
    edit published -> save draft (draft_data) or update live (data, clears overlay)
    clear draft -> overlay discarded
"""

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spindle.application.dtos.collection import CollectionResult
from spindle.application.dtos.content import (
    BatchResult,
    ContentItemResult,
    ContentPage,
    RowError,
)
from spindle.application.dtos.markdown import RenderedContent
from spindle.application.interfaces.repositories import IContentItemRepository
from spindle.application.services.collection_registry import CollectionRegistry
from spindle.application.services.markdown_processor import MarkdownProcessor
from spindle.core.config import Settings, get_settings
from spindle.domain.entities.content import ContentItemEntity, merge_overlay
from spindle.domain.enums import ContentStatus
from spindle.domain.exceptions import (
    ContentNotFoundException,
    DuplicateSlugException,
    SchemaValidationException,
    ValidationException,
)
from spindle.domain.fields import validate_content_data
from spindle.domain.value_objects.core import ContentSlug
from spindle.infrastructure.persistence.repositories.collection_repo import (
    CollectionRepository,
)
from spindle.infrastructure.persistence.repositories.content_item_repo import (
    ContentItemRepository,
)
from spindle.shared.telemetry.tracing import add_span_attributes, add_span_event, traced
from spindle.shared.utils.datetime import parse_iso_datetime, utc_now
from spindle.shared.utils.generators import strict_slugify

logger = logging.getLogger(__name__)

# Keys stored in dedicated columns rather than in data.
SYSTEM_KEYS = frozenset({"title", "slug", "status", "publishedAt"})
DEFAULT_TITLE = "Untitled"


def _flatten_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Lift a nested ``data`` dict to the top level; top-level keys win."""
    flat = dict(payload)
    nested = flat.pop("data", None)
    if isinstance(nested, dict):
        flat = {**nested, **flat}
    return flat


def _content_fields(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in SYSTEM_KEYS}


def _row_message(exc: ValidationException | SchemaValidationException) -> str:
    if isinstance(exc, SchemaValidationException):
        return "; ".join(str(e) for e in exc.validation_errors)
    return exc.message


class ContentService:
    """Content operations for a single site.

    Args:
        session: Async session; writes flush but the caller commits.
        site_id: Site every operation is scoped to.
        registry: Collection registry for the same site (built from the session when omitted).
        markdown: Markdown processor used for render_html reads.
        settings: Engine settings (defaults to get_settings()).
        items_repo: Content item repository (built from the session when omitted).
    """

    def __init__(
        self,
        session: AsyncSession,
        site_id: str,
        *,
        registry: CollectionRegistry | None = None,
        markdown: MarkdownProcessor | None = None,
        settings: Settings | None = None,
        items_repo: IContentItemRepository | None = None,
    ) -> None:
        if not site_id:
            raise ValidationException(
                "A valid site_id must be provided to scope content operations",
                field="site_id",
            )
        self.session = session
        self.site_id = site_id
        self.settings = settings or get_settings()
        self.registry = registry or CollectionRegistry(
            CollectionRepository(session), site_id, settings=self.settings
        )
        if self.registry.site_id != site_id:
            raise ValidationException(
                "Collection registry is bound to a different site", field="site_id"
            )
        self.items = items_repo or ContentItemRepository(session)
        self.markdown = markdown or MarkdownProcessor()

    async def get_collection(self, collection: str) -> CollectionResult:
        """Resolve a collection slug in this site or raise CollectionNotFoundException."""
        return await self.registry.require_collection(collection)

    # ---- reads ----

    @traced("content.list")
    async def list_content(
        self,
        collection: str,
        *,
        limit: int = 50,
        offset: int = 0,
        sort: str = "updated_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
        published_only: bool = False,
        render_html: bool = False,
    ) -> ContentPage:
        """List items of a collection, most recently updated first by default.

        Args:
            collection: Collection slug.
            limit: Page size (>= 1).
            offset: Items to skip (>= 0).
            sort: Column (created_at, updated_at, published_at, title, slug) or data key.
            order: "asc" or "desc".
            filters: Equality filters on columns or top-level data keys.
            published_only: Only items with status published and a published_at.
            render_html: Attach rendered HTML, excerpt, reading time and TOC.
        """
        if limit < 1:
            raise ValidationException("limit must be at least 1", field="limit")
        if offset < 0:
            raise ValidationException("offset must not be negative", field="offset")
        col = await self.get_collection(collection)
        items, total = await self.items.list_items(
            col,
            limit=limit,
            offset=offset,
            sort=sort,
            order=order,
            filters=filters,
            published_only=published_only,
        )
        if render_html:
            items = [self._with_rendered(item) for item in items]
        add_span_attributes(result_count=len(items), total=total)
        return ContentPage(items=items, total=total, limit=limit, offset=offset)

    @traced("content.get_by_slug")
    async def get_content_by_slug(
        self,
        collection: str,
        slug: str,
        *,
        published_only: bool = False,
        render_html: bool = False,
    ) -> ContentItemResult | None:
        col = await self.get_collection(collection)
        item = await self.items.get_item_by_slug(col, slug, published_only=published_only)
        if item is not None and render_html:
            item = self._with_rendered(item)
        return item

    @traced("content.get_by_id")
    async def get_content_by_id(
        self, collection: str, item_id: str, *, render_html: bool = False
    ) -> ContentItemResult | None:
        col = await self.get_collection(collection)
        item = await self.items.get_item(col, item_id)
        if item is not None and render_html:
            item = self._with_rendered(item)
        return item

    @traced("content.search")
    async def search_content(
        self,
        query: str,
        collection_slugs: list[str] | None = None,
        published_only: bool = False,
    ) -> list[ContentItemResult]:
        """Case-insensitive substring search on title and body within this site."""
        if not query or not query.strip():
            return []
        return await self.items.search(
            self.site_id,
            query.strip(),
            collection_slugs=collection_slugs,
            published_only=published_only,
            limit=self.settings.search_result_limit,
        )

    async def list_published_items(self) -> list[ContentItemResult]:
        """Every published item of the site (sitemap input)."""
        return await self.items.list_published_for_site(self.site_id)

    async def map_slugs_to_ids(self, collection: str, slugs: Iterable[str]) -> dict[str, str]:
        """Resolve item slugs of a collection in this site to ids (misses are absent)."""
        col = await self.get_collection(collection)
        return await self.items.map_slugs_to_ids(col, set(slugs))

    def render(self, item: ContentItemResult) -> RenderedContent:
        """Rendered HTML, excerpt, reading time and TOC of the item body."""
        return self.markdown.render(item.body)

    def _with_rendered(self, item: ContentItemResult) -> ContentItemResult:
        return item.with_rendered(self.render(item))

    # ---- writes ----

    def _prepare_new_item(
        self, col: CollectionResult, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Split input into columns and validated custom data for a new draft."""
        payload = _flatten_payload(data)
        raw_title = payload.get("title")
        title = str(raw_title).strip() if raw_title not in (None, "") else ""
        raw_slug = payload.get("slug")
        slug = str(raw_slug).strip() if raw_slug else strict_slugify(title or "untitled")
        custom = _content_fields(payload)
        body = custom.get("body")
        custom["body"] = body if body is not None else ""
        validated = validate_content_data(col.fields, custom, schema_name=col.slug)
        entity = ContentItemEntity(
            id="pending",
            site_id=col.site_id,
            collection_id=col.id,
            slug=slug,
            title=title or DEFAULT_TITLE,
        )
        return {"slug": entity.slug, "title": entity.title, "data": validated}

    @traced("content.create")
    async def create_content(
        self,
        collection: str,
        data: dict[str, Any] | None,
        *,
        author_id: str | None = None,
    ) -> ContentItemResult:
        """Create a draft item.

        The slug comes from ``slug`` or a strict slugify of ``title``. ``title``
        and ``slug`` are stored in columns; everything else goes into data.

        Raises:
            ValidationException: No data, or an invalid slug.
            SchemaValidationException: Custom fields fail validation.
            CollectionNotFoundException: The collection is not in this site.
            DuplicateSlugException: The slug is already used in the collection.
        """
        if data is None:
            raise ValidationException("Content data is required", field="data")
        col = await self.get_collection(collection)
        prepared = self._prepare_new_item(col, data)
        if await self.items.slug_exists(col, prepared["slug"]):
            raise DuplicateSlugException(col.slug, prepared["slug"])
        created = await self.items.insert_item(
            col,
            slug=prepared["slug"],
            title=prepared["title"],
            data=prepared["data"],
            author_id=author_id,
        )
        logger.info(
            "Created content %s (%s) in %s/%s", created.id, created.slug, self.site_id, col.slug
        )
        return created

    async def _column_changes(
        self, col: CollectionResult, current: ContentItemResult, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Validate intercepted title/slug values against the current item."""
        values: dict[str, Any] = {}
        if "title" in data:
            title = str(data["title"] or "").strip()
            if not title:
                raise ValidationException("Title is required", field="title")
            values["title"] = title
        if "slug" in data:
            try:
                slug = ContentSlug(str(data["slug"] or "").strip()).value
            except ValueError as e:
                raise ValidationException(str(e), field="slug") from e
            if slug != current.slug and await self.items.slug_exists(
                col, slug, exclude_id=current.id
            ):
                raise DuplicateSlugException(col.slug, slug)
            values["slug"] = slug
        return values

    @traced("content.update")
    async def update_content_by_id(
        self, collection: str, item_id: str, data: dict[str, Any]
    ) -> ContentItemResult | None:
        """Update live values of an item (shallow merge into data).

        ``title``, ``slug``, ``status`` and ``publishedAt`` are written to
        their columns. Any content change (data keys, title or slug) clears
        a pending draft overlay. Status draft also clears it; status
        published stamps published_at when it is unset.

        Returns:
            The updated item, or None when the item does not exist.
        """
        col = await self.get_collection(collection)
        current = await self.items.get_item(col, item_id)
        if current is None:
            return None

        payload = _flatten_payload(data or {})
        values = await self._column_changes(col, current, payload)
        stamp = None
        if "status" in payload:
            try:
                status = ContentStatus(payload["status"])
            except ValueError as e:
                raise ValidationException(
                    f"Unknown status {payload['status']!r}", field="status"
                ) from e
            values["status"] = status.value
            if status == ContentStatus.DRAFT:
                values["draft_data"] = None
            else:
                stamp = utc_now()
        if payload.get("publishedAt"):
            explicit = payload["publishedAt"]
            try:
                stamp = explicit if not isinstance(explicit, str) else parse_iso_datetime(explicit)
            except ValueError as e:
                raise ValidationException(
                    "publishedAt must be an ISO-8601 datetime", field="publishedAt"
                ) from e

        content = _content_fields(payload)
        if content:
            validated = validate_content_data(
                col.fields, content, partial=True, schema_name=col.slug
            )
            values["data"] = _content_fields(merge_overlay(current.data, validated))
        if content or "title" in payload or "slug" in payload:
            values["draft_data"] = None

        if not values and stamp is None:
            return current
        return await self.items.update_item(col, item_id, values, stamp_published_at=stamp)

    @traced("content.update_draft")
    async def update_draft_by_id(
        self, collection: str, item_id: str, draft: dict[str, Any]
    ) -> ContentItemResult | None:
        """Save edits of a published item as a draft overlay.

        Unpublished items have no live version to protect, so the call
        degrades to update_content_by_id.
        """
        col = await self.get_collection(collection)
        current = await self.items.get_item(col, item_id)
        if current is None:
            return None
        if current.status != ContentStatus.PUBLISHED:
            return await self.update_content_by_id(collection, item_id, draft)

        payload = _flatten_payload(draft or {})
        payload.pop("status", None)
        payload.pop("publishedAt", None)
        content = _content_fields(payload)
        if content:
            validate_content_data(col.fields, content, partial=True, schema_name=col.slug)
        overlay = merge_overlay(current.draft_data or {}, payload)
        return await self.items.update_item(col, item_id, {"draft_data": overlay})

    @traced("content.clear_draft")
    async def clear_draft_by_id(self, collection: str, item_id: str) -> ContentItemResult:
        """Discard the draft overlay; live data is untouched.

        Raises:
            ContentNotFoundException: If the item is absent.
        """
        col = await self.get_collection(collection)
        updated = await self.items.update_item(col, item_id, {"draft_data": None})
        if updated is None:
            raise ContentNotFoundException(col.slug, item_id)
        return updated

    @traced("content.publish")
    async def publish_draft_by_id(
        self,
        collection: str,
        item_id: str,
        payload: dict[str, Any] | None = None,
    ) -> ContentItemResult:
        """Publish an item in one UPDATE.

        With a payload (or a payload wrapped as {"draft": {...}}) the payload
        replaces data; otherwise the pending overlay is merged over data.
        Status becomes published, published_at keeps its first value, and
        draft_data is cleared.

        Raises:
            ContentNotFoundException: If the item is absent.
        """
        col = await self.get_collection(collection)
        current = await self.items.get_item(col, item_id)
        if current is None:
            raise ContentNotFoundException(col.slug, item_id)

        if payload is not None:
            source = payload.get("draft") if isinstance(payload.get("draft"), dict) else payload
            flat = _flatten_payload(source)
            content = _content_fields(flat)
            content.setdefault("body", "")
            new_data = validate_content_data(col.fields, content, schema_name=col.slug)
        else:
            flat = dict(current.draft_data or {})
            content = _content_fields(flat)
            if content:
                validate_content_data(col.fields, content, partial=True, schema_name=col.slug)
            new_data = _content_fields(current.effective_data())

        values = await self._column_changes(col, current, flat)
        values.update(
            data=new_data,
            status=ContentStatus.PUBLISHED.value,
            draft_data=None,
        )
        published = await self.items.update_item(
            col, item_id, values, stamp_published_at=utc_now()
        )
        if published is None:
            raise ContentNotFoundException(col.slug, item_id)
        logger.info("Published content %s in %s/%s", item_id, self.site_id, col.slug)
        return published

    @traced("content.delete")
    async def delete_content_by_id(self, collection: str, item_id: str) -> None:
        """Delete an item; deleting a missing item succeeds."""
        col = await self.get_collection(collection)
        deleted = await self.items.delete_item(col, item_id)
        if not deleted:
            logger.debug("Delete of missing content %s in %s/%s", item_id, self.site_id, col.slug)

    @traced("content.create_batch")
    async def create_content_batch(
        self,
        collection: str,
        items: list[dict[str, Any]],
        *,
        start_row: int = 1,
        row_numbers: list[int] | None = None,
        author_id: str | None = None,
    ) -> BatchResult:
        """Insert many draft items with one statement, skipping existing slugs.

        The collection is resolved once. Rows failing validation are counted
        as failed and reported with their row number; rows whose slug already
        exists (in the store or earlier in this batch) are counted as skipped,
        so re-running an import is safe.

        Args:
            collection: Collection slug.
            items: Item payloads as accepted by create_content.
            start_row: Row number of items[0] when row_numbers is not given.
            row_numbers: Explicit row number per item (for error reporting).
            author_id: Author recorded on every inserted item.
        """
        col = await self.get_collection(collection)
        numbers = row_numbers or [start_row + i for i in range(len(items))]
        if len(numbers) != len(items):
            raise ValidationException("row_numbers must match items", field="row_numbers")

        errors: list[RowError] = []
        failed = skipped = 0
        seen: set[str] = set()
        rows: list[dict[str, Any]] = []
        for row_no, raw in zip(numbers, items, strict=True):
            try:
                prepared = self._prepare_new_item(col, raw or {})
            except (ValidationException, SchemaValidationException) as e:
                failed += 1
                errors.append(RowError(row=row_no, message=_row_message(e)))
                continue
            if prepared["slug"] in seen:
                skipped += 1
                continue
            seen.add(prepared["slug"])
            prepared["author_id"] = author_id
            rows.append(prepared)

        inserted = 0
        if rows:
            try:
                inserted = await self.items.insert_many_skip_duplicates(col, rows)
            except SQLAlchemyError as e:
                logger.exception(
                    "Batch insert of %d rows into %s/%s failed", len(rows), self.site_id, col.slug
                )
                add_span_event("content.batch_failed", {"rows": len(rows)})
                failed += len(rows)
                errors.append(
                    RowError(
                        row=numbers[0],
                        message=f"A batch of {len(rows)} items failed to insert: {e}",
                    )
                )
                return BatchResult(success=0, failed=failed, skipped=skipped, errors=errors)
            skipped += len(rows) - inserted
        add_span_attributes(inserted=inserted, failed=failed, skipped=skipped)
        return BatchResult(success=inserted, failed=failed, skipped=skipped, errors=errors)
