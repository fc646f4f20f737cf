"""Bulk import of tabular rows into a collection.

Rows are mapped column -> field, reference slugs are resolved to item ids
within the same site, and the rows are written in chunks through
ContentService.create_content_batch. An import is best effort: failed rows
and failed chunks are reported with their row number, never raised.
"""

import csv
import io
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from spindle.application.dtos.collection import CollectionResult
from spindle.application.dtos.content import ImportResult, RowError
from spindle.application.services.content_service import ContentService
from spindle.core.config import Settings, get_settings
from spindle.domain.enums import FieldType
from spindle.domain.exceptions import CollectionNotFoundException
from spindle.domain.fields import FieldDefinition
from spindle.shared.telemetry.tracing import add_span_attributes, add_span_event, traced

logger = logging.getLogger(__name__)

MULTI_VALUE_SEPARATOR = ";"
_SPLIT_TYPES = frozenset({FieldType.MULTISELECT, FieldType.REFERENCE, FieldType.MULTI_REFERENCE})


class UnresolvedReference(Exception):
    """A reference slug had no item in the target collection (fail_row policy)."""

    def __init__(self, field_name: str, slug: str, target: str) -> None:
        self.field_name = field_name
        self.slug = slug
        self.target = target
        super().__init__(f"{field_name}: no item '{slug}' in collection '{target}'")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _split_values(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        parts = str(value).split(MULTI_VALUE_SEPARATOR)
    return [p.strip() for p in parts if p and p.strip()]


class ContentImporter:
    """Imports rows into one collection of the content service's site.

    The slug->id reference cache lives for a single import_rows call.
    """

    def __init__(self, content_service: ContentService, *, settings: Settings | None = None):
        self.content = content_service
        self.settings = settings or content_service.settings or get_settings()
        self._reference_cache: dict[str, dict[str, str | None]] = {}

    @traced("import.rows")
    async def import_rows(
        self,
        collection: str,
        rows: Iterable[Mapping[str, Any]],
        mapping: Mapping[str, str] | None = None,
        *,
        author_id: str | None = None,
    ) -> ImportResult:
        """Import rows into a collection.

        Args:
            collection: Target collection slug (resolved in the service's site).
            rows: Source rows keyed by column name.
            mapping: Column -> field name. Identity when omitted; columns mapped
                to an empty name are ignored.
            author_id: Author recorded on every created item.

        Returns:
            ImportResult with counts and up to import_max_errors row errors.

        Raises:
            CollectionNotFoundException: If the collection is not in the site.
        """
        col = await self.content.get_collection(collection)
        self._reference_cache = {}
        success = failed = skipped = 0
        errors: list[RowError] = []

        def record(new_errors: Iterable[RowError]) -> None:
            for err in new_errors:
                if len(errors) < self.settings.import_max_errors:
                    errors.append(err)

        chunk: list[tuple[int, dict[str, Any]]] = []
        row_no = 0
        for row in rows:
            row_no += 1
            chunk.append((row_no, self._map_row(col, row, mapping)))
            if len(chunk) >= self.settings.import_batch_size:
                s, f, k, errs = await self._flush(col, chunk, author_id)
                success, failed, skipped = success + s, failed + f, skipped + k
                record(errs)
                chunk = []
        if chunk:
            s, f, k, errs = await self._flush(col, chunk, author_id)
            success, failed, skipped = success + s, failed + f, skipped + k
            record(errs)

        add_span_attributes(rows=row_no, success=success, failed=failed, skipped=skipped)
        logger.info(
            "Import into %s/%s: %d rows, %d created, %d skipped, %d failed",
            col.site_id,
            col.slug,
            row_no,
            success,
            skipped,
            failed,
        )
        return ImportResult(success=success, failed=failed, skipped=skipped, errors=errors)

    async def import_csv(
        self,
        collection: str,
        text: str,
        mapping: Mapping[str, str] | None = None,
        *,
        author_id: str | None = None,
    ) -> ImportResult:
        """Import CSV text with a header row; blank lines are skipped."""
        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
        rows = (r for r in reader if any(not _is_blank(v) for v in r.values()))
        return await self.import_rows(collection, rows, mapping, author_id=author_id)

    def _map_row(
        self,
        col: CollectionResult,
        row: Mapping[str, Any],
        mapping: Mapping[str, str] | None,
    ) -> dict[str, Any]:
        pairs = mapping.items() if mapping is not None else ((k, k) for k in row)
        payload: dict[str, Any] = {}
        for column, field_name in pairs:
            if not field_name:
                continue
            value = row.get(column)
            if _is_blank(value):
                continue
            fd = col.get_field(field_name)
            if fd is not None and fd.type in _SPLIT_TYPES:
                value = _split_values(value)
            elif isinstance(value, str):
                value = value.strip()
            payload[field_name] = value
        return payload

    async def _flush(
        self,
        col: CollectionResult,
        chunk: list[tuple[int, dict[str, Any]]],
        author_id: str | None,
    ) -> tuple[int, int, int, list[RowError]]:
        """Resolve references for a chunk and write it; returns (success, failed, skipped, errors)."""
        await self._prefetch_references(col, [payload for _, payload in chunk])
        errors: list[RowError] = []
        numbers: list[int] = []
        items: list[dict[str, Any]] = []
        for row_no, payload in chunk:
            try:
                resolved = self._resolve_references(col, payload)
            except UnresolvedReference as e:
                errors.append(RowError(row=row_no, message=str(e)))
                continue
            title = resolved.get("title")
            resolved["title"] = title if not _is_blank(title) else f"Imported {row_no}"
            numbers.append(row_no)
            items.append(resolved)

        if not items:
            return 0, len(errors), 0, errors
        result = await self.content.create_content_batch(
            col.slug, items, row_numbers=numbers, author_id=author_id
        )
        return result.success, result.failed + len(errors), result.skipped, errors + result.errors

    async def _prefetch_references(
        self, col: CollectionResult, payloads: list[dict[str, Any]]
    ) -> None:
        """Fill the slug->id cache with one query per target collection."""
        wanted: dict[str, set[str]] = {}
        for fd in col.reference_fields:
            target = fd.reference_collection
            if not target:
                continue
            cache = self._reference_cache.setdefault(target, {})
            for payload in payloads:
                for slug in payload.get(fd.name) or ():
                    if slug not in cache:
                        wanted.setdefault(target, set()).add(slug)

        for target, slugs in wanted.items():
            try:
                found = await self.content.map_slugs_to_ids(target, slugs)
            except CollectionNotFoundException:
                logger.warning(
                    "Reference target collection %s not found in site %s",
                    target,
                    self.content.site_id,
                )
                found = {}
            cache = self._reference_cache[target]
            for slug in slugs:
                cache[slug] = found.get(slug)

    def _resolve_references(
        self, col: CollectionResult, payload: dict[str, Any]
    ) -> dict[str, Any]:
        resolved = dict(payload)
        for fd in col.reference_fields:
            if fd.name not in resolved:
                continue
            ids = self._lookup(fd, resolved[fd.name])
            if fd.type == FieldType.MULTI_REFERENCE:
                resolved[fd.name] = ids
            else:
                resolved[fd.name] = ids[0] if ids else None
        return resolved

    def _lookup(self, fd: FieldDefinition, slugs: list[str]) -> list[str]:
        target = fd.reference_collection or ""
        cache = self._reference_cache.get(target, {})
        ids: list[str] = []
        for slug in slugs:
            item_id = cache.get(slug)
            if item_id is not None:
                ids.append(item_id)
                continue
            if self.settings.reference_miss_policy == "fail_row":
                raise UnresolvedReference(fd.name, slug, target)
            logger.warning(
                "Dropping unresolved reference %s=%r (collection %s)", fd.name, slug, target
            )
            add_span_event(
                "import.reference_dropped",
                {"field": fd.name, "slug": slug, "collection": target},
            )
        return ids
