"""Collection schema registry for one site.

Resolves collections with their effective field list (default fields first,
then author-defined fields), matches inbound URLs against collection URL
patterns, and validates schema changes before they are stored.
"""

import logging
from typing import Any

from spindle.application.dtos.collection import CollectionResult, UrlMatch
from spindle.application.interfaces.repositories import ICollectionRepository
from spindle.application.services.collection_schema_validator import (
    CollectionSchemaValidator,
)
from spindle.core.config import Settings, get_settings
from spindle.domain.exceptions import (
    CollectionAlreadyExistsException,
    CollectionNotFoundException,
    UrlPatternConflictException,
    ValidationException,
)
from spindle.domain.fields import FieldDefinition, strip_default_fields
from spindle.domain.value_objects.core import CollectionSlug, UrlPattern
from spindle.shared.telemetry.tracing import traced
from spindle.shared.utils.generators import slugify

logger = logging.getLogger(__name__)

FieldInput = FieldDefinition | dict[str, Any]


def default_url_pattern(collection_slug: str) -> str:
    """URL pattern used when a collection is created without one."""
    return f"/{collection_slug}/{{slug}}"


class CollectionRegistry:
    """Collection definitions of a single site.

    Every lookup filters by this registry's site_id; a same-slug collection
    of another site is never returned.
    """

    def __init__(
        self,
        collection_repo: ICollectionRepository,
        site_id: str,
        *,
        settings: Settings | None = None,
        validator: CollectionSchemaValidator | None = None,
    ) -> None:
        if not site_id:
            raise ValidationException(
                "A valid site_id must be provided to scope collection operations",
                field="site_id",
            )
        self.repo = collection_repo
        self.site_id = site_id
        self.settings = settings or get_settings()
        self.validator = validator or CollectionSchemaValidator()

    @traced("collections.get")
    async def get_collection(self, slug: str) -> CollectionResult | None:
        """Return the collection with merged fields, or None when absent."""
        return await self.repo.get_by_slug(self.site_id, slug)

    async def require_collection(self, slug: str) -> CollectionResult:
        """Return the collection or raise.

        Raises:
            CollectionNotFoundException: If the slug does not exist in this site.
        """
        collection = await self.repo.get_by_slug(self.site_id, slug)
        if collection is None:
            logger.warning(
                "Collection lookup missed: slug=%s site_id=%s", slug, self.site_id
            )
            raise CollectionNotFoundException(slug, self.site_id)
        return collection

    @traced("collections.list")
    async def get_all_collections(self) -> list[CollectionResult]:
        return await self.repo.list_for_site(self.site_id)

    @traced("collections.match_url")
    async def get_collection_by_url_pattern(self, url: str) -> UrlMatch | None:
        """Resolve a concrete URL path to (collection, params).

        Collections are tried in creation order; the first match wins.
        """
        for collection in await self.repo.list_for_site(self.site_id):
            pattern = collection.compiled_pattern
            if pattern is None:
                continue
            params = pattern.match(url)
            if params is not None:
                return UrlMatch(collection=collection, params=params)
        return None

    @traced("collections.create")
    async def create_collection(
        self,
        name: str,
        *,
        slug: str | None = None,
        url_pattern: str | None = None,
        fields: list[FieldInput] | tuple[FieldInput, ...] = (),
        settings: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> CollectionResult:
        """Create a collection in this site.

        Args:
            name: Display name; the slug is derived from it when not given.
            slug: Explicit collection slug.
            url_pattern: Pattern with a {slug} placeholder (default /<slug>/{slug}).
            fields: Author-defined fields; default field names are ignored.
            settings: Collection settings (e.g. {"seo": {"defaultOgImage": ...}}).
            description: Optional description.

        Raises:
            ValidationException: Name, slug or URL pattern is invalid.
            SchemaValidationException: The field list is invalid.
            CollectionAlreadyExistsException: The slug is taken in this site.
            UrlPatternConflictException: The pattern overlaps another collection's.
        """
        if not name or not name.strip():
            raise ValidationException("Collection name is required", field="name")
        resolved_slug = self._validate_slug(slug if slug else slugify(name))
        pattern = self._validate_url_pattern(url_pattern or default_url_pattern(resolved_slug))
        schema = self._schema_document(resolved_slug, fields)

        if await self.repo.get_by_slug(self.site_id, resolved_slug) is not None:
            raise CollectionAlreadyExistsException(resolved_slug, self.site_id)
        await self._check_url_conflicts(resolved_slug, pattern)

        created = await self.repo.create_collection(
            self.site_id,
            name=name.strip(),
            slug=resolved_slug,
            url_pattern=pattern.value,
            schema=schema,
            settings=settings,
            description=description,
        )
        logger.info("Created collection %s in site %s", resolved_slug, self.site_id)
        return created

    @traced("collections.update")
    async def update_collection(self, slug: str, **changes: Any) -> CollectionResult:
        """Update name, description, url_pattern, fields or settings.

        Raises:
            CollectionNotFoundException: If the collection is absent in this site.
        """
        unknown = set(changes) - {"name", "description", "url_pattern", "fields", "settings"}
        if unknown:
            raise ValidationException(
                f"Unsupported collection changes: {sorted(unknown)}", field=sorted(unknown)[0]
            )
        existing = await self.require_collection(slug)
        updates: dict[str, Any] = {}
        if "name" in changes:
            name = changes["name"]
            if not name or not str(name).strip():
                raise ValidationException("Collection name is required", field="name")
            updates["name"] = str(name).strip()
        if "description" in changes:
            updates["description"] = changes["description"]
        if changes.get("url_pattern"):
            pattern = self._validate_url_pattern(changes["url_pattern"])
            await self._check_url_conflicts(existing.slug, pattern)
            updates["url_pattern"] = pattern.value
        if "fields" in changes:
            updates["schema"] = self._schema_document(existing.slug, changes["fields"] or ())
        if "settings" in changes:
            updates["settings"] = dict(changes["settings"] or {})
        if not updates:
            return existing
        updated = await self.repo.update_collection(self.site_id, existing.slug, **updates)
        if updated is None:
            raise CollectionNotFoundException(slug, self.site_id)
        return updated

    @traced("collections.delete")
    async def delete_collection(self, slug: str) -> bool:
        """Delete a collection and its items. Returns False when it did not exist."""
        deleted = await self.repo.delete_collection(self.site_id, slug)
        if deleted:
            logger.info("Deleted collection %s in site %s", slug, self.site_id)
        return deleted

    @staticmethod
    def _validate_slug(value: str) -> str:
        try:
            return CollectionSlug(value).value
        except ValueError as e:
            raise ValidationException(str(e), field="slug") from e

    @staticmethod
    def _validate_url_pattern(value: str) -> UrlPattern:
        try:
            return UrlPattern(value)
        except ValueError as e:
            raise ValidationException(str(e), field="url_pattern") from e

    def _schema_document(
        self, collection_slug: str, fields: list[FieldInput] | tuple[FieldInput, ...]
    ) -> dict[str, Any]:
        """Build the stored {"fields": [...]} document; default fields are dropped."""
        raw = [f.to_dict() if isinstance(f, FieldDefinition) else dict(f) for f in fields]
        validated = self.validator.validate_document(collection_slug, {"fields": raw})
        return {"fields": [f.to_dict() for f in strip_default_fields(validated)]}

    async def _check_url_conflicts(self, collection_slug: str, pattern: UrlPattern) -> None:
        if not self.settings.reject_overlapping_url_patterns:
            return
        for other in await self.repo.list_for_site(self.site_id):
            if other.slug == collection_slug or other.compiled_pattern is None:
                continue
            if pattern.overlaps(other.compiled_pattern):
                raise UrlPatternConflictException(pattern.value, other.slug)
