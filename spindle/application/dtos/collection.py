"""DTOs for collections (no dependency on ORM)."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from spindle.domain.fields import FieldDefinition
from spindle.domain.value_objects.core import UrlPattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionResult:
    """Collection read-model with the effective field list.

    ``fields`` is the default field set followed by the author-defined
    ``custom_fields``. The URL pattern is compiled once here; a stored
    pattern that cannot be compiled leaves ``compiled_pattern`` as None.
    """

    id: str
    site_id: str
    name: str
    slug: str
    description: str | None
    url_pattern: str
    fields: tuple[FieldDefinition, ...]
    custom_fields: tuple[FieldDefinition, ...]
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    compiled_pattern: UrlPattern | None = field(
        init=False, default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        try:
            compiled: UrlPattern | None = UrlPattern(self.url_pattern)
        except ValueError as e:
            logger.warning(
                "Collection %s has an unusable url_pattern %r: %s",
                self.slug,
                self.url_pattern,
                e,
            )
            compiled = None
        object.__setattr__(self, "compiled_pattern", compiled)

    def get_field(self, name: str) -> FieldDefinition | None:
        """Return the field with the given name, or None."""
        return next((f for f in self.fields if f.name == name), None)

    @property
    def reference_fields(self) -> tuple[FieldDefinition, ...]:
        return tuple(f for f in self.fields if f.type.is_reference)

    @property
    def default_og_image(self) -> str | None:
        """Collection-level OG image default from settings.seo.defaultOgImage."""
        seo = self.settings.get("seo") or {}
        return seo.get("defaultOgImage")

    @property
    def default_description(self) -> str | None:
        seo = self.settings.get("seo") or {}
        return seo.get("defaultDescription")

    def item_path(self, slug: str) -> str:
        """Public path of an item in this collection ({slug} substituted)."""
        return self.url_pattern.replace("{slug}", slug)

    def schema_document(self) -> dict[str, Any]:
        """The stored schema shape: custom fields only."""
        return {"fields": [f.to_dict() for f in self.custom_fields]}


@dataclass(frozen=True)
class UrlMatch:
    """Result of resolving an inbound URL to a collection."""

    collection: CollectionResult
    params: dict[str, str]

    @property
    def slug(self) -> str | None:
        return self.params.get("slug")
