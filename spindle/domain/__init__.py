"""Domain layer: entities, value objects, field catalog, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from spindle.domain.entities import (
    ContentItemEntity,
    ContentState,
    Live,
    LiveWithPendingDraft,
    Unpublished,
)
from spindle.domain.enums import ContentStatus, FieldType
from spindle.domain.exceptions import (
    CollectionAlreadyExistsException,
    CollectionNotFoundException,
    ContentNotFoundException,
    DuplicateSlugException,
    FieldValidationException,
    ResourceNotFoundException,
    SchemaValidationException,
    SiteNotFoundException,
    SpindleException,
    UrlPatternConflictException,
    ValidationException,
)
from spindle.domain.fields import (
    DEFAULT_FIELDS,
    FieldDefinition,
    validate_content_data,
    validate_field_value,
)
from spindle.domain.value_objects import CollectionSlug, ContentSlug, UrlPattern

__all__ = [
    # Entities
    "ContentItemEntity",
    "ContentState",
    "Live",
    "LiveWithPendingDraft",
    "Unpublished",
    # Enums
    "ContentStatus",
    "FieldType",
    # Exceptions
    "CollectionAlreadyExistsException",
    "CollectionNotFoundException",
    "ContentNotFoundException",
    "DuplicateSlugException",
    "FieldValidationException",
    "ResourceNotFoundException",
    "SchemaValidationException",
    "SiteNotFoundException",
    "SpindleException",
    "UrlPatternConflictException",
    "ValidationException",
    # Field catalog
    "DEFAULT_FIELDS",
    "FieldDefinition",
    "validate_content_data",
    "validate_field_value",
    # Value objects
    "CollectionSlug",
    "ContentSlug",
    "UrlPattern",
]
