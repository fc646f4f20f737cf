"""Domain exceptions for the Spindle content engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class SpindleException(Exception):
    """Base exception for all Spindle engine errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body used by the HTTP exception handler."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(SpindleException):
    """Raised when input validation fails (e.g. missing data on create)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class FieldValidationException(ValidationException):
    """Raised when a single field value does not satisfy its field type."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}", field=field)
        self.field = field
        self.reason = message


class SchemaValidationException(SpindleException):
    """Raised when content data or a collection schema fails validation."""

    def __init__(self, schema_type: str, validation_errors: list[Any]) -> None:
        """Initialize with schema identifier and validation errors.

        Args:
            schema_type: Collection slug or schema identifier.
            validation_errors: List of validation error messages.
        """
        super().__init__(
            f"Schema validation failed for {schema_type}",
            "SCHEMA_VALIDATION_ERROR",
            {"schema_type": schema_type, "errors": validation_errors},
        )
        self.validation_errors = validation_errors


class ResourceNotFoundException(SpindleException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'content_item', 'site').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SiteNotFoundException(SpindleException):
    """Raised when a requested site is not found."""

    def __init__(self, site_id: str) -> None:
        super().__init__(
            f"Site not found: {site_id}",
            "SITE_NOT_FOUND",
            {"site_id": site_id},
        )


class CollectionNotFoundException(SpindleException):
    """Raised when a collection slug does not exist in the given site.

    Never resolved by falling back to a same-slug collection of another site.
    """

    def __init__(self, collection_slug: str, site_id: str) -> None:
        """Initialize with the collection slug and the site that was searched.

        Args:
            collection_slug: Slug that was looked up.
            site_id: Site the lookup was scoped to.
        """
        super().__init__(
            f"Collection '{collection_slug}' not found in site '{site_id}'. "
            "Please verify the collection exists in the target site.",
            "COLLECTION_NOT_FOUND",
            {"collection": collection_slug, "site_id": site_id},
        )


class ContentNotFoundException(SpindleException):
    """Raised when a content item is absent from the collection in this site."""

    def __init__(self, collection_slug: str, item_id: str) -> None:
        super().__init__(
            f"Content item '{item_id}' not found in collection '{collection_slug}'",
            "CONTENT_NOT_FOUND",
            {"collection": collection_slug, "item_id": item_id},
        )


class CollectionAlreadyExistsException(SpindleException):
    """Raised when creating a collection whose slug already exists in the site."""

    def __init__(self, collection_slug: str, site_id: str) -> None:
        super().__init__(
            f"Collection with slug '{collection_slug}' already exists in site '{site_id}'",
            "COLLECTION_ALREADY_EXISTS",
            {"collection": collection_slug, "site_id": site_id},
        )


class DuplicateSlugException(SpindleException):
    """Raised when a content slug is already taken within (site, collection)."""

    def __init__(self, collection_slug: str, slug: str) -> None:
        super().__init__(
            f"Slug '{slug}' is already used in collection '{collection_slug}'",
            "DUPLICATE_SLUG",
            {"collection": collection_slug, "slug": slug},
        )


class UrlPatternConflictException(SpindleException):
    """Raised when a collection URL pattern overlaps another collection's in the site."""

    def __init__(self, url_pattern: str, conflicting_collection: str) -> None:
        super().__init__(
            f"URL pattern '{url_pattern}' overlaps the pattern of collection "
            f"'{conflicting_collection}'",
            "URL_PATTERN_CONFLICT",
            {
                "url_pattern": url_pattern,
                "conflicting_collection": conflicting_collection,
            },
        )


class SqlNotConfiguredException(SpindleException):
    """Raised when an operation requires the database but no DATABASE_URL is set."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
