"""Validates collection schema documents ({"fields": [...]}) before they are stored."""

import re
from typing import Any

import jsonschema

from spindle.domain.enums import FieldType
from spindle.domain.exceptions import SchemaValidationException, ValidationException
from spindle.domain.fields import FieldDefinition

FIELD_LIST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["fields"],
    "properties": {
        "fields": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "type"],
                "properties": {
                    "name": {"type": "string", "pattern": r"^[A-Za-z_][A-Za-z0-9_]*$"},
                    "label": {"type": "string"},
                    "type": {"type": "string", "enum": [*FieldType.values(), "textarea", "body"]},
                    "required": {"type": "boolean"},
                    "validation": {
                        "type": "object",
                        "properties": {
                            "min": {"type": "number"},
                            "max": {"type": "number"},
                            "pattern": {"type": "string"},
                        },
                    },
                    "options": {"type": "array", "items": {"type": "string"}},
                    "referenceCollection": {"type": "string", "minLength": 1},
                    "description": {"type": "string"},
                    "placeholder": {"type": "string"},
                },
            },
        }
    },
}


class CollectionSchemaValidator:
    """Validates the author-defined field list of a collection."""

    def __init__(self, schema: dict[str, Any] | None = None) -> None:
        self._schema = schema or FIELD_LIST_SCHEMA
        self._validator = jsonschema.Draft202012Validator(self._schema)

    def validate_document(
        self, collection_slug: str, document: dict[str, Any]
    ) -> list[FieldDefinition]:
        """Validate a schema document and return its field definitions.

        Raises:
            SchemaValidationException: With every structural and semantic problem found.
        """
        schema_type = f"collection:{collection_slug}"
        found = sorted(
            self._validator.iter_errors(document), key=lambda e: str(list(e.absolute_path))
        )
        errors = [
            f"{'/'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}"
            for e in found
        ]
        if errors:
            raise SchemaValidationException(schema_type=schema_type, validation_errors=errors)

        fields: list[FieldDefinition] = []
        for raw in document["fields"]:
            try:
                fields.append(FieldDefinition.from_dict(raw))
            except ValidationException as e:
                errors.append(e.message)
        errors.extend(self._semantic_errors(fields))
        if errors:
            raise SchemaValidationException(schema_type=schema_type, validation_errors=errors)
        return fields

    def validate_fields(
        self, collection_slug: str, fields: list[FieldDefinition] | tuple[FieldDefinition, ...]
    ) -> list[FieldDefinition]:
        """Validate already-built field definitions (round-trips through the JSON shape)."""
        return self.validate_document(
            collection_slug, {"fields": [f.to_dict() for f in fields]}
        )

    @staticmethod
    def _semantic_errors(fields: list[FieldDefinition]) -> list[str]:
        errors: list[str] = []
        seen: set[str] = set()
        for f in fields:
            if f.name in seen:
                errors.append(f"{f.name}: duplicate field name")
            seen.add(f.name)
            if f.type.is_reference and not f.reference_collection:
                errors.append(f"{f.name}: reference fields require referenceCollection")
            if f.validation:
                lo, hi = f.validation.get("min"), f.validation.get("max")
                if lo is not None and hi is not None and lo > hi:
                    errors.append(f"{f.name}: validation.min must not exceed validation.max")
                pattern = f.validation.get("pattern")
                if pattern:
                    try:
                        re.compile(pattern)
                    except re.error as e:
                        errors.append(f"{f.name}: invalid validation.pattern {pattern!r}: {e}")
        return errors
