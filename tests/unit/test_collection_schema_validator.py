"""Tests for CollectionSchemaValidator."""

import pytest

from spindle.application.services.collection_schema_validator import (
    CollectionSchemaValidator,
)
from spindle.domain.enums import FieldType
from spindle.domain.exceptions import SchemaValidationException
from spindle.domain.fields import FieldDefinition


@pytest.fixture
def validator() -> CollectionSchemaValidator:
    return CollectionSchemaValidator()


def test_valid_document_returns_definitions(validator: CollectionSchemaValidator) -> None:
    fields = validator.validate_document(
        "blog",
        {
            "fields": [
                {"name": "body", "type": "markdown", "required": True},
                {"name": "rating", "type": "number", "validation": {"min": 1, "max": 5}},
                {"name": "tags", "type": "multiselect", "options": ["a", "b"]},
                {"name": "author", "type": "reference", "referenceCollection": "authors"},
            ]
        },
    )
    assert [f.name for f in fields] == ["body", "rating", "tags", "author"]
    assert fields[1].validation == {"min": 1, "max": 5}
    assert fields[3].reference_collection == "authors"


def test_legacy_type_aliases(validator: CollectionSchemaValidator) -> None:
    fields = validator.validate_document(
        "docs", {"fields": [{"name": "summary", "type": "textarea"}, {"name": "b", "type": "body"}]}
    )
    assert [f.type for f in fields] == [FieldType.TEXT, FieldType.MARKDOWN]


def test_structural_errors_are_collected(validator: CollectionSchemaValidator) -> None:
    with pytest.raises(SchemaValidationException) as exc:
        validator.validate_document(
            "blog",
            {"fields": [{"name": "1bad", "type": "text"}, {"name": "x", "type": "video"}]},
        )
    assert exc.value.details["schema_type"] == "collection:blog"
    assert len(exc.value.validation_errors) == 2


def test_missing_fields_key(validator: CollectionSchemaValidator) -> None:
    with pytest.raises(SchemaValidationException) as exc:
        validator.validate_document("blog", {})
    assert exc.value.validation_errors[0].startswith("<root>:")


@pytest.mark.parametrize(
    ("fields", "fragment"),
    [
        (
            [{"name": "a", "type": "text"}, {"name": "a", "type": "number"}],
            "duplicate field name",
        ),
        ([{"name": "ref", "type": "multi-reference"}], "require referenceCollection"),
        (
            [{"name": "n", "type": "number", "validation": {"min": 5, "max": 1}}],
            "must not exceed",
        ),
        (
            [{"name": "code", "type": "text", "validation": {"pattern": "["}}],
            "invalid validation.pattern",
        ),
        (
            [{"name": "code", "type": "text", "validation": {"pattern": "(?P<x>a)(?P<x>b)"}}],
            "invalid validation.pattern",
        ),
    ],
)
def test_semantic_errors(
    validator: CollectionSchemaValidator, fields: list[dict], fragment: str
) -> None:
    with pytest.raises(SchemaValidationException) as exc:
        validator.validate_document("blog", {"fields": fields})
    assert any(fragment in e for e in exc.value.validation_errors)


def test_validate_fields_round_trips(validator: CollectionSchemaValidator) -> None:
    fd = FieldDefinition("featured", "Featured", FieldType.BOOLEAN, default=False)
    assert validator.validate_fields("blog", [fd]) == [fd]
