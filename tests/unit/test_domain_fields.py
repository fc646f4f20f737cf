"""Tests for the field type catalog (definitions, defaults, value validation)."""

import pytest

from spindle.domain.enums import FieldType
from spindle.domain.exceptions import (
    FieldValidationException,
    SchemaValidationException,
    ValidationException,
)
from spindle.domain.fields import (
    DEFAULT_FIELD_NAMES,
    DEFAULT_FIELDS,
    FieldDefinition,
    merge_with_default_fields,
    strip_default_fields,
    validate_content_data,
    validate_field_value,
)


def _field(type_: FieldType, **kwargs) -> FieldDefinition:
    return FieldDefinition(name="f", label="F", type=type_, **kwargs)


class TestDefaultFields:
    """The default field set injected into every collection."""

    def test_names_in_order(self) -> None:
        assert [f.name for f in DEFAULT_FIELDS] == [
            "title",
            "description",
            "slug",
            "seoTitle",
            "seoDescription",
            "ogTitle",
            "ogDescription",
            "ogImage",
            "status",
            "dateLastModified",
            "datePublished",
        ]

    def test_seo_length_limits(self) -> None:
        by_name = {f.name: f for f in DEFAULT_FIELDS}
        assert by_name["seoDescription"].validation == {"max": 160}
        assert by_name["ogDescription"].validation == {"max": 200}

    def test_status_is_select_with_draft_default(self) -> None:
        status = next(f for f in DEFAULT_FIELDS if f.name == "status")
        assert status.type == FieldType.SELECT
        assert status.options == ("draft", "published")
        assert status.default == "draft"

    def test_merge_puts_defaults_first_and_drops_shadowing(self) -> None:
        custom = [
            FieldDefinition("body", "Body", FieldType.MARKDOWN),
            FieldDefinition("title", "Custom Title", FieldType.MARKDOWN),
        ]
        merged = merge_with_default_fields(custom)
        assert merged[: len(DEFAULT_FIELDS)] == DEFAULT_FIELDS
        assert [f.name for f in merged[len(DEFAULT_FIELDS) :]] == ["body"]

    def test_strip_default_fields(self) -> None:
        kept = strip_default_fields(
            [*DEFAULT_FIELDS, FieldDefinition("rating", "Rating", FieldType.NUMBER)]
        )
        assert [f.name for f in kept] == ["rating"]
        assert "rating" not in DEFAULT_FIELD_NAMES


class TestFieldDefinitionDict:
    """Stored JSON shape of a field definition."""

    def test_from_dict_reads_camel_case_reference(self) -> None:
        fd = FieldDefinition.from_dict(
            {"name": "author", "type": "reference", "referenceCollection": "authors"}
        )
        assert fd.type == FieldType.REFERENCE
        assert fd.reference_collection == "authors"
        assert fd.label == "author"

    def test_legacy_textarea_maps_to_text(self) -> None:
        assert FieldDefinition.from_dict({"name": "x", "type": "textarea"}).type == FieldType.TEXT

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationException, match="Unknown field type"):
            FieldDefinition.from_dict({"name": "x", "type": "color"})

    def test_to_dict_omits_unset_keys(self) -> None:
        fd = FieldDefinition("tags", "Tags", FieldType.MULTISELECT, options=("a", "b"))
        assert fd.to_dict() == {
            "name": "tags",
            "label": "Tags",
            "type": "multiselect",
            "required": False,
            "options": ["a", "b"],
        }


class TestValidateFieldValue:
    """Per-type coercion and validation."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("1", True), ("yes", True), ("false", False), ("0", False), ("no", False)],
    )
    def test_boolean_strings(self, raw: str, expected: bool) -> None:
        assert validate_field_value(_field(FieldType.BOOLEAN), raw) is expected

    def test_boolean_rejects_garbage(self) -> None:
        with pytest.raises(FieldValidationException):
            validate_field_value(_field(FieldType.BOOLEAN), "maybe")

    def test_number_from_string(self) -> None:
        assert validate_field_value(_field(FieldType.NUMBER), "42") == 42
        assert validate_field_value(_field(FieldType.NUMBER), "4.5") == 4.5

    def test_number_range(self) -> None:
        fd = _field(FieldType.NUMBER, validation={"min": 1, "max": 5})
        with pytest.raises(FieldValidationException, match="<= 5"):
            validate_field_value(fd, 6)

    def test_number_rejects_text(self) -> None:
        with pytest.raises(FieldValidationException, match="not a number"):
            validate_field_value(_field(FieldType.NUMBER), "abc")

    def test_select_must_be_an_option(self) -> None:
        fd = _field(FieldType.SELECT, options=("red", "blue"))
        assert validate_field_value(fd, "red") == "red"
        with pytest.raises(FieldValidationException):
            validate_field_value(fd, "green")

    def test_multiselect_splits_on_semicolon(self) -> None:
        fd = _field(FieldType.MULTISELECT, options=("a", "b", "c"))
        assert validate_field_value(fd, "a; c") == ["a", "c"]

    def test_multi_reference_accepts_list(self) -> None:
        assert validate_field_value(_field(FieldType.MULTI_REFERENCE), ["x", "y"]) == ["x", "y"]

    def test_text_max_length(self) -> None:
        fd = _field(FieldType.TEXT, validation={"max": 3})
        with pytest.raises(FieldValidationException, match="at most 3"):
            validate_field_value(fd, "abcd")

    def test_text_pattern(self) -> None:
        fd = _field(FieldType.TEXT, validation={"pattern": r"^[a-z]+$"})
        assert validate_field_value(fd, "abc") == "abc"
        with pytest.raises(FieldValidationException, match="does not match pattern"):
            validate_field_value(fd, "ABC")

    def test_text_invalid_pattern_is_a_field_error(self) -> None:
        fd = _field(FieldType.TEXT, validation={"pattern": "["})
        with pytest.raises(FieldValidationException, match="invalid validation pattern"):
            validate_field_value(fd, "abc")

    def test_datetime_normalized_to_utc(self) -> None:
        value = validate_field_value(_field(FieldType.DATETIME), "2024-01-02T03:04:05Z")
        assert value == "2024-01-02T03:04:05+00:00"

    def test_json_from_string(self) -> None:
        assert validate_field_value(_field(FieldType.JSON), '{"a": 1}') == {"a": 1}

    def test_blank_becomes_default(self) -> None:
        fd = _field(FieldType.TEXT, default="fallback")
        assert validate_field_value(fd, "  ") == "fallback"
        assert validate_field_value(_field(FieldType.TEXT), None) is None


class TestValidateContentData:
    """Document-level validation against a field list."""

    FIELDS = (
        FieldDefinition("body", "Body", FieldType.MARKDOWN),
        FieldDefinition("rating", "Rating", FieldType.NUMBER, required=True),
        FieldDefinition("featured", "Featured", FieldType.BOOLEAN, default=False),
    )

    def test_full_write_applies_defaults_and_coerces(self) -> None:
        result = validate_content_data(self.FIELDS, {"rating": "3", "extra": "kept"})
        assert result == {"rating": 3, "featured": False, "extra": "kept"}

    def test_missing_required_reported(self) -> None:
        with pytest.raises(SchemaValidationException) as exc_info:
            validate_content_data(self.FIELDS, {"body": "x"}, schema_name="blog")
        assert exc_info.value.details["schema_type"] == "blog"
        assert "rating: required field is missing" in exc_info.value.validation_errors

    def test_partial_write_checks_only_given_keys(self) -> None:
        assert validate_content_data(self.FIELDS, {"body": "x"}, partial=True) == {"body": "x"}

    def test_all_errors_collected(self) -> None:
        with pytest.raises(SchemaValidationException) as exc_info:
            validate_content_data(self.FIELDS, {"rating": "abc", "featured": "perhaps"})
        assert len(exc_info.value.validation_errors) == 2

    def test_system_fields_not_validated_as_data(self) -> None:
        fields = (*DEFAULT_FIELDS, *self.FIELDS)
        result = validate_content_data(fields, {"rating": 1})
        assert "status" not in result
        assert "title" not in result

    def test_invalid_pattern_reported_as_schema_error(self) -> None:
        fields = (FieldDefinition("code", "Code", FieldType.TEXT, validation={"pattern": "["}),)
        with pytest.raises(SchemaValidationException) as exc_info:
            validate_content_data(fields, {"code": "abc"}, schema_name="docs")
        [message] = exc_info.value.validation_errors
        assert message.startswith("code: has an invalid validation pattern '['")
        assert validate_content_data(fields, {}) == {}
