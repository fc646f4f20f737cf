"""Field type catalog: field definitions, the default field set, value validation.

Validation is pure: ``validate_field_value`` maps (field, raw value) to a
normalized value or raises FieldValidationException. Nothing here touches
storage; the registry and content store call into it.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from spindle.domain.enums import ContentStatus, FieldType
from spindle.domain.exceptions import (
    FieldValidationException,
    SchemaValidationException,
    ValidationException,
)
from spindle.shared.utils.datetime import ensure_utc, parse_iso_date, parse_iso_datetime

# Legacy type names still found in stored schemas.
_TYPE_ALIASES = {"textarea": FieldType.TEXT, "body": FieldType.MARKDOWN}

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})
_INT_RE = re.compile(r"^[+-]?\d+$")

# Fields stored in dedicated columns or maintained by the engine; never part of `data`.
SYSTEM_FIELD_NAMES = frozenset(
    {"title", "slug", "status", "dateLastModified", "datePublished"}
)


@dataclass(frozen=True)
class FieldDefinition:
    """A typed slot in a collection schema."""

    name: str
    label: str
    type: FieldType
    required: bool = False
    default: Any = None
    validation: dict[str, Any] | None = None
    options: tuple[str, ...] | None = None
    reference_collection: str | None = None
    description: str | None = None
    placeholder: str | None = None
    meta: dict[str, Any] | None = field(default=None, compare=False)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "FieldDefinition":
        """Build from the stored JSON shape (camelCase keys).

        Raises:
            ValidationException: If name or type is missing or the type is unknown.
        """
        name = raw.get("name")
        if not name or not isinstance(name, str):
            raise ValidationException("Field name is required", field="name")
        raw_type = raw.get("type")
        try:
            field_type = _TYPE_ALIASES.get(raw_type) or FieldType(raw_type)
        except ValueError as e:
            raise ValidationException(
                f"Unknown field type {raw_type!r} for field '{name}'", field=name
            ) from e
        options = raw.get("options")
        return cls(
            name=name,
            label=raw.get("label") or name,
            type=field_type,
            required=bool(raw.get("required", False)),
            default=raw.get("default"),
            validation=raw.get("validation") or None,
            options=tuple(options) if options is not None else None,
            reference_collection=raw.get("referenceCollection")
            or raw.get("reference_collection"),
            description=raw.get("description"),
            placeholder=raw.get("placeholder"),
            meta=raw.get("meta"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored JSON shape, omitting unset keys."""
        out: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "type": self.type.value,
            "required": self.required,
        }
        if self.default is not None:
            out["default"] = self.default
        if self.validation:
            out["validation"] = dict(self.validation)
        if self.options is not None:
            out["options"] = list(self.options)
        if self.reference_collection:
            out["referenceCollection"] = self.reference_collection
        if self.description:
            out["description"] = self.description
        if self.placeholder:
            out["placeholder"] = self.placeholder
        if self.meta:
            out["meta"] = dict(self.meta)
        return out


DEFAULT_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition("title", "Title", FieldType.TEXT, required=True, placeholder="Enter title..."),
    FieldDefinition(
        "description", "Description", FieldType.TEXT, placeholder="Brief description..."
    ),
    FieldDefinition("slug", "URL Slug", FieldType.TEXT, required=True, placeholder="url-slug"),
    FieldDefinition(
        "seoTitle",
        "SEO Title",
        FieldType.TEXT,
        description="Custom title for search engines (falls back to Title if empty)",
    ),
    FieldDefinition(
        "seoDescription",
        "SEO Description",
        FieldType.TEXT,
        validation={"max": 160},
        description="Meta description for search engines",
    ),
    FieldDefinition(
        "ogTitle",
        "OG Title",
        FieldType.TEXT,
        description="Open Graph title (falls back to SEO Title, then Title)",
    ),
    FieldDefinition(
        "ogDescription",
        "OG Description",
        FieldType.TEXT,
        validation={"max": 200},
        description="Open Graph description (falls back to SEO Description)",
    ),
    FieldDefinition(
        "ogImage", "OG Image", FieldType.IMAGE, description="Social media preview image"
    ),
    FieldDefinition(
        "status",
        "Status",
        FieldType.SELECT,
        required=True,
        default=ContentStatus.DRAFT.value,
        options=tuple(ContentStatus.values()),
        description="Content publication status",
    ),
    FieldDefinition(
        "dateLastModified",
        "Date Last Modified",
        FieldType.DATETIME,
        description="Automatically updated when content is modified",
        meta={"automatic": True, "readonly": True},
    ),
    FieldDefinition(
        "datePublished",
        "Date Published",
        FieldType.DATETIME,
        description="Automatically set when content is first published",
        meta={"automatic": True, "readonly": True},
    ),
)

DEFAULT_FIELD_NAMES = frozenset(f.name for f in DEFAULT_FIELDS)


def merge_with_default_fields(
    custom_fields: tuple[FieldDefinition, ...] | list[FieldDefinition],
) -> tuple[FieldDefinition, ...]:
    """Return default fields first, then custom fields that do not shadow a default."""
    extra = tuple(f for f in custom_fields if f.name not in DEFAULT_FIELD_NAMES)
    return DEFAULT_FIELDS + extra


def strip_default_fields(
    fields: list[FieldDefinition] | tuple[FieldDefinition, ...],
) -> list[FieldDefinition]:
    """Drop default-field entries so only author-defined fields are persisted."""
    return [f for f in fields if f.name not in DEFAULT_FIELD_NAMES]


def _is_absent(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


def _split_multi(raw: Any, fd: FieldDefinition) -> list[str]:
    if isinstance(raw, str):
        parts = raw.split(";")
    elif isinstance(raw, (list, tuple)):
        parts = list(raw)
    else:
        raise FieldValidationException(fd.name, "expected a list or ';'-separated string")
    values = []
    for part in parts:
        if not isinstance(part, (str, int)):
            raise FieldValidationException(fd.name, "list entries must be strings")
        text = str(part).strip()
        if text:
            values.append(text)
    return values


def _coerce_text(fd: FieldDefinition, raw: Any) -> str:
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise FieldValidationException(fd.name, "expected a string")
    value = str(raw)
    rules = fd.validation or {}
    if rules.get("min") is not None and len(value) < rules["min"]:
        raise FieldValidationException(fd.name, f"must be at least {rules['min']} characters")
    if rules.get("max") is not None and len(value) > rules["max"]:
        raise FieldValidationException(fd.name, f"must be at most {rules['max']} characters")
    pattern = rules.get("pattern")
    if pattern:
        try:
            matched = re.search(pattern, value)
        except re.error as e:
            raise FieldValidationException(
                fd.name, f"has an invalid validation pattern {pattern!r}: {e}"
            ) from e
        if not matched:
            raise FieldValidationException(fd.name, f"does not match pattern {pattern!r}")
    return value


def _coerce_boolean(fd: FieldDefinition, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise FieldValidationException(fd.name, f"cannot interpret {raw!r} as a boolean")


def _coerce_number(fd: FieldDefinition, raw: Any) -> int | float:
    if isinstance(raw, bool):
        raise FieldValidationException(fd.name, "expected a number")
    if isinstance(raw, (int, float)):
        value: int | float = raw
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            value = int(text) if _INT_RE.match(text) else float(text)
        except ValueError as e:
            raise FieldValidationException(fd.name, f"{raw!r} is not a number") from e
    else:
        raise FieldValidationException(fd.name, "expected a number")
    rules = fd.validation or {}
    if rules.get("min") is not None and value < rules["min"]:
        raise FieldValidationException(fd.name, f"must be >= {rules['min']}")
    if rules.get("max") is not None and value > rules["max"]:
        raise FieldValidationException(fd.name, f"must be <= {rules['max']}")
    return value


def _check_option(fd: FieldDefinition, value: str) -> None:
    if fd.options is not None and value not in fd.options:
        raise FieldValidationException(
            fd.name, f"{value!r} is not one of {list(fd.options)}"
        )


def _coerce_select(fd: FieldDefinition, raw: Any) -> str:
    if not isinstance(raw, str):
        raise FieldValidationException(fd.name, "expected a string option")
    value = raw.strip()
    _check_option(fd, value)
    return value


def _coerce_multiselect(fd: FieldDefinition, raw: Any) -> list[str]:
    values = _split_multi(raw, fd)
    for value in values:
        _check_option(fd, value)
    return values


def _coerce_reference(fd: FieldDefinition, raw: Any) -> str:
    if isinstance(raw, (list, tuple)):
        if len(raw) != 1:
            raise FieldValidationException(fd.name, "expected a single reference")
        raw = raw[0]
    if not isinstance(raw, str):
        raise FieldValidationException(fd.name, "expected a content item id")
    return raw.strip()


def _coerce_multi_reference(fd: FieldDefinition, raw: Any) -> list[str]:
    return _split_multi(raw, fd)


def _coerce_datetime(fd: FieldDefinition, raw: Any) -> str:
    if isinstance(raw, datetime):
        return ensure_utc(raw).isoformat()  # type: ignore[union-attr]
    if isinstance(raw, str):
        try:
            return parse_iso_datetime(raw).isoformat()
        except ValueError as e:
            raise FieldValidationException(fd.name, f"{raw!r} is not an ISO-8601 datetime") from e
    raise FieldValidationException(fd.name, "expected an ISO-8601 datetime")


def _coerce_date(fd: FieldDefinition, raw: Any) -> str:
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    if isinstance(raw, str):
        try:
            return parse_iso_date(raw).isoformat()
        except ValueError as e:
            raise FieldValidationException(fd.name, f"{raw!r} is not an ISO-8601 date") from e
    raise FieldValidationException(fd.name, "expected an ISO-8601 date")


def _coerce_json(fd: FieldDefinition, raw: Any) -> dict | list:
    value = raw
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FieldValidationException(fd.name, "is not valid JSON") from e
    if not isinstance(value, (dict, list)):
        raise FieldValidationException(fd.name, "expected a JSON object or array")
    return value


_COERCERS = {
    FieldType.TEXT: _coerce_text,
    FieldType.MARKDOWN: _coerce_text,
    FieldType.IMAGE: _coerce_text,
    FieldType.BOOLEAN: _coerce_boolean,
    FieldType.NUMBER: _coerce_number,
    FieldType.SELECT: _coerce_select,
    FieldType.MULTISELECT: _coerce_multiselect,
    FieldType.REFERENCE: _coerce_reference,
    FieldType.MULTI_REFERENCE: _coerce_multi_reference,
    FieldType.DATETIME: _coerce_datetime,
    FieldType.DATE: _coerce_date,
    FieldType.JSON: _coerce_json,
}


def validate_field_value(fd: FieldDefinition, raw: Any) -> Any:
    """Validate and normalize one raw value for a field.

    Absent values (None or blank string) become the field default, which
    may itself be None. Requiredness is checked by validate_content_data.

    Raises:
        FieldValidationException: If the value does not fit the field type.
    """
    if _is_absent(raw):
        return fd.default
    return _COERCERS[fd.type](fd, raw)


def validate_content_data(
    fields: tuple[FieldDefinition, ...] | list[FieldDefinition],
    data: dict[str, Any],
    *,
    partial: bool = False,
    schema_name: str = "content",
) -> dict[str, Any]:
    """Validate a content data document against a field list.

    Known fields are normalized; unknown keys pass through untouched.
    On full writes (partial=False) missing required fields are reported and
    missing fields with a declared default receive it. Partial writes only
    check the keys they carry.

    Returns:
        New dict with normalized values.

    Raises:
        SchemaValidationException: With every field error collected.
    """
    result = dict(data)
    errors: list[str] = []
    for fd in fields:
        if fd.name in SYSTEM_FIELD_NAMES:
            continue
        if fd.name not in data:
            if partial:
                continue
            if fd.default is not None:
                result[fd.name] = fd.default
            elif fd.required:
                errors.append(f"{fd.name}: required field is missing")
            continue
        try:
            value = validate_field_value(fd, data[fd.name])
        except FieldValidationException as e:
            errors.append(e.message)
            continue
        if value is None and fd.required:
            errors.append(f"{fd.name}: required field is empty")
            continue
        result[fd.name] = value
    if errors:
        raise SchemaValidationException(schema_name, errors)
    return result
