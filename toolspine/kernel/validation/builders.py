"""Fluent builders for FieldDefinition.

Every builder method returns a new builder, so a partially configured
builder can be shared and extended without affecting other users::

    base = string_field().min_length(2)
    city = base.required().description("City name").build()
    note = base.max_length(500).build()

Builders only assemble declarations. Malformed declarations such as an enum
without values are reported when the schema is compiled.
"""

from datetime import date
from typing import Any, Mapping, Sequence, TypeVar

from toolspine.kernel.validation.fields import (
    FieldDefinition,
    FieldType,
    StringFormat,
    TimezoneRequirement,
    Transform,
)

_B = TypeVar("_B", bound="FieldBuilder")


class FieldBuilder:
    """Base builder holding the accumulated field attributes."""

    field_type: FieldType

    def __init__(self) -> None:
        """Initialize an empty builder for ``field_type``."""
        self._state: dict[str, Any] = {"type": self.field_type}

    @classmethod
    def _from_state(cls: type[_B], state: dict[str, Any]) -> _B:
        builder = cls.__new__(cls)
        builder._state = state
        return builder

    def _with(self: _B, **changes: Any) -> _B:
        return self._from_state({**self._state, **changes})

    def required(self: _B) -> _B:
        """Mark the field as required."""
        return self._with(required=True)

    def optional(self: _B) -> _B:
        """Mark the field as optional (the default)."""
        return self._with(required=False)

    def description(self: _B, text: str) -> _B:
        """Set a human-readable description."""
        return self._with(description=text)

    def default(self: _B, value: Any) -> _B:
        """Set a default value. A default always makes the field optional."""
        return self._with(default=value, required=False)

    def example(self: _B, value: Any) -> _B:
        """Set an example value for documentation and testing."""
        return self._with(example=value)

    def sensitive(self: _B) -> _B:
        """Mark the field as carrying sensitive data."""
        return self._with(sensitive=True)

    def sanitize(self: _B) -> _B:
        """Request sanitization of the field's value."""
        return self._with(sanitize=True)

    def transform(self: _B, transformation: Transform | str) -> _B:
        """Set the transformation applied to the validated output."""
        return self._with(transform=Transform(transformation))

    def build(self) -> FieldDefinition:
        """Snapshot the accumulated state into an immutable FieldDefinition."""
        return FieldDefinition(**self._state)


def _as_definition(field: "FieldDefinition | FieldBuilder") -> FieldDefinition:
    if isinstance(field, FieldBuilder):
        return field.build()
    return field


def _iso(value: str | date) -> str:
    return value.isoformat() if isinstance(value, date) else value


# ===== INPUT FIELD BUILDERS =====


class StringFieldBuilder(FieldBuilder):
    field_type = FieldType.STRING

    def min_length(self, length: int) -> "StringFieldBuilder":
        return self._with(min_length=length)

    def max_length(self, length: int) -> "StringFieldBuilder":
        return self._with(max_length=length)

    def pattern(self, regex: str) -> "StringFieldBuilder":
        """Require the value to contain a match for ``regex``."""
        return self._with(pattern=regex)

    def format(self, fmt: StringFormat | str) -> "StringFieldBuilder":
        return self._with(format=StringFormat(fmt))


class NumberFieldBuilder(FieldBuilder):
    field_type = FieldType.NUMBER

    def min(self, value: float) -> "NumberFieldBuilder":
        return self._with(min=value)

    def max(self, value: float) -> "NumberFieldBuilder":
        return self._with(max=value)

    def integer(self) -> "NumberFieldBuilder":
        return self._with(integer=True)

    def precision(self, places: int) -> "NumberFieldBuilder":
        """Limit the number of decimal places."""
        return self._with(precision=places)


class BooleanFieldBuilder(FieldBuilder):
    field_type = FieldType.BOOLEAN


class EnumFieldBuilder(FieldBuilder):
    field_type = FieldType.ENUM

    def __init__(self, values: Sequence[Any]) -> None:
        super().__init__()
        self._state["values"] = tuple(values)

    def labels(self, labels: Sequence[str]) -> "EnumFieldBuilder":
        """Set human-readable labels, one per value."""
        return self._with(labels=tuple(labels))


class ArrayFieldBuilder(FieldBuilder):
    field_type = FieldType.ARRAY

    def __init__(self, items: "FieldDefinition | FieldBuilder | None" = None) -> None:
        super().__init__()
        if items is not None:
            self._state["items"] = _as_definition(items)

    def min_items(self, count: int) -> "ArrayFieldBuilder":
        return self._with(min_items=count)

    def max_items(self, count: int) -> "ArrayFieldBuilder":
        return self._with(max_items=count)

    def unique(self) -> "ArrayFieldBuilder":
        """Require array items to be pairwise distinct."""
        return self._with(unique_items=True)


class ObjectFieldBuilder(FieldBuilder):
    field_type = FieldType.OBJECT

    def __init__(
        self, properties: "Mapping[str, FieldDefinition | FieldBuilder] | None" = None
    ) -> None:
        super().__init__()
        if properties is not None:
            self._state["properties"] = {
                name: _as_definition(prop) for name, prop in properties.items()
            }

    def required_properties(self, names: Sequence[str]) -> "ObjectFieldBuilder":
        return self._with(required_properties=tuple(names))

    def additional_properties(self, allowed: bool = True) -> "ObjectFieldBuilder":
        return self._with(additional_properties=allowed)


class DateFieldBuilder(FieldBuilder):
    field_type = FieldType.DATE

    def min_date(self, value: str | date) -> "DateFieldBuilder":
        """Set the inclusive lower bound (ISO 8601)."""
        return self._with(min_date=_iso(value))

    def max_date(self, value: str | date) -> "DateFieldBuilder":
        """Set the inclusive upper bound (ISO 8601)."""
        return self._with(max_date=_iso(value))

    def timezone(self, requirement: TimezoneRequirement | str) -> "DateFieldBuilder":
        return self._with(timezone=TimezoneRequirement(requirement))


class DateTimeFieldBuilder(DateFieldBuilder):
    field_type = FieldType.DATETIME


class TimeFieldBuilder(FieldBuilder):
    field_type = FieldType.TIME


class FileFieldBuilder(FieldBuilder):
    field_type = FieldType.FILE

    def mime_types(self, types: Sequence[str]) -> "FileFieldBuilder":
        return self._with(allowed_mime_types=tuple(types))

    def max_size(self, size_bytes: int) -> "FileFieldBuilder":
        return self._with(max_file_size=size_bytes)


class JsonFieldBuilder(FieldBuilder):
    field_type = FieldType.JSON


# ===== CONFIG FIELD BUILDERS =====


_C = TypeVar("_C", bound="ConfigFieldBuilder")


class ConfigFieldBuilder(FieldBuilder):
    """Base builder for configuration fields."""

    def _validate(self: _C, **rules: Any) -> _C:
        current = self._state.get("validation") or {}
        return self._with(validation={**current, **rules})

    def secret(self: _C) -> _C:
        """Mark the value as secret; it is never logged or echoed."""
        return self._with(secret=True)

    def env_var(self: _C, name: str) -> _C:
        """Name the environment variable this value is loaded from."""
        return self._with(env_var=name)

    def category(self: _C, name: str) -> _C:
        return self._with(category=name)

    def allow_runtime_override(self: _C) -> _C:
        return self._with(allow_runtime_override=True)

    def error_message(self: _C, message: str) -> _C:
        """Replace the generated message for validation-rule failures."""
        return self._validate(error_message=message)


class ApiKeyFieldBuilder(ConfigFieldBuilder):
    field_type = FieldType.API_KEY

    def __init__(self) -> None:
        super().__init__()
        self._state["secret"] = True

    def pattern(self, regex: str) -> "ApiKeyFieldBuilder":
        return self._validate(pattern=regex)


class SecretFieldBuilder(ApiKeyFieldBuilder):
    field_type = FieldType.SECRET


class ConfigStringFieldBuilder(ConfigFieldBuilder):
    field_type = FieldType.STRING

    def min_length(self, length: int) -> "ConfigStringFieldBuilder":
        return self._validate(min=length)

    def max_length(self, length: int) -> "ConfigStringFieldBuilder":
        return self._validate(max=length)

    def pattern(self, regex: str) -> "ConfigStringFieldBuilder":
        return self._validate(pattern=regex)


class ConfigNumberFieldBuilder(ConfigFieldBuilder):
    field_type = FieldType.NUMBER

    def min(self, value: float) -> "ConfigNumberFieldBuilder":
        return self._validate(min=value)

    def max(self, value: float) -> "ConfigNumberFieldBuilder":
        return self._validate(max=value)


class ConfigBooleanFieldBuilder(ConfigFieldBuilder):
    field_type = FieldType.BOOLEAN


class UrlConfigFieldBuilder(ConfigFieldBuilder):
    field_type = FieldType.URL

    def protocols(self, protocols: Sequence[str]) -> "UrlConfigFieldBuilder":
        """Restrict accepted URL schemes, e.g. ``["https"]``."""
        return self._validate(allowed_protocols=tuple(protocols))


class ConfigEnumFieldBuilder(ConfigFieldBuilder):
    field_type = FieldType.ENUM

    def __init__(self, values: Sequence[Any]) -> None:
        super().__init__()
        self._state["validation"] = {"enum": tuple(values)}


class ConfigJsonFieldBuilder(ConfigFieldBuilder):
    field_type = FieldType.JSON

    def json_schema(self, schema: dict[str, Any]) -> "ConfigJsonFieldBuilder":
        """Require the value to conform to a JSON Schema (draft 7)."""
        return self._validate(json_schema=schema)


# ===== FACTORY FUNCTIONS =====


def string_field() -> StringFieldBuilder:
    return StringFieldBuilder()


def number_field() -> NumberFieldBuilder:
    return NumberFieldBuilder()


def boolean_field() -> BooleanFieldBuilder:
    return BooleanFieldBuilder()


def enum_field(values: Sequence[Any]) -> EnumFieldBuilder:
    return EnumFieldBuilder(values)


def array_field(items: "FieldDefinition | FieldBuilder | None" = None) -> ArrayFieldBuilder:
    return ArrayFieldBuilder(items)


def object_field(
    properties: "Mapping[str, FieldDefinition | FieldBuilder] | None" = None,
) -> ObjectFieldBuilder:
    return ObjectFieldBuilder(properties)


def date_field() -> DateFieldBuilder:
    return DateFieldBuilder()


def datetime_field() -> DateTimeFieldBuilder:
    return DateTimeFieldBuilder()


def time_field() -> TimeFieldBuilder:
    return TimeFieldBuilder()


def file_field() -> FileFieldBuilder:
    return FileFieldBuilder()


def json_field() -> JsonFieldBuilder:
    return JsonFieldBuilder()


def api_key_field() -> ApiKeyFieldBuilder:
    """API key config field; always secret."""
    return ApiKeyFieldBuilder()


def secret_field() -> SecretFieldBuilder:
    return SecretFieldBuilder()


def config_string_field() -> ConfigStringFieldBuilder:
    return ConfigStringFieldBuilder()


def config_number_field() -> ConfigNumberFieldBuilder:
    return ConfigNumberFieldBuilder()


def config_boolean_field() -> ConfigBooleanFieldBuilder:
    return ConfigBooleanFieldBuilder()


def url_config_field() -> UrlConfigFieldBuilder:
    return UrlConfigFieldBuilder()


def config_enum_field(values: Sequence[Any]) -> ConfigEnumFieldBuilder:
    return ConfigEnumFieldBuilder(values)


def config_json_field() -> ConfigJsonFieldBuilder:
    return ConfigJsonFieldBuilder()


# ===== CONVENIENCE BUILDERS =====


def email_field() -> StringFieldBuilder:
    """String field with email format, lowercased on output."""
    return string_field().format(StringFormat.EMAIL).transform(Transform.LOWERCASE)


def url_field() -> StringFieldBuilder:
    return string_field().format(StringFormat.URL)


def uuid_field() -> StringFieldBuilder:
    return string_field().format(StringFormat.UUID)
