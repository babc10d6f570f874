"""FieldDefinition: immutable description of one input or config value.

A FieldDefinition is a single frozen model tagged by ``type``. Type-specific
constraints live side by side; the compiler only reads the ones that belong
to the field's type. Definitions are produced by the builders in
``builders.py`` but can also be constructed (or loaded) directly.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel


class FieldType(str, Enum):
    """Tag of a FieldDefinition."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    ARRAY = "array"
    OBJECT = "object"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    FILE = "file"
    JSON = "json"
    API_KEY = "apiKey"
    SECRET = "secret"
    URL = "url"


# Types that only make sense as configuration values
CONFIG_ONLY_TYPES = frozenset({FieldType.API_KEY, FieldType.SECRET})


class StringFormat(str, Enum):
    """Structural formats a string field may declare."""

    EMAIL = "email"
    URL = "url"
    UUID = "uuid"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    BASE64 = "base64"
    JWT = "jwt"
    SLUG = "slug"
    HEX_COLOR = "hex-color"
    SEMVER = "semver"


class Transform(str, Enum):
    """Output transformation applied to string values after validation."""

    TRIM = "trim"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    NORMALIZE = "normalize"


class TimezoneRequirement(str, Enum):
    """Timezone handling for date/datetime fields."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    UTC_ONLY = "utc-only"


def read_only(value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    """Wrap a mapping of frozen values in a read-only view of a private copy."""
    return None if value is None else MappingProxyType(dict(value))


def deep_freeze(value: Any) -> Any:
    """Copy JSON-like data into read-only mappings and tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: deep_freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(deep_freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of deep_freeze: a mutable copy made of dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )


class ConfigValidation(_FrozenModel):
    """Validation sub-record carried by configuration fields."""

    min: float | None = None
    max: float | None = None
    pattern: str | None = None
    enum: tuple[Any, ...] | None = None
    allowed_protocols: tuple[str, ...] | None = None
    error_message: str | None = None
    json_schema: Mapping[str, Any] | None = None

    @field_validator("json_schema")
    @classmethod
    def _freeze_json_schema(cls, value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        return None if value is None else deep_freeze(value)

    @field_serializer("json_schema", mode="wrap")
    def _serialize_json_schema(self, value: Any, handler: Any) -> Any:
        return handler(thaw(value))


class FieldDefinition(_FrozenModel):
    """Immutable, type-tagged declaration of one field.

    Setting ``default`` always makes the field optional, whatever the order
    in which attributes were supplied. Whether ``default`` and ``example``
    were declared at all is tracked through ``model_fields_set`` so that
    ``None`` remains a legal default.
    """

    type: FieldType
    required: bool = False
    default: Any = None
    example: Any = None
    description: str | None = None
    sensitive: bool = False
    sanitize: bool = False
    transform: Transform | None = None

    # string
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: StringFormat | None = None

    # number
    min: float | None = None
    max: float | None = None
    integer: bool = False
    precision: int | None = None

    # enum
    values: tuple[Any, ...] | None = Field(default=None, alias="enum")
    labels: tuple[str, ...] | None = None

    # array
    items: "FieldDefinition | None" = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False

    # object
    properties: "Mapping[str, FieldDefinition] | None" = None
    required_properties: tuple[str, ...] | None = None
    additional_properties: bool = False

    # date / datetime
    min_date: str | None = None
    max_date: str | None = None
    timezone: TimezoneRequirement | None = None

    # file
    allowed_mime_types: tuple[str, ...] | None = None
    max_file_size: int | None = None

    # config-only
    secret: bool = False
    env_var: str | None = None
    category: str | None = None
    allow_runtime_override: bool = False
    validation: ConfigValidation | None = None

    @model_validator(mode="before")
    @classmethod
    def _default_implies_optional(cls, data: Any) -> Any:
        if isinstance(data, dict) and "default" in data:
            data = {**data, "required": False}
        return data

    @field_validator("properties")
    @classmethod
    def _freeze_properties(cls, value: Any) -> Any:
        return read_only(value)

    @field_serializer("properties", mode="wrap")
    def _serialize_properties(self, value: Any, handler: Any) -> Any:
        return handler(None if value is None else dict(value))

    @property
    def has_default(self) -> bool:
        """True when a default value was declared (even ``None``)."""
        return "default" in self.model_fields_set

    @property
    def has_example(self) -> bool:
        """True when an example value was declared."""
        return "example" in self.model_fields_set

    @property
    def is_secret(self) -> bool:
        """True when values of this field must never be logged or echoed."""
        return self.secret or self.sensitive or self.type in CONFIG_ONLY_TYPES

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the camelCase wire form, omitting undeclared attributes."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


FieldDefinition.model_rebuild()
