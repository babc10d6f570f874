"""Validation module: declarative field schemas, compiled and cached validators.

Typical use::

    from toolspine.kernel.validation import (
        ValidationExecutor, create_schema, number_field, string_field,
    )

    schema = (
        create_schema()
        .add_input("city", string_field().required().min_length(2))
        .add_input("days", number_field().integer().min(1).max(14).default(5))
        .build()
    )
    result = ValidationExecutor().validate_input({"city": "Lisbon"}, schema)
"""

from toolspine.kernel.validation.builders import (
    ApiKeyFieldBuilder,
    ArrayFieldBuilder,
    BooleanFieldBuilder,
    ConfigEnumFieldBuilder,
    ConfigJsonFieldBuilder,
    ConfigNumberFieldBuilder,
    ConfigStringFieldBuilder,
    DateFieldBuilder,
    EnumFieldBuilder,
    FieldBuilder,
    FileFieldBuilder,
    NumberFieldBuilder,
    ObjectFieldBuilder,
    StringFieldBuilder,
    UrlConfigFieldBuilder,
    api_key_field,
    array_field,
    boolean_field,
    config_boolean_field,
    config_enum_field,
    config_json_field,
    config_number_field,
    config_string_field,
    date_field,
    datetime_field,
    email_field,
    enum_field,
    file_field,
    json_field,
    number_field,
    object_field,
    secret_field,
    string_field,
    time_field,
    url_config_field,
    url_field,
    uuid_field,
)
from toolspine.kernel.validation.cache import ValidatorCache
from toolspine.kernel.validation.compiler import CompiledValidator, SchemaCompiler
from toolspine.kernel.validation.conditions import (
    ConditionEvaluationError,
    ConditionSyntaxError,
    evaluate_condition,
    parse_condition,
)
from toolspine.kernel.validation.documentation import (
    field_to_json_schema,
    generate_example,
    generate_example_request,
    generate_tool_documentation,
)
from toolspine.kernel.validation.environment import resolve_env_config
from toolspine.kernel.validation.errors import (
    ConfigurationError,
    ErrorKind,
    SchemaDefinitionError,
    SchemaValidationError,
    ToolSpineError,
    ValidationErrorCode,
    ValidationErrorDetail,
    format_path,
)
from toolspine.kernel.validation.executor import ValidationExecutor
from toolspine.kernel.validation.fields import (
    ConfigValidation,
    FieldDefinition,
    FieldType,
    StringFormat,
    TimezoneRequirement,
    Transform,
)
from toolspine.kernel.validation.quick import (
    validate_api_key,
    validate_email,
    validate_field,
    validate_url,
    validate_uuid,
)
from toolspine.kernel.validation.redaction import redact
from toolspine.kernel.validation.result import (
    ValidationMetrics,
    ValidationOptions,
    ValidationResult,
    ValidationTiming,
)
from toolspine.kernel.validation.rules import CrossFieldRuleEvaluator
from toolspine.kernel.validation.schema import (
    CrossFieldRule,
    RuleKind,
    SchemaBuilder,
    ToolSchema,
    create_schema,
)

__all__ = [
    # model
    "FieldDefinition",
    "FieldType",
    "ConfigValidation",
    "StringFormat",
    "TimezoneRequirement",
    "Transform",
    "ToolSchema",
    "CrossFieldRule",
    "RuleKind",
    # builders
    "FieldBuilder",
    "StringFieldBuilder",
    "NumberFieldBuilder",
    "BooleanFieldBuilder",
    "EnumFieldBuilder",
    "ArrayFieldBuilder",
    "ObjectFieldBuilder",
    "DateFieldBuilder",
    "FileFieldBuilder",
    "ApiKeyFieldBuilder",
    "ConfigStringFieldBuilder",
    "ConfigNumberFieldBuilder",
    "ConfigEnumFieldBuilder",
    "ConfigJsonFieldBuilder",
    "UrlConfigFieldBuilder",
    "SchemaBuilder",
    "create_schema",
    "string_field",
    "number_field",
    "boolean_field",
    "enum_field",
    "array_field",
    "object_field",
    "date_field",
    "datetime_field",
    "time_field",
    "file_field",
    "json_field",
    "api_key_field",
    "secret_field",
    "config_string_field",
    "config_number_field",
    "config_boolean_field",
    "url_config_field",
    "config_enum_field",
    "config_json_field",
    "email_field",
    "url_field",
    "uuid_field",
    # engine
    "SchemaCompiler",
    "CompiledValidator",
    "ValidatorCache",
    "ValidationExecutor",
    "CrossFieldRuleEvaluator",
    "ValidationOptions",
    "ValidationResult",
    "ValidationTiming",
    "ValidationMetrics",
    "parse_condition",
    "evaluate_condition",
    # errors
    "ValidationErrorCode",
    "ValidationErrorDetail",
    "ErrorKind",
    "format_path",
    "ToolSpineError",
    "SchemaDefinitionError",
    "SchemaValidationError",
    "ConfigurationError",
    "ConditionSyntaxError",
    "ConditionEvaluationError",
    # helpers
    "validate_field",
    "validate_email",
    "validate_url",
    "validate_uuid",
    "validate_api_key",
    "redact",
    "resolve_env_config",
    "field_to_json_schema",
    "generate_example",
    "generate_example_request",
    "generate_tool_documentation",
]
