"""Single-value validation helpers that need no schema.

Every helper runs on the ValidationExecutor it is given, so its compiled
validators and metrics belong to that engine instance.
"""

from typing import Any

from toolspine.kernel.validation.builders import (
    api_key_field,
    email_field,
    url_field,
    uuid_field,
)
from toolspine.kernel.validation.executor import ValidationExecutor
from toolspine.kernel.validation.fields import CONFIG_ONLY_TYPES, FieldDefinition
from toolspine.kernel.validation.result import ValidationOptions, ValidationResult


def is_config_field(field: FieldDefinition) -> bool:
    """True when ``field`` must be validated with configuration rules."""
    return field.type in CONFIG_ONLY_TYPES or field.validation is not None


def validate_field(
    executor: ValidationExecutor,
    field: FieldDefinition,
    value: Any,
    name: str = "field",
    options: ValidationOptions | None = None,
) -> ValidationResult:
    """Validate one value against one field definition.

    Args:
        executor: Engine instance that compiles, caches and records metrics
        field: Field definition to validate against
        value: Raw value
        name: Field name used in error paths and messages
        options: Validation options

    Returns:
        ValidationResult whose ``data`` is ``{name: validated_value}``
    """
    schema = {name: field}
    if is_config_field(field):
        return executor.validate_config({name: value}, schema, options)
    return executor.validate_input({name: value}, schema, options)


def validate_email(executor: ValidationExecutor, value: Any) -> ValidationResult:
    return validate_field(executor, email_field().required().build(), value, "email")


def validate_url(executor: ValidationExecutor, value: Any) -> ValidationResult:
    return validate_field(executor, url_field().required().build(), value, "url")


def validate_uuid(executor: ValidationExecutor, value: Any) -> ValidationResult:
    return validate_field(executor, uuid_field().required().build(), value, "uuid")


def validate_api_key(
    executor: ValidationExecutor, value: Any, pattern: str | None = None
) -> ValidationResult:
    field = api_key_field().required()
    if pattern:
        field = field.pattern(pattern)
    return validate_field(executor, field.build(), value, "apiKey")
