"""SchemaValidator: raising facade over the validation engine.

Callers that prefer exceptions to result objects (e.g. tool runners that
must refuse to execute on bad input) use this instead of
ValidationExecutor directly.
"""

from typing import Any, Mapping

from toolspine.kernel.validation.errors import (
    ConfigurationError,
    SchemaValidationError,
    ValidationErrorCode,
    ValidationErrorDetail,
)
from toolspine.kernel.validation.executor import ValidationExecutor
from toolspine.kernel.validation.fields import FieldDefinition
from toolspine.kernel.validation.result import ValidationOptions, ValidationResult
from toolspine.kernel.validation.schema import ToolSchema

Fields = Mapping[str, FieldDefinition]


class SchemaValidator:
    """Validates data against tool schemas, raising on failure.

    Every call is delegated to one ValidationExecutor, so compiled
    validators are cached and metrics are recorded as usual.
    """

    def __init__(self, executor: ValidationExecutor | None = None) -> None:
        """Initialize schema validator.

        Args:
            executor: Engine instance to delegate to
        """
        self.executor = executor or ValidationExecutor()

    def validate_input(
        self, data: Any, schema: Fields | ToolSchema, options: ValidationOptions | None = None
    ) -> dict[str, Any]:
        """Validate tool input.

        Args:
            data: Raw input record
            schema: Input field definitions, or a ToolSchema
            options: Validation options

        Returns:
            The validated and transformed input

        Raises:
            SchemaValidationError: If validation fails; ``code`` and ``path``
                describe the first error
        """
        result = self.executor.validate_input(data, schema, options)
        return _unwrap(result, "Input validation failed")

    def validate_config(
        self, data: Any, schema: Fields | ToolSchema, options: ValidationOptions | None = None
    ) -> dict[str, Any]:
        """Validate tool configuration.

        Returns:
            The validated configuration

        Raises:
            ConfigurationError: If required configuration keys are missing
            SchemaValidationError: For any other validation failure
        """
        result = self.executor.validate_config(data, schema, options)
        if not result.success:
            missing = [
                error.dotted_path
                for error in result.errors or []
                if error.code == ValidationErrorCode.REQUIRED
            ]
            if missing:
                raise ConfigurationError(
                    f"Missing required configuration: {', '.join(missing)}",
                    missing_keys=missing,
                )
        return _unwrap(result, "Configuration validation failed")

    def validate(
        self,
        data: Mapping[str, Any],
        schema: ToolSchema,
        options: ValidationOptions | None = None,
    ) -> dict[str, Any]:
        """Validate ``{"input": ..., "config": ...}`` including cross-field rules.

        Returns:
            ``{"input": ..., "config": ...}`` with validated values

        Raises:
            SchemaValidationError: If any phase fails
        """
        result = self.executor.validate_tool_schema(data, schema, options)
        return _unwrap(result, "Tool validation failed")


def _unwrap(result: ValidationResult, summary: str) -> Any:
    if result.success:
        return result.data
    errors: list[ValidationErrorDetail] = result.errors or []
    first = errors[0] if errors else None
    if first is None:
        raise SchemaValidationError(ValidationErrorCode.VALIDATION_SYSTEM_ERROR, summary)
    raise SchemaValidationError(
        code=first.code,
        message=f"{summary}: {first.message}",
        path=first.dotted_path,
        errors=errors,
    )
