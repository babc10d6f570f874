"""Executor module: Tool contracts, registry and raising schema validation."""

from toolspine.kernel.executor.schema_validator import SchemaValidator
from toolspine.kernel.executor.tool_contract import ToolContract
from toolspine.kernel.executor.tool_registry import ToolNotFoundError, ToolRegistry
from toolspine.kernel.validation.errors import (
    ConfigurationError,
    SchemaValidationError,
    ValidationErrorCode,
)

__all__ = [
    "ToolContract",
    "ToolRegistry",
    "ToolNotFoundError",
    "SchemaValidator",
    "SchemaValidationError",
    "ConfigurationError",
    "ValidationErrorCode",
]
