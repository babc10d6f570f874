"""Error codes, error details and exceptions for the validation engine.

Data-validation failures are always returned as ValidationErrorDetail
records inside a ValidationResult. Exceptions are reserved for schema
authoring mistakes and for the raising facades built on top of the engine.
"""

from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field

PathSegment = str | int


class ErrorKind(str, Enum):
    """Coarse classification of validation errors."""

    STRUCTURAL = "STRUCTURAL"  # Missing required field or wrong type
    CONSTRAINT = "CONSTRAINT"  # Length/range/pattern/format violation
    ENUM_MISMATCH = "ENUM_MISMATCH"
    CROSS_FIELD_VALIDATION_FAILED = "CROSS_FIELD_VALIDATION_FAILED"
    CROSS_FIELD_EVALUATION_ERROR = "CROSS_FIELD_EVALUATION_ERROR"
    VALIDATION_SYSTEM_ERROR = "VALIDATION_SYSTEM_ERROR"


class ValidationErrorCode(str, Enum):
    """Standardized validation error codes."""

    REQUIRED = "REQUIRED"  # Required field absent
    INVALID_TYPE = "INVALID_TYPE"  # Value has the wrong shape
    UNRECOGNIZED_KEYS = "UNRECOGNIZED_KEYS"  # Undeclared keys on a closed object
    FIELD_NOT_FOUND = "FIELD_NOT_FOUND"  # Field name not declared in the schema
    TOO_SMALL = "TOO_SMALL"  # Below min / minLength / minItems / minDate
    TOO_BIG = "TOO_BIG"  # Above max / maxLength / maxItems / maxDate
    NOT_INTEGER = "NOT_INTEGER"
    TOO_PRECISE = "TOO_PRECISE"  # More decimal places than declared precision
    NOT_UNIQUE = "NOT_UNIQUE"  # Duplicate array items
    PATTERN_MISMATCH = "PATTERN_MISMATCH"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_DATE = "INVALID_DATE"
    INVALID_TIME = "INVALID_TIME"
    INVALID_TIMEZONE = "INVALID_TIMEZONE"
    INVALID_URL = "INVALID_URL"
    PROTOCOL_NOT_ALLOWED = "PROTOCOL_NOT_ALLOWED"
    INVALID_JSON = "INVALID_JSON"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    MIME_TYPE_NOT_ALLOWED = "MIME_TYPE_NOT_ALLOWED"
    ENUM_MISMATCH = "ENUM_MISMATCH"
    CROSS_FIELD_VALIDATION_FAILED = "CROSS_FIELD_VALIDATION_FAILED"
    CROSS_FIELD_EVALUATION_ERROR = "CROSS_FIELD_EVALUATION_ERROR"
    VALIDATION_SYSTEM_ERROR = "VALIDATION_SYSTEM_ERROR"

    @property
    def kind(self) -> ErrorKind:
        """Classify this code into its ErrorKind."""
        return _CODE_KINDS.get(self, ErrorKind.CONSTRAINT)


_CODE_KINDS: dict[ValidationErrorCode, ErrorKind] = {
    ValidationErrorCode.REQUIRED: ErrorKind.STRUCTURAL,
    ValidationErrorCode.INVALID_TYPE: ErrorKind.STRUCTURAL,
    ValidationErrorCode.UNRECOGNIZED_KEYS: ErrorKind.STRUCTURAL,
    ValidationErrorCode.FIELD_NOT_FOUND: ErrorKind.STRUCTURAL,
    ValidationErrorCode.ENUM_MISMATCH: ErrorKind.ENUM_MISMATCH,
    ValidationErrorCode.CROSS_FIELD_VALIDATION_FAILED: ErrorKind.CROSS_FIELD_VALIDATION_FAILED,
    ValidationErrorCode.CROSS_FIELD_EVALUATION_ERROR: ErrorKind.CROSS_FIELD_EVALUATION_ERROR,
    ValidationErrorCode.VALIDATION_SYSTEM_ERROR: ErrorKind.VALIDATION_SYSTEM_ERROR,
}


class ValidationErrorDetail(BaseModel):
    """One structured validation failure.

    Attributes:
        path: Path segments to the offending value; array indices are ints
        code: Standardized error code
        message: Human-readable error description
        value: The offending value, when it is safe to report
        expected: Description of what was expected
        context: Additional machine-readable context
    """

    model_config = ConfigDict(frozen=True)

    path: list[PathSegment] = Field(default_factory=list)
    code: ValidationErrorCode
    message: str
    value: Any = None
    expected: str | None = None
    context: dict[str, Any] | None = None

    @property
    def kind(self) -> ErrorKind:
        """ErrorKind of this detail's code."""
        return self.code.kind

    @property
    def dotted_path(self) -> str:
        """Path rendered for display, e.g. ``user.tags[0]``."""
        return format_path(self.path)


def format_path(path: Sequence[PathSegment]) -> str:
    """Render path segments as ``field.prop[0]``.

    Args:
        path: Path segments; ints render as indices

    Returns:
        Display form of the path
    """
    rendered = ""
    for segment in path:
        if isinstance(segment, int):
            rendered += f"[{segment}]"
        elif rendered:
            rendered += f".{segment}"
        else:
            rendered = str(segment)
    return rendered


class ToolSpineError(Exception):
    """Base class for exceptions raised by toolspine."""


class SchemaDefinitionError(ToolSpineError):
    """Raised when a schema is malformed (a programmer error, not bad data).

    Attributes:
        field_path: Dotted path to the offending field definition, if known
    """

    def __init__(self, message: str, field_path: str = "") -> None:
        """Initialize schema definition error.

        Args:
            message: Human-readable error description
            field_path: Dotted path to the offending field definition
        """
        super().__init__(message)
        self.message = message
        self.field_path = field_path


class SchemaValidationError(ToolSpineError):
    """Raised by the raising facades when validation fails.

    Attributes:
        code: Code of the first reported error
        message: Human-readable error description
        path: Dotted path of the first reported error
        errors: All reported error details
    """

    def __init__(
        self,
        code: ValidationErrorCode,
        message: str,
        path: str = "",
        errors: list[ValidationErrorDetail] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            code: Code of the first reported error
            message: Human-readable error description
            path: Dotted path of the first reported error
            errors: All reported error details
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.path = path
        self.errors = errors or []


class ConfigurationError(ToolSpineError):
    """Raised when required configuration is missing.

    Attributes:
        missing_keys: Names of the missing configuration keys
    """

    def __init__(self, message: str, missing_keys: list[str] | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Human-readable error description
            missing_keys: Names of the missing configuration keys
        """
        super().__init__(message)
        self.message = message
        self.missing_keys = missing_keys or []
