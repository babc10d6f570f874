"""Normalization of internal check failures into ValidationErrorDetail."""

from dataclasses import dataclass
from typing import Any, Iterable

from toolspine.kernel.validation.errors import (
    PathSegment,
    ValidationErrorCode,
    ValidationErrorDetail,
)

REDACTED = "***REDACTED***"


@dataclass(frozen=True)
class Issue:
    """A single failed check, as produced by compiled field validators."""

    path: tuple[PathSegment, ...]
    code: ValidationErrorCode
    message: str
    value: Any = None
    expected: str | None = None
    context: dict[str, Any] | None = None
    secret: bool = False


def to_error_detail(issue: Issue) -> ValidationErrorDetail:
    """Convert an Issue to its public form, never exposing secret values."""
    return ValidationErrorDetail(
        path=list(issue.path),
        code=issue.code,
        message=issue.message,
        value=REDACTED if issue.secret and issue.value is not None else issue.value,
        expected=issue.expected,
        context=issue.context,
    )


def format_issues(issues: Iterable[Issue]) -> list[ValidationErrorDetail]:
    """Convert issues to error details, preserving order."""
    return [to_error_detail(issue) for issue in issues]


def system_error(message: str, error: BaseException) -> ValidationErrorDetail:
    """Error detail for an unexpected failure inside the engine."""
    return ValidationErrorDetail(
        path=[],
        code=ValidationErrorCode.VALIDATION_SYSTEM_ERROR,
        message=f"{message}: {error}",
        context={"error_type": type(error).__name__},
    )


def type_name(value: Any) -> str:
    """JSON-style name of a runtime value's type."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
