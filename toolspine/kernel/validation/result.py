"""Validation options, results and metrics."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from toolspine.kernel.validation.errors import ValidationErrorDetail


class ValidationOptions(BaseModel):
    """Options a schema is compiled under; part of the cache key.

    Attributes:
        abort_early: Stop at the first error instead of collecting all
        transform: Apply declared string transforms to the output
        strip_unknown: Drop undeclared top-level keys (default); when False they
            are rejected with UNRECOGNIZED_KEYS
        custom_messages: ``"<dotted.path>.<constraint>"`` -> message overrides,
            e.g. ``{"city.minLength": "City name is too short"}``
    """

    model_config = ConfigDict(frozen=True)

    abort_early: bool = False
    transform: bool = True
    strip_unknown: bool = True
    custom_messages: dict[str, str] = Field(default_factory=dict)


DEFAULT_OPTIONS = ValidationOptions()


class ValidationTiming(BaseModel):
    duration_ms: float
    from_cache: bool


class ValidationResult(BaseModel):
    """Outcome of one validation call.

    On success ``data`` holds the coerced and transformed payload; on failure
    ``errors`` holds the ordered error details.
    """

    success: bool
    data: Any = None
    errors: list[ValidationErrorDetail] | None = None
    timing: ValidationTiming | None = None

    def __bool__(self) -> bool:
        """Allow ``if result:`` usage to check success."""
        return self.success

    @classmethod
    def ok(cls, data: Any, timing: ValidationTiming | None = None) -> "ValidationResult":
        return cls(success=True, data=data, timing=timing)

    @classmethod
    def failed(
        cls, errors: list[ValidationErrorDetail], timing: ValidationTiming | None = None
    ) -> "ValidationResult":
        return cls(success=False, errors=errors, timing=timing)


class ValidationMetrics(BaseModel):
    """Snapshot of an executor's counters."""

    total_validations: int = 0
    cache_hits: int = 0
    total_duration_ms: float = 0.0
    average_duration_ms: float = 0.0
    cache_hit_rate: float = 0.0
    current_cache_size: int = 0
