"""ValidationExecutor: the public entry point of the validation engine.

The executor owns one ValidatorCache and one set of metrics. Several
executors can coexist (e.g. one per test) without sharing state.

Example::

    executor = ValidationExecutor()
    result = executor.validate_input({"city": "Madrid"}, schema.input)
    if not result.success:
        for error in result.errors:
            print(error.dotted_path, error.code, error.message)
"""

import logging
import threading
import time
from typing import Any, Callable, Mapping

from toolspine.kernel.validation.cache import ValidatorCache, make_cache_key
from toolspine.kernel.validation.compiler import CompiledValidator, SchemaCompiler
from toolspine.kernel.validation.errors import (
    SchemaDefinitionError,
    ValidationErrorCode,
    ValidationErrorDetail,
)
from toolspine.kernel.validation.fields import FieldDefinition
from toolspine.kernel.validation.formatting import format_issues, system_error
from toolspine.kernel.validation.result import (
    DEFAULT_OPTIONS,
    ValidationMetrics,
    ValidationOptions,
    ValidationResult,
    ValidationTiming,
)
from toolspine.kernel.validation.rules import CrossFieldRuleEvaluator
from toolspine.kernel.validation.schema import ToolSchema
from toolspine.settings import ValidationSettings

logger = logging.getLogger(__name__)

Fields = Mapping[str, FieldDefinition]


class ValidationExecutor:
    """Validates data against schemas, caching compiled validators.

    Data-validation failures are always returned inside the
    ValidationResult. Only schema authoring errors (SchemaDefinitionError)
    propagate; any other unexpected failure is reported as a
    VALIDATION_SYSTEM_ERROR result.
    """

    def __init__(
        self,
        settings: ValidationSettings | None = None,
        cache: ValidatorCache | None = None,
        rule_evaluator: CrossFieldRuleEvaluator | None = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize executor.

        Args:
            settings: Cache tunables; read from the environment when omitted
            cache: Pre-built cache (overrides ``settings``)
            rule_evaluator: Cross-field rule evaluator
            timer: Clock used to measure validation duration, in seconds
        """
        if cache is None:
            settings = settings or ValidationSettings()
            cache = ValidatorCache(
                max_size=settings.cache_max_size,
                ttl_seconds=settings.cache_ttl_seconds,
                eviction_fraction=settings.cache_eviction_fraction,
            )
        self.cache = cache
        self.rule_evaluator = rule_evaluator or CrossFieldRuleEvaluator()
        self._timer = timer
        self._metrics_lock = threading.Lock()
        self._total_validations = 0
        self._cache_hits = 0
        self._total_duration_ms = 0.0

    # ----- public entry points -----

    def validate_input(
        self,
        data: Any,
        schema: Fields | ToolSchema,
        options: ValidationOptions | None = None,
    ) -> ValidationResult:
        """Validate tool input against the ``input`` namespace of a schema.

        Args:
            data: Raw input record (mapping of field name -> value)
            schema: Input field definitions, or a ToolSchema
            options: Validation options (defaults apply when omitted)

        Returns:
            ValidationResult with the transformed data or ordered errors

        Raises:
            SchemaDefinitionError: If the schema itself is malformed
        """
        fields = schema.input if isinstance(schema, ToolSchema) else schema
        return self._run("input", data, fields, options or DEFAULT_OPTIONS)

    def validate_config(
        self,
        data: Any,
        schema: Fields | ToolSchema,
        options: ValidationOptions | None = None,
    ) -> ValidationResult:
        """Validate tool configuration against the ``config`` namespace.

        Config fields additionally honor their ``validation`` sub-record
        (ranges, patterns, allowed protocols, JSON Schema, error message).

        Raises:
            SchemaDefinitionError: If the schema itself is malformed
        """
        fields = schema.config if isinstance(schema, ToolSchema) else schema
        return self._run("config", data, fields, options or DEFAULT_OPTIONS)

    def validate_tool_schema(
        self,
        data: Mapping[str, Any],
        schema: ToolSchema,
        options: ValidationOptions | None = None,
    ) -> ValidationResult:
        """Validate ``{"input": ..., "config": ...}`` and then cross-field rules.

        Input failures are returned without validating config; config
        failures are returned without evaluating rules.

        Raises:
            SchemaDefinitionError: If the schema itself is malformed
        """
        start = self._timer()
        try:
            if not isinstance(data, Mapping):
                data = {"input": data}
            input_result = self.validate_input(data.get("input"), schema.input, options)
            if not input_result.success:
                return input_result
            config_result = self.validate_config(data.get("config"), schema.config, options)
            if not config_result.success:
                return config_result

            validated = {"input": input_result.data, "config": config_result.data}
            from_cache = bool(
                input_result.timing and input_result.timing.from_cache
                and config_result.timing and config_result.timing.from_cache
            )
            if schema.rules:
                rule_errors = self.rule_evaluator.evaluate(validated, schema.rules)
                if rule_errors:
                    logger.debug("Cross-field validation failed with %d error(s)", len(rule_errors))
                    return ValidationResult.failed(rule_errors, self._timing(start, from_cache))
            return ValidationResult.ok(validated, self._timing(start, from_cache))
        except SchemaDefinitionError:
            raise
        except Exception as e:
            logger.warning("Tool schema validation system error: %s", e, exc_info=True)
            return ValidationResult.failed(
                [system_error("Tool schema validation error", e)], self._timing(start, False)
            )

    def test_field(
        self, schema: ToolSchema, name: str, value: Any, kind: str = "input"
    ) -> ValidationResult:
        """Validate a single value against one declared field of ``schema``."""
        fields = schema.fields_for(kind)
        if name not in fields:
            return ValidationResult.failed(
                [
                    ValidationErrorDetail(
                        path=[name],
                        code=ValidationErrorCode.FIELD_NOT_FOUND,
                        message=f"Field '{name}' not found in {kind} schema",
                    )
                ]
            )
        single = {name: fields[name]}
        if kind == "config":
            return self.validate_config({name: value}, single)
        return self.validate_input({name: value}, single)

    async def avalidate_input(
        self, data: Any, schema: Fields | ToolSchema, options: ValidationOptions | None = None
    ) -> ValidationResult:
        """Awaitable form of validate_input; validation itself never suspends."""
        return self.validate_input(data, schema, options)

    async def avalidate_config(
        self, data: Any, schema: Fields | ToolSchema, options: ValidationOptions | None = None
    ) -> ValidationResult:
        """Awaitable form of validate_config."""
        return self.validate_config(data, schema, options)

    async def avalidate_tool_schema(
        self, data: Mapping[str, Any], schema: ToolSchema, options: ValidationOptions | None = None
    ) -> ValidationResult:
        """Awaitable form of validate_tool_schema."""
        return self.validate_tool_schema(data, schema, options)

    # ----- metrics -----

    def get_metrics(self) -> ValidationMetrics:
        """Snapshot of validation counters and current cache size."""
        with self._metrics_lock:
            total = self._total_validations
            return ValidationMetrics(
                total_validations=total,
                cache_hits=self._cache_hits,
                total_duration_ms=self._total_duration_ms,
                average_duration_ms=self._total_duration_ms / total if total else 0.0,
                cache_hit_rate=self._cache_hits / total if total else 0.0,
                current_cache_size=len(self.cache),
            )

    def reset(self) -> None:
        """Clear the cache and zero every counter."""
        with self._metrics_lock:
            self.cache.clear()
            self._total_validations = 0
            self._cache_hits = 0
            self._total_duration_ms = 0.0

    # ----- internals -----

    def _validator_for(
        self, kind: str, fields: Fields, options: ValidationOptions
    ) -> tuple[CompiledValidator, bool]:
        key = make_cache_key(kind, fields, options)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Validator cache hit for %s schema", kind)
            return cached, True
        logger.debug("Validator cache miss for %s schema", kind)
        # Compiled outside the cache lock; racing misses only duplicate work
        validator = SchemaCompiler(options).compile(fields, kind)
        self.cache.put(key, validator)
        return validator, False

    def _run(
        self, kind: str, data: Any, fields: Fields, options: ValidationOptions
    ) -> ValidationResult:
        start = self._timer()
        try:
            validator, from_cache = self._validator_for(kind, fields, options)
            output, issues = validator.validate(data)
        except SchemaDefinitionError:
            raise
        except Exception as e:
            logger.warning("%s validation system error: %s", kind.capitalize(), e, exc_info=True)
            label = "Validation system error" if kind == "input" else "Configuration validation system error"
            return ValidationResult.failed([system_error(label, e)], self._timing(start, False))

        timing = self._timing(start, from_cache)
        self._record(timing)
        if issues:
            logger.debug("%s validation failed with %d error(s)", kind.capitalize(), len(issues))
            return ValidationResult.failed(format_issues(issues), timing)
        return ValidationResult.ok(output, timing)

    def _timing(self, start: float, from_cache: bool) -> ValidationTiming:
        return ValidationTiming(duration_ms=(self._timer() - start) * 1000.0, from_cache=from_cache)

    def _record(self, timing: ValidationTiming) -> None:
        with self._metrics_lock:
            self._total_validations += 1
            self._total_duration_ms += timing.duration_ms
            if timing.from_cache:
                self._cache_hits += 1
