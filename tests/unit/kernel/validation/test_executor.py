"""ValidationExecutor tests: entry points, caching, metrics and system errors.

Test Coverage:
- validate_input / validate_config / validate_tool_schema results
- Cache reuse across structurally equal schemas
- Metrics accounting and reset
- Schema authoring errors propagate; unexpected failures become results
"""

import asyncio
from typing import Any

import pytest

from toolspine.kernel.validation import (
    CrossFieldRuleEvaluator,
    SchemaDefinitionError,
    ValidationErrorCode,
    ValidationExecutor,
    ValidationOptions,
    ValidatorCache,
    api_key_field,
    create_schema,
    enum_field,
    number_field,
    object_field,
    string_field,
)
from toolspine.kernel.validation.formatting import REDACTED
from toolspine.settings import ValidationSettings


def weather_schema() -> Any:
    return (
        create_schema()
        .add_input("city", string_field().required().min_length(2))
        .add_input("days", number_field().integer().min(1).max(14).default(5))
        .add_input("units", enum_field(["metric", "imperial"]).default("metric"))
        .add_config("api_key", api_key_field().required())
        .build()
    )


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestValidateInput:
    """Input validation results."""

    def test_missing_required_field(self) -> None:
        """Empty input against a required city yields one REQUIRED error."""
        executor = ValidationExecutor()

        result = executor.validate_input({}, {"city": string_field().required().build()})

        assert result.success is False
        assert len(result.errors) == 1
        assert result.errors[0].code == ValidationErrorCode.REQUIRED
        assert result.errors[0].path == ["city"]

    def test_default_applied(self) -> None:
        """Absent optional field with default 5 validates to 5."""
        executor = ValidationExecutor()

        result = executor.validate_input({"city": "Madrid"}, weather_schema())

        assert result.success is True
        assert result.data == {"city": "Madrid", "days": 5, "units": "metric"}
        assert not result.errors

    def test_enum_mismatch(self) -> None:
        """A value outside the enum fails with ENUM_MISMATCH."""
        executor = ValidationExecutor()
        fields = {"mode": enum_field(["a", "b"]).required().build()}

        assert executor.validate_input({"mode": "a"}, fields).success
        result = executor.validate_input({"mode": "c"}, fields)

        assert result.errors[0].code == ValidationErrorCode.ENUM_MISMATCH

    def test_result_is_falsy_on_failure(self) -> None:
        """Results can be used directly in boolean context."""
        executor = ValidationExecutor()

        assert not executor.validate_input({}, {"city": string_field().required().build()})
        assert executor.validate_input({"city": "Rome"}, {"city": string_field().build()})

    def test_timing_reported(self) -> None:
        """Every result carries timing information."""
        executor = ValidationExecutor()

        result = executor.validate_input({"city": "Rome"}, weather_schema())

        assert result.timing is not None
        assert result.timing.duration_ms >= 0
        assert result.timing.from_cache is False

    def test_async_wrapper(self) -> None:
        """avalidate_input returns the same result as validate_input."""
        executor = ValidationExecutor()

        result = asyncio.run(executor.avalidate_input({"city": "Rome"}, weather_schema()))

        assert result.success
        assert result.data["days"] == 5


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestValidateConfig:
    """Config validation results."""

    def test_secret_values_are_redacted_in_errors(self) -> None:
        """Errors on secret fields never echo the value."""
        executor = ValidationExecutor()
        fields = {"api_key": api_key_field().pattern(r"^sk-").build()}

        result = executor.validate_config({"api_key": "pk-secret"}, fields)

        assert result.errors[0].code == ValidationErrorCode.PATTERN_MISMATCH
        assert result.errors[0].value == REDACTED

    def test_accepts_tool_schema(self) -> None:
        """A ToolSchema can be passed; its config namespace is used."""
        executor = ValidationExecutor()

        result = executor.validate_config({"api_key": "sk-123"}, weather_schema())

        assert result.success
        assert result.data == {"api_key": "sk-123"}


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestValidateToolSchema:
    """Combined validation in input, config, rules order."""

    def test_success_returns_both_namespaces(self) -> None:
        """Validated data is {input, config}."""
        executor = ValidationExecutor()

        result = executor.validate_tool_schema(
            {"input": {"city": "Oslo"}, "config": {"api_key": "sk-1"}}, weather_schema()
        )

        assert result.success
        assert result.data["input"]["city"] == "Oslo"
        assert result.data["config"] == {"api_key": "sk-1"}

    def test_input_errors_shadow_config_errors(self) -> None:
        """When input fails, config is not reported."""
        executor = ValidationExecutor()

        result = executor.validate_tool_schema({"input": {}, "config": {}}, weather_schema())

        assert [error.path for error in result.errors] == [["city"]]

    def test_config_errors_reported_when_input_passes(self) -> None:
        """Config is validated once input passes."""
        executor = ValidationExecutor()

        result = executor.validate_tool_schema({"input": {"city": "Oslo"}}, weather_schema())

        assert [error.path for error in result.errors] == [["api_key"]]
        assert result.errors[0].code == ValidationErrorCode.REQUIRED

    def test_rules_only_run_after_both_namespaces_pass(self) -> None:
        """Cross-field rules see validated data and are skipped on earlier failures."""
        calls: list[str] = []

        def handler(rule: Any, namespace: Any) -> bool:
            calls.append(rule.name)
            return False

        executor = ValidationExecutor(rule_evaluator=CrossFieldRuleEvaluator(custom_handler=handler))
        schema = (
            create_schema()
            .add_input("city", string_field().required())
            .add_rule({"kind": "custom", "name": "never", "error_message": "Nope"})
            .build()
        )

        failed_early = executor.validate_tool_schema({"input": {}}, schema)
        failed_rule = executor.validate_tool_schema({"input": {"city": "Oslo"}}, schema)

        assert failed_early.errors[0].code == ValidationErrorCode.REQUIRED
        assert failed_rule.errors[0].code == ValidationErrorCode.CROSS_FIELD_VALIDATION_FAILED
        assert failed_rule.errors[0].message == "Nope"
        assert calls == ["never"]

    def test_conditional_rule_end_to_end(self) -> None:
        """advanced=true requires coordinates."""
        executor = ValidationExecutor()
        schema = (
            create_schema()
            .add_input("advanced", string_field())
            .add_input("coordinates", object_field({"lat": number_field(), "lon": number_field()}))
            .add_rule(
                {
                    "kind": "conditional",
                    "condition": "input.advanced == 'yes'",
                    "requires": ["input.coordinates"],
                    "error_message": "Coordinates are required in advanced mode",
                }
            )
            .build()
        )

        failed = executor.validate_tool_schema({"input": {"advanced": "yes"}}, schema)
        passed = executor.validate_tool_schema(
            {"input": {"advanced": "yes", "coordinates": {"lat": 1, "lon": 2}}}, schema
        )

        assert failed.errors[0].path == ["cross-field"]
        assert failed.errors[0].message == "Coordinates are required in advanced mode"
        assert passed.success


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestCachingAndMetrics:
    """Compiled validators are reused and counted."""

    def test_second_validation_hits_cache(self) -> None:
        """Structurally equal schemas reuse one compiled validator."""
        executor = ValidationExecutor()

        first = executor.validate_input({"city": "Rome"}, weather_schema())
        second = executor.validate_input({"city": "Rome"}, weather_schema())

        assert first.timing.from_cache is False
        assert second.timing.from_cache is True
        metrics = executor.get_metrics()
        assert metrics.total_validations == 2
        assert metrics.cache_hits == 1
        assert metrics.cache_hit_rate == 0.5
        assert metrics.current_cache_size == 1

    def test_options_change_cache_identity(self) -> None:
        """Different options compile a separate validator."""
        executor = ValidationExecutor()

        executor.validate_input({"city": "Rome"}, weather_schema())
        executor.validate_input({"city": "Rome"}, weather_schema(), ValidationOptions(abort_early=True))

        assert executor.get_metrics().current_cache_size == 2

    def test_reset_clears_cache_and_metrics(self) -> None:
        """reset zeroes every counter."""
        executor = ValidationExecutor()
        executor.validate_input({"city": "Rome"}, weather_schema())

        executor.reset()

        metrics = executor.get_metrics()
        assert metrics.total_validations == 0
        assert metrics.cache_hits == 0
        assert metrics.average_duration_ms == 0.0
        assert metrics.current_cache_size == 0

    def test_average_duration_uses_timer(self) -> None:
        """Durations come from the injected timer."""
        ticks = iter([0.0, 0.002, 1.0, 1.004])
        executor = ValidationExecutor(timer=lambda: next(ticks))
        fields = {"city": string_field().build()}

        executor.validate_input({}, fields)
        executor.validate_input({}, fields)

        metrics = executor.get_metrics()
        assert metrics.total_duration_ms == pytest.approx(6.0)
        assert metrics.average_duration_ms == pytest.approx(3.0)

    def test_settings_size_the_cache(self) -> None:
        """Cache bounds come from ValidationSettings."""
        executor = ValidationExecutor(settings=ValidationSettings(cache_max_size=2))

        for length in range(5):
            executor.validate_input({}, {"city": string_field().min_length(length).build()})

        assert executor.get_metrics().current_cache_size <= 2

    def test_executors_do_not_share_state(self) -> None:
        """Each executor owns its cache and metrics."""
        first = ValidationExecutor()
        second = ValidationExecutor()

        first.validate_input({"city": "Rome"}, weather_schema())

        assert second.get_metrics().total_validations == 0
        assert second.get_metrics().current_cache_size == 0


class ExplodingCache(ValidatorCache):
    """Cache whose lookups fail unexpectedly."""

    def get(self, key: Any) -> Any:
        raise RuntimeError("disk on fire")


@pytest.mark.unit
@pytest.mark.P1
@pytest.mark.deterministic
class TestFailureModes:
    """Authoring errors raise; unexpected failures are reported."""

    def test_schema_definition_error_propagates(self) -> None:
        """An enum without values is a programmer error."""
        executor = ValidationExecutor()

        with pytest.raises(SchemaDefinitionError):
            executor.validate_input({"mode": "a"}, {"mode": enum_field([]).build()})

    def test_unexpected_error_becomes_system_error(self) -> None:
        """Internal failures are returned as VALIDATION_SYSTEM_ERROR."""
        executor = ValidationExecutor(cache=ExplodingCache())

        result = executor.validate_input({"city": "Rome"}, weather_schema())

        assert result.success is False
        assert result.errors[0].code == ValidationErrorCode.VALIDATION_SYSTEM_ERROR
        assert "disk on fire" in result.errors[0].message


@pytest.mark.unit
@pytest.mark.P1
@pytest.mark.deterministic
class TestTestField:
    """Single-field validation against a declared schema."""

    def test_known_field(self) -> None:
        """A declared field is validated in isolation."""
        executor = ValidationExecutor()

        result = executor.test_field(weather_schema(), "days", 20)

        assert result.errors[0].code == ValidationErrorCode.TOO_BIG

    def test_config_field(self) -> None:
        """kind='config' looks the field up in the config namespace."""
        executor = ValidationExecutor()

        result = executor.test_field(weather_schema(), "api_key", "sk-1", kind="config")

        assert result.success

    def test_unknown_field(self) -> None:
        """Unknown names return FIELD_NOT_FOUND."""
        executor = ValidationExecutor()

        result = executor.test_field(weather_schema(), "country", "NO")

        assert result.errors[0].code == ValidationErrorCode.FIELD_NOT_FOUND
        assert result.errors[0].path == ["country"]
