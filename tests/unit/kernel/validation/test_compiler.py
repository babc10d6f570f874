"""SchemaCompiler tests: per-type checks, coercion, transforms and paths.

Test Coverage:
- Required / optional / default resolution
- String, number, enum, array, object, date, time, file, json, url, secret
- Error paths for nested values
- Schema authoring errors raised at compile time
"""

from datetime import date, datetime, timezone
from typing import Any

import pytest

from toolspine.kernel.validation import (
    FieldDefinition,
    SchemaCompiler,
    SchemaDefinitionError,
    ValidationErrorCode,
    ValidationOptions,
    api_key_field,
    array_field,
    boolean_field,
    config_enum_field,
    config_json_field,
    config_number_field,
    config_string_field,
    date_field,
    datetime_field,
    enum_field,
    file_field,
    json_field,
    number_field,
    object_field,
    string_field,
    time_field,
    url_config_field,
)
from toolspine.kernel.validation.builders import FieldBuilder
from toolspine.kernel.validation.formatting import Issue


def run(
    fields: dict[str, FieldBuilder | FieldDefinition],
    data: Any,
    options: ValidationOptions | None = None,
) -> tuple[dict[str, Any] | None, list[Issue]]:
    """Compile ``fields`` and validate ``data`` in one step."""
    definitions = {
        name: field.build() if isinstance(field, FieldBuilder) else field
        for name, field in fields.items()
    }
    compiler = SchemaCompiler(options or ValidationOptions())
    return compiler.compile(definitions, "input").validate(data)


def codes(issues: list[Issue]) -> list[ValidationErrorCode]:
    return [issue.code for issue in issues]


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestPresence:
    """Absent values resolve to errors, defaults or omission."""

    def test_missing_required_field(self) -> None:
        """A required field absent from data yields REQUIRED at its path."""
        output, issues = run({"city": string_field().required()}, {})

        assert output is None
        assert codes(issues) == [ValidationErrorCode.REQUIRED]
        assert issues[0].path == ("city",)

    def test_none_counts_as_absent(self) -> None:
        """A present None is treated like a missing key."""
        _, issues = run({"city": string_field().required()}, {"city": None})

        assert codes(issues) == [ValidationErrorCode.REQUIRED]

    def test_default_is_applied(self) -> None:
        """Absent optional fields with a default take the default."""
        output, issues = run({"days": number_field().default(5)}, {})

        assert issues == []
        assert output == {"days": 5}

    def test_mutable_default_is_copied(self) -> None:
        """Each validation gets its own copy of a mutable default."""
        fields = {"tags": array_field(string_field()).default([])}
        first, _ = run(fields, {})
        first["tags"].append("x")
        second, _ = run(fields, {})

        assert second == {"tags": []}

    def test_optional_without_default_is_omitted(self) -> None:
        """Absent optional fields without default do not appear in output."""
        output, issues = run({"note": string_field()}, {})

        assert issues == []
        assert output == {}

    def test_unknown_keys_stripped_by_default(self) -> None:
        """Undeclared top-level keys are dropped silently."""
        output, issues = run({"city": string_field()}, {"city": "Madrid", "trace_id": "x"})

        assert issues == []
        assert output == {"city": "Madrid"}

    def test_unknown_keys_rejected_when_not_stripping(self) -> None:
        """strip_unknown=False reports undeclared top-level keys."""
        _, issues = run(
            {"city": string_field()},
            {"city": "Oslo", "extra": 1},
            ValidationOptions(strip_unknown=False),
        )

        assert codes(issues) == [ValidationErrorCode.UNRECOGNIZED_KEYS]
        assert issues[0].context == {"keys": ["extra"]}

    def test_non_mapping_data(self) -> None:
        """Data that is not an object fails with INVALID_TYPE at the root."""
        _, issues = run({"city": string_field()}, ["Oslo"])

        assert codes(issues) == [ValidationErrorCode.INVALID_TYPE]
        assert issues[0].path == ()

    def test_errors_follow_declaration_order(self) -> None:
        """All failures are collected in declaration order."""
        _, issues = run(
            {"b": string_field().required(), "a": number_field().required()},
            {},
        )

        assert [issue.path for issue in issues] == [("b",), ("a",)]

    def test_abort_early_stops_at_first_issue(self) -> None:
        """abort_early reports only the first failure."""
        _, issues = run(
            {"b": string_field().required(), "a": number_field().required()},
            {},
            ValidationOptions(abort_early=True),
        )

        assert len(issues) == 1
        assert issues[0].path == ("b",)


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestStrings:
    """String constraints and transforms."""

    def test_length_bounds(self) -> None:
        """minLength and maxLength produce TOO_SMALL and TOO_BIG."""
        fields = {"name": string_field().min_length(2).max_length(4)}

        _, short = run(fields, {"name": "a"})
        _, long = run(fields, {"name": "abcde"})

        assert codes(short) == [ValidationErrorCode.TOO_SMALL]
        assert codes(long) == [ValidationErrorCode.TOO_BIG]

    def test_wrong_type(self) -> None:
        """Non-strings fail with INVALID_TYPE."""
        _, issues = run({"name": string_field()}, {"name": 42})

        assert codes(issues) == [ValidationErrorCode.INVALID_TYPE]
        assert issues[0].expected == "string"

    def test_pattern(self) -> None:
        """Pattern mismatches are reported."""
        _, issues = run({"code": string_field().pattern(r"^[A-Z]{3}$")}, {"code": "abc"})

        assert codes(issues) == [ValidationErrorCode.PATTERN_MISMATCH]

    @pytest.mark.parametrize(
        ("fmt", "good", "bad"),
        [
            ("email", "user@example.com", "user@"),
            ("url", "https://example.com/a", "not a url"),
            ("uuid", "550e8400-e29b-41d4-a716-446655440000", "550e8400"),
            ("ipv4", "10.0.0.1", "10.0.0.256"),
            ("ipv6", "::1", "12345::"),
            ("slug", "hello-world", "Hello World"),
            ("hex-color", "#ff0000", "ff0000"),
            ("semver", "1.2.3-beta.1", "1.2"),
        ],
    )
    def test_formats(self, fmt: str, good: str, bad: str) -> None:
        """Each declared format accepts a valid value and rejects an invalid one."""
        fields = {"value": string_field().format(fmt)}

        _, ok = run(fields, {"value": good})
        _, failed = run(fields, {"value": bad})

        assert ok == []
        assert codes(failed) == [ValidationErrorCode.INVALID_FORMAT]

    def test_transform_applies_after_checks(self) -> None:
        """Constraints see the raw value; output carries the transform."""
        fields = {"name": string_field().max_length(5).transform("trim")}

        output, issues = run(fields, {"name": "  ab  "})
        assert codes(issues) == [ValidationErrorCode.TOO_BIG]

        output, issues = run(fields, {"name": " ab "})
        assert issues == []
        assert output == {"name": "ab"}

    def test_transform_disabled(self) -> None:
        """transform=False leaves values untouched."""
        output, _ = run(
            {"name": string_field().transform("uppercase")},
            {"name": "abc"},
            ValidationOptions(transform=False),
        )

        assert output == {"name": "abc"}

    def test_custom_message(self) -> None:
        """custom_messages override generated messages by path and constraint."""
        _, issues = run(
            {"city": string_field().min_length(2)},
            {"city": "a"},
            ValidationOptions(custom_messages={"city.minLength": "City name is too short"}),
        )

        assert issues[0].message == "City name is too short"


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestNumbersAndEnums:
    """Numeric constraints and enum membership."""

    def test_range(self) -> None:
        """min and max are inclusive bounds."""
        fields = {"days": number_field().min(1).max(14)}

        assert run(fields, {"days": 1})[1] == []
        assert run(fields, {"days": 14})[1] == []
        assert codes(run(fields, {"days": 0})[1]) == [ValidationErrorCode.TOO_SMALL]
        assert codes(run(fields, {"days": 15})[1]) == [ValidationErrorCode.TOO_BIG]

    def test_integer(self) -> None:
        """integer() rejects fractional values but accepts 2.0."""
        fields = {"count": number_field().integer()}

        assert codes(run(fields, {"count": 2.5})[1]) == [ValidationErrorCode.NOT_INTEGER]
        assert run(fields, {"count": 2.0})[1] == []

    def test_booleans_are_not_numbers(self) -> None:
        """True is not accepted as a number."""
        _, issues = run({"count": number_field()}, {"count": True})

        assert codes(issues) == [ValidationErrorCode.INVALID_TYPE]

    def test_precision(self) -> None:
        """More decimal places than declared fail with TOO_PRECISE."""
        fields = {"price": number_field().precision(2)}

        assert run(fields, {"price": 9.99})[1] == []
        assert codes(run(fields, {"price": 9.999})[1]) == [ValidationErrorCode.TOO_PRECISE]

    def test_whole_float_has_no_decimal_places(self) -> None:
        """5.0 satisfies precision 0, matching the integer check."""
        fields = {"quantity": number_field().precision(0).integer()}

        output, issues = run(fields, {"quantity": 5.0})

        assert issues == []
        assert output == {"quantity": 5.0}
        assert codes(run(fields, {"quantity": 5.5})[1]) == [
            ValidationErrorCode.NOT_INTEGER,
            ValidationErrorCode.TOO_PRECISE,
        ]

    def test_integer_beyond_float_range(self) -> None:
        """Integers too large for a float are still valid integers."""
        fields = {"n": number_field().integer().min(0).required()}

        output, issues = run(fields, {"n": 10**400})

        assert issues == []
        assert output == {"n": 10**400}

    def test_enum_membership(self) -> None:
        """Values outside the enum set fail with ENUM_MISMATCH."""
        fields = {"mode": enum_field(["a", "b"])}

        assert run(fields, {"mode": "a"})[1] == []
        _, issues = run(fields, {"mode": "c"})
        assert codes(issues) == [ValidationErrorCode.ENUM_MISMATCH]
        assert issues[0].context == {"allowed": ["a", "b"]}

    def test_empty_enum_is_a_schema_error(self) -> None:
        """An enum without values cannot be compiled."""
        with pytest.raises(SchemaDefinitionError):
            run({"mode": enum_field([])}, {})

    def test_boolean(self) -> None:
        """Only real booleans are accepted."""
        fields = {"flag": boolean_field()}

        assert run(fields, {"flag": False}) == ({"flag": False}, [])
        assert codes(run(fields, {"flag": "true"})[1]) == [ValidationErrorCode.INVALID_TYPE]


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestNested:
    """Arrays and objects compile recursively."""

    def test_array_item_paths(self) -> None:
        """Item errors carry integer indices in their path."""
        fields = {
            "user": object_field(
                {"tags": array_field(string_field().min_length(2))}
            ),
        }

        _, issues = run(fields, {"user": {"tags": ["ok", "x"]}})

        assert codes(issues) == [ValidationErrorCode.TOO_SMALL]
        assert issues[0].path == ("user", "tags", 1)

    def test_array_bounds_and_uniqueness(self) -> None:
        """minItems, maxItems and uniqueness are enforced."""
        fields = {"tags": array_field(string_field()).min_items(1).max_items(3).unique()}

        assert codes(run(fields, {"tags": []})[1]) == [ValidationErrorCode.TOO_SMALL]
        assert codes(run(fields, {"tags": ["a", "b", "c", "d"]})[1]) == [ValidationErrorCode.TOO_BIG]
        assert codes(run(fields, {"tags": ["a", "a"]})[1]) == [ValidationErrorCode.NOT_UNIQUE]

    def test_object_required_properties(self) -> None:
        """requiredProperties are enforced on nested objects."""
        fields = {
            "coordinates": object_field(
                {"lat": number_field(), "lon": number_field()}
            ).required_properties(["lat", "lon"]),
        }

        _, issues = run(fields, {"coordinates": {"lat": 1}})

        assert codes(issues) == [ValidationErrorCode.REQUIRED]
        assert issues[0].path == ("coordinates", "lon")

    def test_object_additional_properties(self) -> None:
        """Undeclared nested keys are rejected unless additional properties are allowed."""
        closed = {"meta": object_field({"a": string_field()})}
        open_ = {"meta": object_field({"a": string_field()}).additional_properties()}

        _, issues = run(closed, {"meta": {"a": "x", "b": 1}})
        output, ok = run(open_, {"meta": {"a": "x", "b": 1}})

        assert codes(issues) == [ValidationErrorCode.UNRECOGNIZED_KEYS]
        assert ok == []
        assert output == {"meta": {"a": "x", "b": 1}}

    def test_undeclared_required_property_is_a_schema_error(self) -> None:
        """Requiring a property that is not declared fails compilation."""
        with pytest.raises(SchemaDefinitionError):
            run({"meta": object_field({"a": string_field()}).required_properties(["b"])}, {})


@pytest.mark.unit
@pytest.mark.P1
@pytest.mark.deterministic
class TestDatesFilesJson:
    """Date/time coercion, files and JSON."""

    def test_date_coercion_and_bounds(self) -> None:
        """ISO strings are coerced and bounds are inclusive."""
        fields = {"day": date_field().min_date("2024-01-01").max_date(date(2024, 12, 31))}

        output, issues = run(fields, {"day": "2024-06-01"})
        assert issues == []
        assert output == {"day": date(2024, 6, 1)}

        assert codes(run(fields, {"day": "2023-12-31"})[1]) == [ValidationErrorCode.TOO_SMALL]
        assert codes(run(fields, {"day": "2025-01-01"})[1]) == [ValidationErrorCode.TOO_BIG]
        assert codes(run(fields, {"day": "not a date"})[1]) == [ValidationErrorCode.INVALID_DATE]

    def test_datetime_zulu_and_timezone_requirement(self) -> None:
        """Z suffix parses as UTC; utc-only rejects other offsets."""
        fields = {"at": datetime_field().timezone("utc-only")}

        output, issues = run(fields, {"at": "2024-06-01T12:00:00Z"})
        assert issues == []
        assert output == {"at": datetime(2024, 6, 1, 12, tzinfo=timezone.utc)}

        _, issues = run(fields, {"at": "2024-06-01T12:00:00+02:00"})
        assert codes(issues) == [ValidationErrorCode.INVALID_TIMEZONE]

    def test_time(self) -> None:
        """HH:MM and HH:MM:SS are accepted."""
        fields = {"at": time_field()}

        assert run(fields, {"at": "09:30"})[1] == []
        assert run(fields, {"at": "23:59:59"})[1] == []
        assert codes(run(fields, {"at": "24:00"})[1]) == [ValidationErrorCode.INVALID_TIME]

    def test_file(self) -> None:
        """Files are checked for shape, size and MIME type."""
        fields = {"upload": file_field().mime_types(["image/png"]).max_size(100)}

        assert run(fields, {"upload": {"name": "a.png", "size": 10, "type": "image/png"}})[1] == []
        assert codes(run(fields, {"upload": {"name": "a.png", "size": 500, "type": "image/png"}})[1]) == [
            ValidationErrorCode.FILE_TOO_LARGE
        ]
        assert codes(run(fields, {"upload": {"name": "a.gif", "size": 10, "type": "image/gif"}})[1]) == [
            ValidationErrorCode.MIME_TYPE_NOT_ALLOWED
        ]
        assert codes(run(fields, {"upload": "a.png"})[1]) == [ValidationErrorCode.INVALID_TYPE]

    def test_json_string_must_parse(self) -> None:
        """JSON given as a string must be well formed."""
        fields = {"payload": json_field()}

        assert run(fields, {"payload": '{"a": 1}'})[1] == []
        assert run(fields, {"payload": {"a": 1}})[1] == []
        assert codes(run(fields, {"payload": "{oops"})[1]) == [ValidationErrorCode.INVALID_JSON]

    def test_json_schema_on_config_field(self) -> None:
        """A declared JSON Schema is enforced with Draft 7 semantics."""
        fields = {
            "mapping": config_json_field().json_schema(
                {"type": "object", "required": ["id"], "properties": {"id": {"type": "integer"}}}
            )
        }

        assert run(fields, {"mapping": {"id": 1}})[1] == []
        _, issues = run(fields, {"mapping": {"id": "x"}})
        assert codes(issues) == [ValidationErrorCode.INVALID_JSON]

    def test_malformed_json_schema_is_a_schema_error(self) -> None:
        """A JSON Schema that is itself invalid fails compilation."""
        with pytest.raises(SchemaDefinitionError):
            run({"mapping": config_json_field().json_schema({"type": "nonsense"})}, {})


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestConfigFields:
    """Config-only types and the validation sub-record."""

    def test_empty_api_key(self) -> None:
        """API keys cannot be empty; the value is never echoed."""
        _, issues = run({"api_key": api_key_field()}, {"api_key": ""})

        assert codes(issues) == [ValidationErrorCode.TOO_SMALL]
        assert "cannot be empty" in issues[0].message
        assert issues[0].secret is True

    def test_api_key_pattern(self) -> None:
        """API key patterns come from the validation record."""
        fields = {"api_key": api_key_field().pattern(r"^sk-")}

        assert run(fields, {"api_key": "sk-123"})[1] == []
        assert codes(run(fields, {"api_key": "pk-123"})[1]) == [ValidationErrorCode.PATTERN_MISMATCH]

    def test_url_protocols(self) -> None:
        """URL config fields restrict schemes."""
        fields = {"endpoint": url_config_field().protocols(["https"])}

        assert run(fields, {"endpoint": "https://api.example.com"})[1] == []
        assert codes(run(fields, {"endpoint": "http://api.example.com"})[1]) == [
            ValidationErrorCode.PROTOCOL_NOT_ALLOWED
        ]
        assert codes(run(fields, {"endpoint": "nope"})[1]) == [ValidationErrorCode.INVALID_URL]

    def test_validation_error_message(self) -> None:
        """error_message replaces generated rule messages."""
        fields = {"region": config_string_field().min_length(2).error_message("Bad region")}

        _, issues = run(fields, {"region": "x"})

        assert issues[0].message == "Bad region"

    def test_config_number_and_enum(self) -> None:
        """Config ranges and enums come from the validation record."""
        fields = {
            "retries": config_number_field().min(0).max(5),
            "region": config_enum_field(["eu", "us"]),
        }

        assert run(fields, {"retries": 3, "region": "eu"})[1] == []
        _, issues = run(fields, {"retries": 9, "region": "ap"})
        assert codes(issues) == [ValidationErrorCode.TOO_BIG, ValidationErrorCode.ENUM_MISMATCH]
