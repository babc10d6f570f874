"""SchemaCompiler: turns field definitions into executable validators.

Each FieldDefinition compiles to a FieldValidator whose ``check`` takes the
raw value and its path and returns ``(output, issues)``. Constraints are
always evaluated against the raw value; transforms only shape the output of
a value that passed every check. Object and array definitions compile
their children recursively, so error paths look like
``["user", "tags", 0]``.

Compilation is pure: the same definitions and options always produce
equivalent validators, which is what makes caching them safe.
"""

import copy
import json
import logging
import math
import re
import unicodedata
from dataclasses import dataclass, field as dataclass_field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from toolspine.kernel.validation.errors import (
    PathSegment,
    SchemaDefinitionError,
    ValidationErrorCode,
)
from toolspine.kernel.validation.fields import (
    FieldDefinition,
    FieldType,
    TimezoneRequirement,
    Transform,
    thaw,
)
from toolspine.kernel.validation.formats import FORMAT_DESCRIPTIONS, check_format, url_scheme
from toolspine.kernel.validation.formatting import Issue, type_name
from toolspine.kernel.validation.result import ValidationOptions

logger = logging.getLogger(__name__)

Path = tuple[PathSegment, ...]
Check = Callable[[Any, Path], tuple[Any, list[Issue]]]

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d(?::[0-5]\d)?$")

_TRANSFORMS: dict[Transform, Callable[[str], str]] = {
    Transform.TRIM: str.strip,
    Transform.LOWERCASE: str.lower,
    Transform.UPPERCASE: str.upper,
    Transform.NORMALIZE: lambda value: unicodedata.normalize("NFC", value),
}


@dataclass(frozen=True)
class FieldValidator:
    """Compiled form of one FieldDefinition."""

    definition: FieldDefinition
    label: str
    check: Check

    @property
    def required(self) -> bool:
        return self.definition.required


@dataclass(frozen=True)
class CompiledValidator:
    """Executable form of one namespace of a schema under given options."""

    kind: str
    fields: dict[str, FieldValidator]
    options: ValidationOptions
    _compiler: "SchemaCompiler" = dataclass_field(repr=False, compare=False)

    def validate(self, data: Any) -> tuple[dict[str, Any] | None, list[Issue]]:
        """Apply the validator to a raw data record.

        Returns:
            ``(output, issues)``; output is None when any check failed
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            return None, [
                Issue(
                    path=(),
                    code=ValidationErrorCode.INVALID_TYPE,
                    message=f"{self.kind} must be an object, got {type_name(data)}",
                    value=data,
                    expected="object",
                )
            ]
        output, issues = self._compiler.resolve_properties(
            self.fields,
            data,
            (),
            required_names=frozenset(),
            allow_additional=False,
            strip_unknown=self.options.strip_unknown,
        )
        if issues:
            return None, issues
        return output, []


class SchemaCompiler:
    """Compiles field definitions under one set of ValidationOptions."""

    def __init__(self, options: ValidationOptions) -> None:
        """Initialize compiler.

        Args:
            options: Options every compiled validator honors
        """
        self.options = options
        self._type_compilers: dict[FieldType, Callable[[FieldDefinition, str], Check]] = {
            FieldType.STRING: self._compile_string,
            FieldType.NUMBER: self._compile_number,
            FieldType.BOOLEAN: self._compile_boolean,
            FieldType.ENUM: self._compile_enum,
            FieldType.ARRAY: self._compile_array,
            FieldType.OBJECT: self._compile_object,
            FieldType.DATE: self._compile_date,
            FieldType.DATETIME: self._compile_date,
            FieldType.TIME: self._compile_time,
            FieldType.FILE: self._compile_file,
            FieldType.JSON: self._compile_json,
            FieldType.API_KEY: self._compile_secret,
            FieldType.SECRET: self._compile_secret,
            FieldType.URL: self._compile_url,
        }

    def compile(self, fields: Mapping[str, FieldDefinition], kind: str) -> CompiledValidator:
        """Compile one namespace of a schema.

        Args:
            fields: Field name -> definition, in declaration order
            kind: ``"input"`` or ``"config"``

        Returns:
            CompiledValidator for ``fields``

        Raises:
            SchemaDefinitionError: If any definition is malformed
        """
        logger.debug("Compiling %s schema with %d fields", kind, len(fields))
        compiled = {name: self.compile_field(definition, name) for name, definition in fields.items()}
        return CompiledValidator(kind=kind, fields=compiled, options=self.options, _compiler=self)

    def compile_field(self, definition: FieldDefinition, label: str) -> FieldValidator:
        """Compile one field definition; ``label`` is its dotted declaration path."""
        check = self._type_compilers[definition.type](definition, label)
        values = definition.values
        if values and definition.type != FieldType.ENUM:
            check = self._with_membership(check, definition, label, values)
        return FieldValidator(definition=definition, label=label, check=check)

    # ----- shared helpers -----

    def _message(self, definition: FieldDefinition, label: str, constraint: str, default: str) -> str:
        custom = self.options.custom_messages.get(f"{label}.{constraint}")
        if custom:
            return custom
        validation = definition.validation
        if validation is not None and validation.error_message and constraint != "type":
            return validation.error_message
        return default

    def _issue(
        self,
        definition: FieldDefinition,
        label: str,
        path: Path,
        code: ValidationErrorCode,
        constraint: str,
        default_message: str,
        value: Any,
        expected: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> Issue:
        return Issue(
            path=path,
            code=code,
            message=self._message(definition, label, constraint, default_message),
            value=value,
            expected=expected,
            context=context,
            secret=definition.is_secret,
        )

    def _type_issue(
        self, definition: FieldDefinition, label: str, path: Path, value: Any, expected: str
    ) -> Issue:
        return self._issue(
            definition,
            label,
            path,
            ValidationErrorCode.INVALID_TYPE,
            "type",
            f"{label} must be of type {expected}, got {type_name(value)}",
            value,
            expected=expected,
        )

    def _with_membership(
        self, check: Check, definition: FieldDefinition, label: str, values: tuple[Any, ...]
    ) -> Check:
        def membership(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            output, issues = check(value, path)
            if not issues and not _is_member(value, values):
                issues = [self._enum_issue(definition, label, path, value, values)]
            return output, issues

        return membership

    def _enum_issue(
        self, definition: FieldDefinition, label: str, path: Path, value: Any, values: tuple[Any, ...]
    ) -> Issue:
        listed = ", ".join(str(v) for v in values)
        return self._issue(
            definition,
            label,
            path,
            ValidationErrorCode.ENUM_MISMATCH,
            "enum",
            f"{label} must be one of: {listed}",
            value,
            expected=listed,
            context={"allowed": list(values)},
        )

    def resolve_properties(
        self,
        validators: Mapping[str, FieldValidator],
        data: Mapping[str, Any],
        path: Path,
        required_names: frozenset[str],
        allow_additional: bool,
        strip_unknown: bool = False,
    ) -> tuple[dict[str, Any], list[Issue]]:
        """Validate a mapping against named field validators.

        Absent (or ``None``) values resolve as: required -> REQUIRED error;
        optional with a default -> the default; optional without a default ->
        omitted from the output.
        """
        output: dict[str, Any] = {}
        issues: list[Issue] = []
        for name, validator in validators.items():
            field_path = path + (name,)
            value = data.get(name)
            if value is None:
                if validator.required or name in required_names:
                    issues.append(
                        self._issue(
                            validator.definition,
                            validator.label,
                            field_path,
                            ValidationErrorCode.REQUIRED,
                            "required",
                            f"Required field '{validator.label}' is missing",
                            None,
                            expected=validator.definition.type.value,
                        )
                    )
                elif validator.definition.has_default:
                    output[name] = copy.deepcopy(validator.definition.default)
            else:
                field_output, field_issues = validator.check(value, field_path)
                if field_issues:
                    issues.extend(field_issues)
                else:
                    output[name] = field_output
            if issues and self.options.abort_early:
                return output, issues[:1]

        unknown = [key for key in data if key not in validators]
        if unknown:
            if allow_additional:
                for key in unknown:
                    output[key] = data[key]
            elif not strip_unknown:
                label = ".".join(str(segment) for segment in path) or "data"
                issues.append(
                    Issue(
                        path=path,
                        code=ValidationErrorCode.UNRECOGNIZED_KEYS,
                        message=self.options.custom_messages.get(
                            f"{label}.unknownKeys",
                            f"Unrecognized key(s) in {label}: {', '.join(map(str, unknown))}",
                        ),
                        context={"keys": unknown},
                    )
                )
        if self.options.abort_early:
            issues = issues[:1]
        return output, issues

    # ----- per-type compilers -----

    def _string_checks(
        self,
        definition: FieldDefinition,
        label: str,
        min_length: int | None,
        max_length: int | None,
        pattern: str | None,
    ) -> Callable[[str, Path], list[Issue]]:
        regex = _compile_pattern(pattern, label)
        fmt = definition.format

        def checks(value: str, path: Path) -> list[Issue]:
            issues: list[Issue] = []
            if min_length is not None and len(value) < min_length:
                if min_length == 1 and definition.type in (FieldType.API_KEY, FieldType.SECRET):
                    text = f"{label} cannot be empty"
                else:
                    text = f"{label} must be at least {min_length} characters long"
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_SMALL,
                                "minLength", text, value, expected=f">= {min_length} characters")
                )
            if max_length is not None and len(value) > max_length:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_BIG, "maxLength",
                                f"{label} must be at most {max_length} characters long", value,
                                expected=f"<= {max_length} characters")
                )
            if regex is not None and regex.search(value) is None:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.PATTERN_MISMATCH,
                                "pattern", f"{label} does not match required pattern", value,
                                expected=regex.pattern)
                )
            if fmt is not None and not check_format(value, fmt):
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.INVALID_FORMAT,
                                "format", f"{label} must be {FORMAT_DESCRIPTIONS[fmt]}", value,
                                expected=fmt.value)
                )
            return issues

        return checks

    def _transformer(self, definition: FieldDefinition) -> Callable[[str], str]:
        if definition.transform is None or not self.options.transform:
            return lambda value: value
        return _TRANSFORMS[definition.transform]

    def _compile_string(self, definition: FieldDefinition, label: str) -> Check:
        validation = definition.validation
        min_length = definition.min_length
        max_length = definition.max_length
        pattern = definition.pattern
        if validation is not None:
            min_length = min_length if min_length is not None else _as_int(validation.min)
            max_length = max_length if max_length is not None else _as_int(validation.max)
            pattern = pattern or validation.pattern
        checks = self._string_checks(definition, label, min_length, max_length, pattern)
        transform = self._transformer(definition)

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not isinstance(value, str):
                return value, [self._type_issue(definition, label, path, value, "string")]
            issues = checks(value, path)
            if issues:
                return value, issues
            return transform(value), []

        return check

    def _compile_secret(self, definition: FieldDefinition, label: str) -> Check:
        validation = definition.validation
        min_length = definition.min_length
        if min_length is None and validation is not None:
            min_length = _as_int(validation.min)
        max_length = definition.max_length
        if max_length is None and validation is not None:
            max_length = _as_int(validation.max)
        pattern = definition.pattern or (validation.pattern if validation else None)
        checks = self._string_checks(definition, label, max(min_length or 1, 1), max_length, pattern)

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not isinstance(value, str):
                return value, [self._type_issue(definition, label, path, value, "string")]
            return value, checks(value, path)

        return check

    def _compile_url(self, definition: FieldDefinition, label: str) -> Check:
        string_check = self._compile_string(definition, label)
        validation = definition.validation
        allowed = tuple(p.lower().rstrip(":") for p in validation.allowed_protocols) \
            if validation is not None and validation.allowed_protocols else None

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            output, issues = string_check(value, path)
            if issues:
                return output, issues
            scheme = url_scheme(value)
            if scheme is None:
                return value, [
                    self._issue(definition, label, path, ValidationErrorCode.INVALID_URL, "url",
                                f"{label} must be a valid URL", value, expected="url")
                ]
            if allowed is not None and scheme not in allowed:
                return value, [
                    self._issue(definition, label, path, ValidationErrorCode.PROTOCOL_NOT_ALLOWED,
                                "protocol",
                                f"{label} must use one of the allowed protocols: {', '.join(allowed)}",
                                value, expected=", ".join(allowed), context={"protocol": scheme})
                ]
            return output, []

        return check

    def _compile_number(self, definition: FieldDefinition, label: str) -> Check:
        validation = definition.validation
        minimum = definition.min
        maximum = definition.max
        if validation is not None:
            minimum = minimum if minimum is not None else validation.min
            maximum = maximum if maximum is not None else validation.max
        precision = definition.precision

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not _is_number(value):
                return value, [self._type_issue(definition, label, path, value, "number")]
            issues: list[Issue] = []
            if minimum is not None and value < minimum:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_SMALL, "min",
                                f"{label} must be at least {_show(minimum)}", value,
                                expected=f">= {_show(minimum)}")
                )
            if maximum is not None and value > maximum:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_BIG, "max",
                                f"{label} must be at most {_show(maximum)}", value,
                                expected=f"<= {_show(maximum)}")
                )
            if definition.integer and not (isinstance(value, int) or value.is_integer()):
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.NOT_INTEGER, "integer",
                                f"{label} must be an integer", value, expected="integer")
                )
            if precision is not None and _decimal_places(value) > precision:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_PRECISE, "precision",
                                f"{label} must have at most {precision} decimal places", value,
                                expected=f"<= {precision} decimal places")
                )
            return value, issues

        return check

    def _compile_boolean(self, definition: FieldDefinition, label: str) -> Check:
        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not isinstance(value, bool):
                return value, [self._type_issue(definition, label, path, value, "boolean")]
            return value, []

        return check

    def _compile_enum(self, definition: FieldDefinition, label: str) -> Check:
        values = definition.values
        if not values and definition.validation is not None:
            values = definition.validation.enum
        if not values:
            raise SchemaDefinitionError(f"Enum field {label} must have enum values defined", label)

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not _is_member(value, values):
                return value, [self._enum_issue(definition, label, path, value, values)]
            return value, []

        return check

    def _compile_array(self, definition: FieldDefinition, label: str) -> Check:
        items = self.compile_field(definition.items, f"{label}[]") if definition.items else None
        min_items = definition.min_items
        max_items = definition.max_items

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not isinstance(value, (list, tuple)):
                return value, [self._type_issue(definition, label, path, value, "array")]
            issues: list[Issue] = []
            if min_items is not None and len(value) < min_items:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_SMALL, "minItems",
                                f"{label} must contain at least {min_items} items", None,
                                expected=f">= {min_items} items", context={"size": len(value)})
                )
            if max_items is not None and len(value) > max_items:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_BIG, "maxItems",
                                f"{label} must contain at most {max_items} items", None,
                                expected=f"<= {max_items} items", context={"size": len(value)})
                )
            output: list[Any] = []
            for index, item in enumerate(value):
                if items is None:
                    output.append(item)
                    continue
                item_output, item_issues = items.check(item, path + (index,))
                issues.extend(item_issues)
                output.append(item_output)
                if issues and self.options.abort_early:
                    break
            if definition.unique_items and not issues:
                duplicates = _duplicate_indices(value)
                if duplicates:
                    issues.append(
                        self._issue(definition, label, path, ValidationErrorCode.NOT_UNIQUE,
                                    "uniqueItems", f"{label} must not contain duplicate items", None,
                                    expected="unique items", context={"duplicates": duplicates})
                    )
            return output, issues

        return check

    def _compile_object(self, definition: FieldDefinition, label: str) -> Check:
        properties = definition.properties
        if properties is None:
            def check_any(value: Any, path: Path) -> tuple[Any, list[Issue]]:
                if not isinstance(value, Mapping):
                    return value, [self._type_issue(definition, label, path, value, "object")]
                return dict(value), []

            return check_any

        validators = {
            name: self.compile_field(prop, f"{label}.{name}") for name, prop in properties.items()
        }
        required_names = frozenset(definition.required_properties or ())
        undeclared = required_names - set(validators)
        if undeclared:
            raise SchemaDefinitionError(
                f"Object field {label} requires undeclared properties: {', '.join(sorted(undeclared))}",
                label,
            )

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not isinstance(value, Mapping):
                return value, [self._type_issue(definition, label, path, value, "object")]
            return self.resolve_properties(
                validators, value, path, required_names, definition.additional_properties
            )

        return check

    def _compile_date(self, definition: FieldDefinition, label: str) -> Check:
        as_datetime = definition.type == FieldType.DATETIME
        coerce = _coerce_datetime if as_datetime else _coerce_date
        expected = "datetime" if as_datetime else "date"
        minimum = _parse_bound(definition.min_date, coerce, label)
        maximum = _parse_bound(definition.max_date, coerce, label)
        requirement = definition.timezone

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            coerced = coerce(value)
            if coerced is None:
                return value, [
                    self._issue(definition, label, path, ValidationErrorCode.INVALID_DATE, "type",
                                f"{label} must be a valid {expected}", value, expected=expected)
                ]
            if as_datetime and requirement in (TimezoneRequirement.REQUIRED, TimezoneRequirement.UTC_ONLY):
                offset = coerced.utcoffset()
                if offset is None or (requirement == TimezoneRequirement.UTC_ONLY and offset.total_seconds() != 0):
                    wanted = "in UTC" if requirement == TimezoneRequirement.UTC_ONLY else "timezone-aware"
                    return value, [
                        self._issue(definition, label, path, ValidationErrorCode.INVALID_TIMEZONE,
                                    "timezone", f"{label} must be {wanted}", value, expected=wanted)
                    ]
            issues: list[Issue] = []
            if minimum is not None and _before(coerced, minimum):
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_SMALL, "minDate",
                                f"{label} must not be before {definition.min_date}", value,
                                expected=f">= {definition.min_date}")
                )
            if maximum is not None and _before(maximum, coerced):
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.TOO_BIG, "maxDate",
                                f"{label} must not be after {definition.max_date}", value,
                                expected=f"<= {definition.max_date}")
                )
            return coerced, issues

        return check

    def _compile_time(self, definition: FieldDefinition, label: str) -> Check:
        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if isinstance(value, time):
                return value.isoformat(), []
            if not isinstance(value, str) or _TIME_RE.match(value) is None:
                return value, [
                    self._issue(definition, label, path, ValidationErrorCode.INVALID_TIME, "time",
                                f"{label} must be in HH:MM or HH:MM:SS format", value,
                                expected="HH:MM[:SS]")
                ]
            return value, []

        return check

    def _compile_file(self, definition: FieldDefinition, label: str) -> Check:
        allowed = definition.allowed_mime_types
        max_size = definition.max_file_size

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            if not (
                isinstance(value, Mapping)
                and isinstance(value.get("name"), str)
                and _is_number(value.get("size"))
                and isinstance(value.get("type"), str)
            ):
                return value, [
                    self._issue(definition, label, path, ValidationErrorCode.INVALID_TYPE, "type",
                                f"{label} must be a file with name, size and type",
                                None, expected="file")
                ]
            issues: list[Issue] = []
            if max_size is not None and value["size"] > max_size:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.FILE_TOO_LARGE,
                                "maxFileSize", f"{label} file size must not exceed {max_size} bytes",
                                value["size"], expected=f"<= {max_size} bytes")
                )
            if allowed and value["type"] not in allowed:
                issues.append(
                    self._issue(definition, label, path, ValidationErrorCode.MIME_TYPE_NOT_ALLOWED,
                                "mimeType",
                                f"{label} must be one of the allowed file types: {', '.join(allowed)}",
                                value["type"], expected=", ".join(allowed))
                )
            return dict(value), issues

        return check

    def _compile_json(self, definition: FieldDefinition, label: str) -> Check:
        json_schema = thaw(definition.validation.json_schema) if definition.validation else None
        schema_validator = None
        if json_schema is not None:
            try:
                Draft7Validator.check_schema(json_schema)
            except SchemaError as e:
                raise SchemaDefinitionError(
                    f"JSON field {label} declares a malformed JSON Schema: {e.message}", label
                ) from e
            schema_validator = Draft7Validator(json_schema)

        def check(value: Any, path: Path) -> tuple[Any, list[Issue]]:
            instance = value
            if isinstance(value, str):
                try:
                    instance = json.loads(value)
                except ValueError:
                    return value, [
                        self._issue(definition, label, path, ValidationErrorCode.INVALID_JSON, "json",
                                    f"{label} must be valid JSON", value, expected="json")
                    ]
            if schema_validator is not None:
                violations = list(schema_validator.iter_errors(instance))
                if violations:
                    first = violations[0]
                    return value, [
                        self._issue(definition, label, path, ValidationErrorCode.INVALID_JSON, "json",
                                    f"{label} does not match its JSON Schema: {first.message}", value,
                                    expected="json matching schema",
                                    context={"errors": [
                                        {"path": [str(p) for p in error.path], "message": error.message}
                                        for error in violations
                                    ]})
                    ]
            return value, []

        return check


# ----- value helpers -----


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and (math.isnan(value) or math.isinf(value)))


def _same(left: Any, right: Any) -> bool:
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _is_member(value: Any, values: tuple[Any, ...]) -> bool:
    return any(_same(value, candidate) for candidate in values)


def _show(number: float) -> str:
    return str(int(number)) if float(number).is_integer() else str(number)


def _as_int(value: float | None) -> int | None:
    return None if value is None else int(value)


def _decimal_places(value: int | float) -> int:
    if isinstance(value, int) or value.is_integer():
        return 0
    exponent = Decimal(repr(value)).as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=repr)


def _duplicate_indices(values: list[Any] | tuple[Any, ...]) -> list[int]:
    seen: set[str] = set()
    duplicates: list[int] = []
    for index, item in enumerate(values):
        key = _canonical(item)
        if key in seen:
            duplicates.append(index)
        seen.add(key)
    return duplicates


def _compile_pattern(pattern: str | None, label: str) -> re.Pattern[str] | None:
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise SchemaDefinitionError(f"Field {label} declares an invalid pattern: {e}", label) from e


def _parse_iso_datetime(text: str) -> datetime | None:
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def _coerce_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        return _parse_iso_datetime(value)
    if _is_number(value):
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def _coerce_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            parsed = _parse_iso_datetime(value)
            return parsed.date() if parsed else None
    coerced = _coerce_datetime(value)
    return coerced.date() if coerced else None


def _parse_bound(bound: str | None, coerce: Callable[[Any], Any], label: str) -> Any:
    if bound is None:
        return None
    parsed = coerce(bound)
    if parsed is None:
        raise SchemaDefinitionError(f"Field {label} declares an invalid date bound: {bound!r}", label)
    return parsed


def _before(left: date, right: date) -> bool:
    if isinstance(left, datetime) and isinstance(right, datetime):
        if (left.tzinfo is None) != (right.tzinfo is None):
            # Naive values are read as UTC when compared with aware ones
            left = left if left.tzinfo else left.replace(tzinfo=timezone.utc)
            right = right if right.tzinfo else right.replace(tzinfo=timezone.utc)
    return left < right
