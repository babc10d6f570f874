"""ToolSchema: input and config namespaces plus cross-field rules."""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from toolspine.kernel.validation.builders import FieldBuilder
from toolspine.kernel.validation.conditions import NAMESPACES, parse_condition
from toolspine.kernel.validation.errors import SchemaDefinitionError
from toolspine.kernel.validation.fields import FieldDefinition, read_only


class RuleKind(str, Enum):
    """Kinds of cross-field rule."""

    CONDITIONAL = "conditional"
    MUTUAL_EXCLUSION = "mutual_exclusion"
    DEPENDENCY = "dependency"
    CUSTOM = "custom"


class CrossFieldRule(BaseModel):
    """Constraint relating fields across the combined input/config namespace.

    Field paths are dotted and rooted at a namespace, e.g.
    ``input.coordinates`` or ``config.region``. Conditions are checked
    against the condition grammar when the rule is created.
    """

    model_config = ConfigDict(frozen=True)

    kind: RuleKind
    name: str | None = None
    condition: str | None = None
    requires: tuple[str, ...] = ()
    forbids: tuple[str, ...] = ()
    trigger: str | None = None
    fields: tuple[str, ...] = ()
    error_message: str | None = None
    description: str | None = None

    @model_validator(mode="after")
    def _check_declaration(self) -> "CrossFieldRule":
        if self.condition is not None:
            parse_condition(self.condition)
        paths = [*self.requires, *self.forbids, *self.fields]
        if self.trigger is not None:
            paths.append(self.trigger)
        for path in paths:
            root, _, rest = path.partition(".")
            if root not in NAMESPACES or not rest:
                raise SchemaDefinitionError(
                    f"Rule path {path!r} must start with 'input.' or 'config.'",
                    field_path=path,
                )
        return self


class ToolSchema(BaseModel):
    """Frozen schema of one tool: input fields, config fields and rules.

    Both namespaces are read-only mappings, so a built schema cannot gain
    or lose fields.
    """

    model_config = ConfigDict(frozen=True)

    input: Mapping[str, FieldDefinition] = Field(default_factory=dict, validate_default=True)
    config: Mapping[str, FieldDefinition] = Field(default_factory=dict, validate_default=True)
    rules: tuple[CrossFieldRule, ...] = ()

    @field_validator("input", "config")
    @classmethod
    def _freeze_namespace(cls, value: Mapping[str, FieldDefinition]) -> Mapping[str, FieldDefinition]:
        return read_only(value)

    @field_serializer("input", "config", mode="wrap")
    def _serialize_namespace(self, value: Mapping[str, FieldDefinition], handler: Any) -> Any:
        return handler(dict(value))

    def fields_for(self, kind: str) -> Mapping[str, FieldDefinition]:
        """Return the ``input`` or ``config`` namespace."""
        if kind == "input":
            return self.input
        if kind == "config":
            return self.config
        raise ValueError(f"Unknown schema namespace: {kind}")


class SchemaBuilder:
    """Incremental builder for ToolSchema.

    Example::

        schema = (
            create_schema()
            .add_input("city", string_field().required())
            .add_config("api_key", api_key_field().required())
            .build()
        )
    """

    def __init__(self) -> None:
        """Initialize an empty schema builder."""
        self._input: dict[str, FieldDefinition] = {}
        self._config: dict[str, FieldDefinition] = {}
        self._rules: list[CrossFieldRule] = []

    @staticmethod
    def _definition(field: FieldDefinition | FieldBuilder) -> FieldDefinition:
        return field.build() if isinstance(field, FieldBuilder) else field

    def add_input(self, name: str, field: FieldDefinition | FieldBuilder) -> "SchemaBuilder":
        self._input[name] = self._definition(field)
        return self

    def add_config(self, name: str, field: FieldDefinition | FieldBuilder) -> "SchemaBuilder":
        self._config[name] = self._definition(field)
        return self

    def add_rule(self, rule: CrossFieldRule | Mapping[str, Any]) -> "SchemaBuilder":
        """Add a cross-field rule (a CrossFieldRule or its mapping form).

        Raises:
            SchemaDefinitionError: If the rule's condition or paths are malformed
        """
        if not isinstance(rule, CrossFieldRule):
            rule = CrossFieldRule.model_validate(rule)
        self._rules.append(rule)
        return self

    def build(self) -> ToolSchema:
        """Freeze the accumulated declarations into a ToolSchema."""
        return ToolSchema(
            input=dict(self._input),
            config=dict(self._config),
            rules=tuple(self._rules),
        )


def create_schema() -> SchemaBuilder:
    return SchemaBuilder()
