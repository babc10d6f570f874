"""ToolContract: tool definition with its validation schema."""

from pydantic import BaseModel, ConfigDict, Field

from toolspine.kernel.validation.schema import ToolSchema


class ToolContract(BaseModel):
    """Tool definition with schema and execution controls.

    The HTTP layer looks a contract up by name and version and validates
    every request against ``tool_schema`` before the tool runs.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    version: str  # SemVer string
    description: str = ""
    tool_schema: ToolSchema = Field(default_factory=ToolSchema, alias="schema")
    capabilities: tuple[str, ...] = ()
    timeout_seconds: int = 30

    @property
    def requires_config(self) -> bool:
        """True when any config field is required."""
        return any(field.required for field in self.tool_schema.config.values())
