"""ToolRegistry: Central registry for tool contracts."""

import logging
from typing import Any, Mapping

from toolspine.kernel.executor.tool_contract import ToolContract
from toolspine.kernel.validation.errors import ToolSpineError
from toolspine.kernel.validation.executor import ValidationExecutor
from toolspine.kernel.validation.result import ValidationOptions, ValidationResult

logger = logging.getLogger(__name__)


class ToolNotFoundError(ToolSpineError):
    """Raised when a requested tool is not found in the registry.

    Attributes:
        tool_name: Name of the tool that was not found
        version: Version of the tool that was not found
    """

    def __init__(self, tool_name: str, version: str) -> None:
        """Initialize tool not found error.

        Args:
            tool_name: Name of the tool that was not found
            version: Version of the tool that was not found
        """
        super().__init__(f"Tool '{tool_name}' version '{version}' not found in registry")
        self.tool_name = tool_name
        self.version = version


class ToolRegistry:
    """Central registry for tool contracts.

    Provides:
    - Registration of tools with name and version
    - Lookup by name and version
    - Validation of tool requests against the registered schema
    """

    def __init__(self, executor: ValidationExecutor | None = None) -> None:
        """Initialize tool registry.

        Args:
            executor: Validation engine shared by every registered tool
        """
        # Storage: {(name, version): ToolContract}
        self._tools: dict[tuple[str, str], ToolContract] = {}
        self.executor = executor or ValidationExecutor()

    def register(self, tool: ToolContract) -> None:
        """Register a tool in the registry.

        Args:
            tool: ToolContract to register

        Raises:
            ValueError: If tool with same name/version already registered
        """
        key = (tool.name, tool.version)

        if key in self._tools:
            raise ValueError(f"Tool '{tool.name}' version '{tool.version}' already registered")

        self._tools[key] = tool
        logger.debug("Registered tool %s@%s", tool.name, tool.version)

    def lookup(self, name: str, version: str) -> ToolContract:
        """Look up a tool by name and version.

        Args:
            name: Tool name
            version: Tool version (SemVer string)

        Returns:
            ToolContract for the requested tool

        Raises:
            ToolNotFoundError: If tool not found in registry
        """
        key = (name, version)

        if key not in self._tools:
            raise ToolNotFoundError(name, version)

        return self._tools[key]

    def list_tools(self) -> dict[tuple[str, str], ToolContract]:
        """List all registered tools.

        Returns:
            Dictionary mapping (name, version) to ToolContract
        """
        return self._tools.copy()

    def validate(
        self,
        name: str,
        version: str,
        data: Mapping[str, Any],
        options: ValidationOptions | None = None,
    ) -> ValidationResult:
        """Validate a tool request (``{"input": ..., "config": ...}``).

        Args:
            name: Tool name
            version: Tool version
            data: Raw input and config of the request
            options: Validation options

        Returns:
            ValidationResult of input, config and cross-field validation

        Raises:
            ToolNotFoundError: If tool not found in registry
        """
        tool = self.lookup(name, version)
        return self.executor.validate_tool_schema(data, tool.tool_schema, options)
