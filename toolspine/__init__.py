"""ToolSpine: declarative schema and validation engine for tools."""

__version__ = "0.1.0"
