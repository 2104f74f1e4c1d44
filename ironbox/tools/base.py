"""
Tool contract shared by every tool exposed to clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class ToolResult:
    """Uniform result returned by a tool call."""

    data: str
    metadata: dict[str, str] = field(default_factory=dict)
    artifacts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "metadata": dict(self.metadata),
            "artifacts": list(self.artifacts),
        }


@dataclass
class ToolDefinition:
    """Name, description and JSON input schema of a tool."""

    name: str
    description: str
    input_schema: dict[str, Any]

    def to_mcp_schema(self) -> dict[str, Any]:
        """Convert to MCP tool schema format."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    def to_function_schema(self) -> dict[str, Any]:
        """Convert to the function-calling format used by chat completion APIs."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


class Tool(Protocol):
    """Anything that can be registered in a ToolRegistry."""

    name: str
    description: str

    def definition(self) -> ToolDefinition:
        """Describe the tool for clients."""

    def call(
        self, arguments: str | bytes | dict[str, Any], cancel_scope: Any = None
    ) -> ToolResult:
        """Run the tool. Raises IronboxError subclasses on failure."""
