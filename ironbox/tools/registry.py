"""
Registry of tools exposed to clients.
"""

from __future__ import annotations

from typing import Any

from .base import Tool


class ToolRegistry:
    """Tools keyed by name, in registration order."""

    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Add a tool. Raises ValueError for None or a name already taken."""
        if tool is None:
            raise ValueError("Cannot register None as a tool")
        name = getattr(tool, "name", "")
        if not name:
            raise ValueError("Tool must have a non-empty name")
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._tools[name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        """MCP schemas for every registered tool."""
        return [tool.definition().to_mcp_schema() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
