"""
Tools exposed to function-calling clients.
"""

from .base import Tool, ToolDefinition, ToolResult
from .docker_sandbox import (
    TOOL_DESCRIPTION,
    TOOL_NAME,
    DockerSandboxTool,
    SandboxInput,
    parse_arguments,
)
from .registry import ToolRegistry

__all__ = [
    "DockerSandboxTool",
    "SandboxInput",
    "TOOL_DESCRIPTION",
    "TOOL_NAME",
    "Tool",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    "parse_arguments",
]
