"""
MCP Server for ironbox.

Exposes the registered tools (``docker_sandbox``) to MCP clients such as
desktop assistants and editor extensions.

Usage:
    # Start MCP server
    python -m ironbox.mcp.server

    # Or via CLI
    ironbox serve
"""

from .sandbox_server import SandboxServer, ServerConfig, ToolCallResult, create_sandbox_server

__all__ = [
    "SandboxServer",
    "ServerConfig",
    "ToolCallResult",
    "create_sandbox_server",
]
