"""
Model Context Protocol surface for ironbox.
"""

from .server import SandboxServer, ServerConfig, create_sandbox_server

__all__ = [
    "SandboxServer",
    "ServerConfig",
    "create_sandbox_server",
]
