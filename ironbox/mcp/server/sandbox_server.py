"""
ironbox MCP Server implementation.

Speaks JSON-RPC 2.0 over line-delimited stdio and dispatches ``tools/call``
to the tool registry. Tool calls block on a container, so each one runs on a
worker thread and several can be in flight at once.
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import dataclass
from typing import Any

from ... import __version__
from ...core.config import ConfigManager, IronboxConfig
from ...core.exceptions import (
    ConfigurationError,
    InfrastructureError,
    IronboxError,
    format_error_message,
)
from ...core.logging import get_logger, setup_logging
from ...sandbox.cancellation import CancelScope
from ...sandbox.executor import SandboxExecutor
from ...sandbox.runtimes.docker_runtime import DockerContainerRuntime
from ...tools.docker_sandbox import DockerSandboxTool
from ...tools.registry import ToolRegistry

logger = get_logger(__name__)

PROTOCOL_VERSION = "2024-11-05"


@dataclass
class ServerConfig:
    """Configuration for the ironbox MCP Server."""

    name: str = "ironbox"
    version: str = __version__
    transport: str = "stdio"


@dataclass
class ToolCallResult:
    """Result of a tool call."""

    success: bool
    content: Any
    error: str | None = None

    def to_mcp_response(self) -> dict[str, Any]:
        """Convert to MCP response format."""
        if self.success:
            return {
                "content": [
                    {
                        "type": "text",
                        "text": json.dumps(self.content, indent=2)
                        if isinstance(self.content, (dict, list))
                        else str(self.content),
                    }
                ],
            }
        return {
            "isError": True,
            "content": [
                {
                    "type": "text",
                    "text": self.error or "Unknown error",
                }
            ],
        }


class SandboxServer:
    """
    MCP Server for ironbox.

    Handles MCP protocol messages and dispatches tool calls to the
    registered tools.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: ServerConfig | None = None,
        runtime: Any = None,
    ):
        self.config = config or ServerConfig()
        self.registry = registry
        self._runtime = runtime
        self._write_lock: asyncio.Lock | None = None

    async def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle MCP initialize request."""
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {},
            },
            "serverInfo": {
                "name": self.config.name,
                "version": self.config.version,
            },
        }

    async def handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle tools/list request."""
        return {
            "tools": self.registry.definitions(),
        }

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle tools/call request."""
        tool_name = params.get("name", "")
        arguments = params.get("arguments") or {}

        tool = self.registry.get(tool_name)
        if tool is None:
            return ToolCallResult(
                success=False,
                content=None,
                error=f"Unknown tool: {tool_name}",
            ).to_mcp_response()

        scope = CancelScope()
        try:
            result = await asyncio.to_thread(tool.call, arguments, scope)
        except asyncio.CancelledError:
            scope.cancel()
            raise
        except IronboxError as e:
            return ToolCallResult(
                success=False,
                content=None,
                error=_describe_failure(e),
            ).to_mcp_response()
        except Exception as e:
            logger.exception("Tool %s failed unexpectedly", tool_name)
            return ToolCallResult(success=False, content=None, error=str(e)).to_mcp_response()

        return ToolCallResult(success=True, content=result.to_dict()).to_mcp_response()

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Handle an incoming MCP message."""
        method = message.get("method", "")
        params = message.get("params") or {}
        msg_id = message.get("id")

        handlers = {
            "initialize": self.handle_initialize,
            "ping": self.handle_ping,
            "tools/list": self.handle_tools_list,
            "tools/call": self.handle_tools_call,
        }

        handler = handlers.get(method)
        if handler is None:
            if msg_id is not None:
                return {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "error": {
                        "code": -32601,
                        "message": f"Method not found: {method}",
                    },
                }
            return None

        try:
            result = await handler(params)
            if msg_id is not None:
                return {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "result": result,
                }
            return None
        except Exception as e:
            logger.exception("Failed to handle %s", method)
            if msg_id is not None:
                return {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "error": {
                        "code": -32603,
                        "message": str(e),
                    },
                }
            return None

    async def _dispatch(self, line: bytes, writer: asyncio.StreamWriter) -> None:
        try:
            message = json.loads(line.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring malformed message")
            return
        if not isinstance(message, dict):
            logger.warning("Ignoring non-object message")
            return

        response = await self.handle_message(message)
        if response is None:
            return

        async with self._write_lock:
            writer.write((json.dumps(response) + "\n").encode("utf-8"))
            await writer.drain()

    async def run_stdio(self) -> None:
        """Run the server using stdio transport."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)

        writer_transport, writer_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        writer = asyncio.StreamWriter(writer_transport, writer_protocol, reader, loop)
        self._write_lock = asyncio.Lock()

        pending: set[asyncio.Task] = set()
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                if not line.strip():
                    continue
                task = asyncio.create_task(self._dispatch(line, writer))
                pending.add(task)
                task.add_done_callback(pending.discard)
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        finally:
            for task in pending:
                task.cancel()

    async def run(self) -> None:
        """Run the MCP server."""
        logger.info("Starting %s MCP server (%s)", self.config.name, self.config.transport)
        try:
            if self.config.transport == "stdio":
                await self.run_stdio()
            else:
                raise NotImplementedError(f"Transport not implemented: {self.config.transport}")
        finally:
            self.close()

    def close(self) -> None:
        if self._runtime is not None:
            self._runtime.close()
            self._runtime = None


def _describe_failure(error: IronboxError) -> str:
    message = format_error_message(error)
    if isinstance(error, InfrastructureError):
        if error.cleanup_error:
            message += f"\n\nCleanup: {error.cleanup_error}"
        if error.partial_output:
            message += f"\n\nPartial output:\n{error.partial_output}"
    return message


def create_sandbox_server(
    config: IronboxConfig | None = None,
    runtime: Any = None,
    server_config: ServerConfig | None = None,
) -> SandboxServer:
    """
    Create an ironbox MCP Server with the docker_sandbox tool registered.

    Args:
        config: Loaded configuration (defaults when None)
        runtime: Container runtime; a Docker runtime is connected when None
        server_config: Server identity and transport

    Returns:
        SandboxServer that owns and closes the runtime
    """
    config = config or IronboxConfig()
    if runtime is None:
        runtime = DockerContainerRuntime.from_config(config.sandbox)
    executor = SandboxExecutor.from_config(runtime, config.sandbox)
    registry = ToolRegistry([DockerSandboxTool(executor)])
    return SandboxServer(registry, config=server_config, runtime=runtime)


def main(config_path: str | None = None) -> int:
    """Main entry point for the MCP server."""
    try:
        config = ConfigManager(config_path=config_path).load_config()
        setup_logging(config.logging.level, rich=False)
        server = create_sandbox_server(config)
    except ConfigurationError as e:
        sys.stderr.write(f"Error: {format_error_message(e)}\n")
        return 1

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
