"""Tests for the tool registry."""

import pytest

from ironbox.sandbox.executor import SandboxExecutor
from ironbox.tools import DockerSandboxTool, ToolDefinition, ToolRegistry, ToolResult


class _EchoTool:
    name = "echo"
    description = "Echo the arguments back"

    def definition(self):
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema={"type": "object", "properties": {}},
        )

    def call(self, arguments, cancel_scope=None):
        return ToolResult(data=str(arguments))


def test_register_and_get(make_runtime):
    tool = DockerSandboxTool(SandboxExecutor(make_runtime()))
    registry = ToolRegistry()
    registry.register(tool)

    assert registry.get("docker_sandbox") is tool
    assert registry.get("missing") is None
    assert "docker_sandbox" in registry
    assert len(registry) == 1


def test_duplicate_name_rejected():
    registry = ToolRegistry([_EchoTool()])
    with pytest.raises(ValueError, match="already registered"):
        registry.register(_EchoTool())


def test_none_rejected():
    with pytest.raises(ValueError):
        ToolRegistry().register(None)


def test_nameless_tool_rejected():
    tool = _EchoTool()
    tool.name = ""
    with pytest.raises(ValueError, match="non-empty name"):
        ToolRegistry().register(tool)


def test_list_keeps_registration_order(make_runtime):
    sandbox = DockerSandboxTool(SandboxExecutor(make_runtime()))
    echo = _EchoTool()
    registry = ToolRegistry([sandbox, echo])
    assert registry.list() == [sandbox, echo]
    assert registry.names() == ["docker_sandbox", "echo"]


def test_definitions_carry_generated_schema(make_runtime):
    registry = ToolRegistry([DockerSandboxTool(SandboxExecutor(make_runtime())), _EchoTool()])
    definitions = registry.definitions()

    assert [d["name"] for d in definitions] == ["docker_sandbox", "echo"]
    sandbox = definitions[0]
    assert sandbox["description"].startswith("Executes code in a secure, isolated Docker sandbox")
    assert set(sandbox["inputSchema"]["properties"]) == {"language", "code", "timeout"}
