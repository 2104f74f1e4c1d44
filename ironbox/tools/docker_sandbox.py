"""
The ``docker_sandbox`` tool.

Validates a JSON payload, runs it through a SandboxExecutor and packages the
outcome as a ToolResult. The payload can only choose the language, the code
and the timeout; every isolation setting is fixed by the executor.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, create_model

from ..core.exceptions import InputError
from ..core.logging import get_logger
from ..sandbox.cancellation import CancelScope
from ..sandbox.executor import DEFAULT_MAX_TIMEOUT_SECONDS, ExecutionRequest, SandboxExecutor
from .base import ToolDefinition, ToolResult

logger = get_logger(__name__)

TOOL_NAME = "docker_sandbox"
TOOL_DESCRIPTION = (
    "Executes code in a secure, isolated Docker sandbox container with no network access"
)

SandboxLanguage = Literal["python", "bash", "javascript"]


class SandboxInput(BaseModel):
    """Arguments accepted by the docker_sandbox tool."""

    model_config = ConfigDict(extra="forbid")

    language: SandboxLanguage = Field(description="Programming language to execute")
    code: str = Field(min_length=1, description="Source code to execute")
    timeout: StrictInt | None = Field(
        default=None,
        le=DEFAULT_MAX_TIMEOUT_SECONDS,
        description="Execution timeout in seconds (default 10)",
    )


@lru_cache(maxsize=8)
def input_model(max_timeout: int = DEFAULT_MAX_TIMEOUT_SECONDS) -> type[SandboxInput]:
    """SandboxInput with the timeout ceiling set to ``max_timeout``."""
    if max_timeout == DEFAULT_MAX_TIMEOUT_SECONDS:
        return SandboxInput
    return create_model(
        "SandboxInput",
        __base__=SandboxInput,
        timeout=(
            StrictInt | None,
            Field(
                default=None,
                le=max_timeout,
                description="Execution timeout in seconds (default 10)",
            ),
        ),
    )


def parse_arguments(
    arguments: str | bytes | dict[str, Any], max_timeout: int = DEFAULT_MAX_TIMEOUT_SECONDS
) -> SandboxInput:
    """
    Validate a raw tool payload.

    Args:
        arguments: JSON text or an already-decoded mapping
        max_timeout: Largest timeout the caller may request

    Returns:
        Validated SandboxInput

    Raises:
        InputError: The payload is not valid JSON or does not match the schema
    """
    model = input_model(int(max_timeout))
    try:
        if isinstance(arguments, (str, bytes, bytearray)):
            return model.model_validate_json(arguments)
        return model.model_validate(arguments)
    except ValidationError as exc:
        raise InputError(f"invalid arguments: {_describe(exc)}") from exc


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


class DockerSandboxTool:
    """Tool surface over a SandboxExecutor."""

    name = TOOL_NAME
    description = TOOL_DESCRIPTION

    def __init__(self, executor: SandboxExecutor):
        self.executor = executor
        self.max_timeout = int(executor.max_timeout)

    def definition(self) -> ToolDefinition:
        schema = input_model(self.max_timeout).model_json_schema()
        schema.pop("title", None)
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=schema,
        )

    def call(
        self,
        arguments: str | bytes | dict[str, Any],
        cancel_scope: CancelScope | None = None,
    ) -> ToolResult:
        """
        Run the code described by ``arguments``.

        A guest program that exits non-zero still returns a ToolResult; its
        exit code is in the metadata.

        Raises:
            InputError: Invalid payload; nothing was started
            InfrastructureError: The sandbox could not produce a result
        """
        payload = parse_arguments(arguments, self.max_timeout)
        request = ExecutionRequest(
            language=payload.language,
            code=payload.code,
            timeout_seconds=payload.timeout or 0,
        )
        result = self.executor.execute(request, cancel_scope=cancel_scope)

        metadata = {
            "language": result.language,
            "image": result.image,
            "exit_code": result.exit_code_text,
        }
        if result.cleanup_error:
            metadata["cleanup_error"] = result.cleanup_error
        return ToolResult(data=result.output, metadata=metadata)


def result_to_json(result: ToolResult) -> str:
    """Serialize a ToolResult for transports that carry plain text."""
    return json.dumps(result.to_dict(), indent=2)
