"""
Sandboxed code execution in disposable containers.
"""

from .cancellation import CancelledScopeError, CancelScope, wait_with_cancellation
from .executor import (
    ContainerLease,
    ExecutionRequest,
    ExecutionResult,
    SandboxExecutor,
)
from .languages import BUILTIN_LANGUAGES, LanguageCatalog, LanguageSpec, build_container_command
from .limits import ResourceLimits, SandboxSpec, build_sandbox_spec, resolve_timeout
from .runtimes import (
    ContainerRuntime,
    DockerContainerRuntime,
    RuntimeDoctorCheck,
    run_runtime_doctor,
)

__all__ = [
    "BUILTIN_LANGUAGES",
    "CancelScope",
    "CancelledScopeError",
    "ContainerLease",
    "ContainerRuntime",
    "DockerContainerRuntime",
    "ExecutionRequest",
    "ExecutionResult",
    "LanguageCatalog",
    "LanguageSpec",
    "ResourceLimits",
    "RuntimeDoctorCheck",
    "SandboxExecutor",
    "SandboxSpec",
    "build_container_command",
    "build_sandbox_spec",
    "resolve_timeout",
    "run_runtime_doctor",
    "wait_with_cancellation",
]
