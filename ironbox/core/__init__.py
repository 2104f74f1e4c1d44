"""
Core functionality for ironbox.
"""

from .config import (
    ConfigManager,
    IronboxConfig,
    LoggingConfig,
    SandboxConfig,
    SandboxDockerConfig,
)
from .exceptions import (
    CleanupError,
    CodeTooLargeError,
    ConfigurationError,
    ContainerCreateError,
    ContainerRuntimeError,
    ContainerStartError,
    ContainerWaitError,
    EmptyCodeError,
    ExecutionCancelledError,
    ExecutionTimeoutError,
    ImagePullError,
    InfrastructureError,
    InputError,
    IronboxError,
    LogRetrievalError,
    UnsupportedLanguageError,
    format_error_message,
)
from .logging import get_logger, setup_logging

__all__ = [
    "CleanupError",
    "CodeTooLargeError",
    "ConfigManager",
    "ConfigurationError",
    "ContainerCreateError",
    "ContainerRuntimeError",
    "ContainerStartError",
    "ContainerWaitError",
    "EmptyCodeError",
    "ExecutionCancelledError",
    "ExecutionTimeoutError",
    "ImagePullError",
    "InfrastructureError",
    "InputError",
    "IronboxConfig",
    "IronboxError",
    "LogRetrievalError",
    "LoggingConfig",
    "SandboxConfig",
    "SandboxDockerConfig",
    "UnsupportedLanguageError",
    "format_error_message",
    "get_logger",
    "setup_logging",
]
