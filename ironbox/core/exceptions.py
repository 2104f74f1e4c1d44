"""
Custom exceptions for ironbox.

Input errors are rejected before any container exists. Infrastructure errors
mean the execution machinery failed to produce a result. A guest program that
exits non-zero is not an error at all.
"""


class IronboxError(Exception):
    """Base exception for ironbox errors."""


class ConfigurationError(IronboxError):
    """Error in configuration."""


# Input Errors


class InputError(IronboxError):
    """Malformed tool payload or execution request."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message
        self.recovery_hint = "Check the language, code and timeout fields and try again."


class UnsupportedLanguageError(InputError):
    """Requested language is not in the catalog."""

    def __init__(self, language: str, supported: list[str] | None = None):
        super().__init__(f"unsupported language: {language}")
        self.language = language
        self.supported = list(supported or [])
        if self.supported:
            self.recovery_hint = f"Use one of: {', '.join(self.supported)}."


class EmptyCodeError(InputError):
    """No source code was supplied."""

    def __init__(self):
        super().__init__("code must be a non-empty string")


class CodeTooLargeError(InputError):
    """Source code exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"code is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit
        self.recovery_hint = "Split the program or raise sandbox.max_code_bytes."


# Infrastructure Errors


class InfrastructureError(IronboxError):
    """The execution machinery failed; no result could be produced.

    Attributes:
        step: Lifecycle step that failed (image, create, start, wait, logs).
        partial_output: Logs collected before the failure, if any.
        cleanup_error: Description of a failed container removal, if any.
    """

    step = "execution"

    def __init__(self, message: str, *, partial_output: str = ""):
        super().__init__(message)
        self.partial_output = partial_output
        self.cleanup_error: str | None = None
        self.user_message = message
        self.recovery_hint = "Check that the container engine is running and reachable."


class ImagePullError(InfrastructureError):
    """Image could not be made available locally."""

    step = "image"

    def __init__(self, image: str, reason: object):
        super().__init__(f"failed to pull image {image}: {reason}")
        self.image = image
        self.recovery_hint = f"Try pulling it manually: docker pull {image}"


class ContainerCreateError(InfrastructureError):
    """Container could not be created."""

    step = "create"

    def __init__(self, reason: object):
        super().__init__(f"failed to create container: {reason}")


class ContainerStartError(InfrastructureError):
    """Container was created but could not be started."""

    step = "start"

    def __init__(self, reason: object):
        super().__init__(f"failed to start container: {reason}")


class ContainerWaitError(InfrastructureError):
    """Waiting for the container to exit failed."""

    step = "wait"

    def __init__(self, reason: object, *, partial_output: str = ""):
        super().__init__(f"failed to wait for container: {reason}", partial_output=partial_output)


class ExecutionTimeoutError(ContainerWaitError):
    """Code execution exceeded its time limit."""

    def __init__(self, timeout: float, *, partial_output: str = ""):
        super().__init__(
            f"execution exceeded {timeout:g}s timeout", partial_output=partial_output
        )
        self.timeout = timeout
        self.user_message = f"Code execution took longer than {timeout:g} seconds."
        self.recovery_hint = "Pass a larger timeout or make the program finish sooner."


class ExecutionCancelledError(ContainerWaitError):
    """Caller cancelled the execution while it was running."""

    def __init__(self, *, partial_output: str = ""):
        super().__init__("execution cancelled", partial_output=partial_output)
        self.recovery_hint = "Run the code again if the cancellation was unintended."


class LogRetrievalError(InfrastructureError):
    """Container logs could not be read."""

    step = "logs"

    def __init__(self, reason: object):
        super().__init__(f"failed to retrieve logs: {reason}")


# Cleanup Errors


class CleanupError(IronboxError):
    """Container removal failed."""

    def __init__(self, handle: str, reason: object):
        super().__init__(f"failed to remove container {handle}: {reason}")
        self.handle = handle
        self.user_message = f"Container {handle[:12]} could not be removed."
        self.recovery_hint = f"Remove it manually: docker rm -f -v {handle[:12]}"


# Runtime Errors


class ContainerRuntimeError(IronboxError):
    """Raised by container runtimes for any engine failure.

    The executor never lets this escape; it is wrapped into the
    InfrastructureError subclass for the failing step.
    """


def format_error_message(error: Exception) -> str:
    """
    Format an error message for display to user.

    Args:
        error: Exception to format

    Returns:
        Formatted error message with recovery hints
    """
    if isinstance(error, IronboxError) and hasattr(error, "user_message"):
        message = error.user_message
        if getattr(error, "recovery_hint", None):
            message += f"\n\nHint: {error.recovery_hint}"
        return message
    return str(error)
