"""
Sandboxed code execution.

``SandboxExecutor`` drives one guest program through the container
lifecycle::

    resolve -> ensure image -> create -> start -> wait -> collect logs -> remove

Failures before a container exists propagate immediately. Once a container
has been created it is held in a lease and removed exactly once, whatever
happens afterwards. A guest program that exits non-zero produces a normal
``ExecutionResult``; only a failure of the machinery raises.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ..core.exceptions import (
    CleanupError,
    CodeTooLargeError,
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
    LogRetrievalError,
)
from ..core.logging import get_logger
from .cancellation import CancelledScopeError, CancelScope, wait_with_cancellation
from .languages import LanguageCatalog, build_container_command
from .limits import (
    DEFAULT_TIMEOUT_SECONDS,
    ResourceLimits,
    SandboxSpec,
    build_sandbox_spec,
    resolve_timeout,
)
from .runtimes.base import ContainerRuntime

logger = get_logger(__name__)

DEFAULT_MAX_TIMEOUT_SECONDS = 30
DEFAULT_MAX_CODE_BYTES = 65536


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """One guest program to run. ``timeout_seconds <= 0`` means the default."""

    language: str
    code: str
    timeout_seconds: int = 0


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of a run that reached the end of the lifecycle.

    ``exit_code`` is None when the engine reported the container stopped
    without a status code.
    """

    output: str
    exit_code: int | None
    language: str
    image: str
    duration_seconds: float = 0.0
    cleanup_error: str | None = None

    @property
    def exit_code_text(self) -> str:
        return "unknown" if self.exit_code is None else str(self.exit_code)


@dataclass(slots=True)
class ContainerLease:
    """A created container that must be removed exactly once."""

    runtime: ContainerRuntime
    handle: str
    released: bool = False
    cleanup_error: str | None = None

    def release(self) -> None:
        """Force-remove the container. Later calls are no-ops.

        Raises:
            CleanupError: The engine refused the removal.
        """
        if self.released:
            return
        self.released = True
        try:
            self.runtime.remove_container(self.handle)
        except ContainerRuntimeError as exc:
            error = CleanupError(self.handle, exc)
            self.cleanup_error = str(error)
            raise error from exc


@dataclass(frozen=True, slots=True)
class _Plan:
    language: str
    image: str
    timeout: float
    spec: SandboxSpec


class SandboxExecutor:
    """Runs guest programs in disposable hardened containers."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        *,
        catalog: LanguageCatalog | None = None,
        limits: ResourceLimits | None = None,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_timeout: float = DEFAULT_MAX_TIMEOUT_SECONDS,
        max_code_bytes: int = DEFAULT_MAX_CODE_BYTES,
    ):
        self.runtime = runtime
        self.catalog = catalog or LanguageCatalog()
        self.limits = limits or ResourceLimits()
        self.default_timeout = default_timeout
        self.max_timeout = max_timeout
        self.max_code_bytes = max_code_bytes

    @classmethod
    def from_config(cls, runtime: ContainerRuntime, sandbox_config: Any = None) -> SandboxExecutor:
        """Build an executor from a SandboxConfig-like object."""
        if sandbox_config is None:
            return cls(runtime)
        return cls(
            runtime,
            catalog=LanguageCatalog(getattr(sandbox_config, "images", None)),
            limits=ResourceLimits.from_config(sandbox_config),
            default_timeout=sandbox_config.default_timeout_seconds,
            max_timeout=sandbox_config.max_timeout_seconds,
            max_code_bytes=sandbox_config.max_code_bytes,
        )

    def execute(
        self, request: ExecutionRequest, cancel_scope: CancelScope | None = None
    ) -> ExecutionResult:
        """
        Run one guest program to completion or timeout.

        Args:
            request: Language, code and optional timeout
            cancel_scope: Caller cancellation; checked before any container
                work and raced against the wait. Never applied to cleanup.

        Returns:
            ExecutionResult with the guest's output and exit code

        Raises:
            InputError: The request was rejected; nothing was started.
            InfrastructureError: The machinery failed. The container, if one
                was created, has already been removed.
        """
        started = time.perf_counter()
        plan = self._plan(request)

        if cancel_scope is not None and cancel_scope.cancelled:
            raise ExecutionCancelledError()

        logger.debug("Ensuring image %s", plan.image)
        try:
            self.runtime.ensure_image(plan.image)
        except ContainerRuntimeError as exc:
            logger.error("Image step failed for %s: %s", plan.image, exc)
            raise ImagePullError(plan.image, exc) from exc

        try:
            handle = self.runtime.create_container(plan.spec)
        except ContainerRuntimeError as exc:
            logger.error("Container create failed: %s", exc)
            raise ContainerCreateError(exc) from exc
        logger.debug("Created container %s for %s", handle[:12], plan.language)

        with self._lease(handle) as lease:
            output, exit_code = self._run(handle, plan.timeout, cancel_scope)

        duration = time.perf_counter() - started
        logger.debug(
            "Container %s finished with exit code %s in %.2fs",
            handle[:12],
            exit_code,
            duration,
        )
        return ExecutionResult(
            output=output,
            exit_code=exit_code,
            language=plan.language,
            image=plan.image,
            duration_seconds=duration,
            cleanup_error=lease.cleanup_error,
        )

    def _plan(self, request: ExecutionRequest) -> _Plan:
        spec_language = self.catalog.resolve(request.language)

        code = request.code
        if not isinstance(code, str) or not code:
            raise EmptyCodeError()
        try:
            size = len(code.encode("utf-8"))
        except UnicodeEncodeError as exc:
            raise InputError("code must be valid UTF-8 text") from exc
        if size > self.max_code_bytes:
            raise CodeTooLargeError(size, self.max_code_bytes)

        requested = request.timeout_seconds
        if requested is not None and not isinstance(requested, (int, float)):
            raise InputError(f"timeout must be an integer, got {requested!r}")
        if requested is not None and requested > self.max_timeout:
            raise InputError(
                f"timeout {requested}s exceeds the maximum of {self.max_timeout:g}s"
            )
        timeout = resolve_timeout(requested, default=self.default_timeout)

        command = build_container_command(spec_language.name, code, self.catalog)
        return _Plan(
            language=spec_language.name,
            image=spec_language.image,
            timeout=timeout,
            spec=build_sandbox_spec(spec_language.image, command, self.limits),
        )

    def _run(
        self, handle: str, timeout: float, cancel_scope: CancelScope | None
    ) -> tuple[str, int | None]:
        try:
            self.runtime.start_container(handle)
        except ContainerRuntimeError as exc:
            logger.error("Container %s failed to start: %s", handle[:12], exc)
            raise ContainerStartError(exc) from exc

        wait_scope = CancelScope(timeout=timeout, parent=cancel_scope)
        wait_error: ContainerWaitError | None = None
        wait_cause: BaseException | None = None
        exit_code: int | None = None
        try:
            exit_code = wait_with_cancellation(
                lambda: self.runtime.wait_container(handle, wait_scope), wait_scope
            )
        except CancelledScopeError as exc:
            wait_cause = exc
            if exc.reason == "timeout":
                wait_error = ExecutionTimeoutError(timeout)
            else:
                wait_error = ExecutionCancelledError()
        except ContainerRuntimeError as exc:
            wait_cause = exc
            wait_error = ContainerWaitError(exc)

        # Logs are collected even after a failed wait so partial output survives.
        try:
            output = self.runtime.get_logs(handle)
        except ContainerRuntimeError as exc:
            if wait_error is not None:
                logger.warning("Log collection for %s also failed: %s", handle[:12], exc)
                logger.error("Wait failed for %s: %s", handle[:12], wait_error)
                raise wait_error from wait_cause
            logger.error("Log collection for %s failed: %s", handle[:12], exc)
            raise LogRetrievalError(exc) from exc

        if wait_error is not None:
            wait_error.partial_output = output
            logger.error("Wait failed for %s: %s", handle[:12], wait_error)
            raise wait_error from wait_cause

        return output, exit_code

    @contextmanager
    def _lease(self, handle: str) -> Iterator[ContainerLease]:
        lease = ContainerLease(runtime=self.runtime, handle=handle)
        try:
            yield lease
        except InfrastructureError as exc:
            exc.cleanup_error = self._release(lease)
            raise
        except BaseException:
            self._release(lease)
            raise
        else:
            self._release(lease)

    @staticmethod
    def _release(lease: ContainerLease) -> str | None:
        # Removal failures are reported, never raised over the execution outcome.
        try:
            lease.release()
        except CleanupError as exc:
            logger.warning("%s", exc)
        else:
            logger.debug("Removed container %s", lease.handle[:12])
        return lease.cleanup_error
