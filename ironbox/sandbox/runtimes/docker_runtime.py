"""
Docker runtime for sandbox execution.
"""

from __future__ import annotations

from typing import Any

import docker
from docker.errors import DockerException, ImageNotFound
from requests.exceptions import RequestException

from ...core.exceptions import ConfigurationError, ContainerRuntimeError
from ...core.logging import get_logger
from ..cancellation import CancelScope
from ..limits import SandboxSpec

logger = get_logger(__name__)

# Extra seconds the engine-side wait may run past the executor deadline, so
# the executor's own timeout fires first and the worker thread still ends.
_WAIT_GRACE_SECONDS = 5.0

_ENGINE_ERRORS = (DockerException, RequestException)


class DockerContainerRuntime:
    """Runs sandbox containers on a Docker Engine through the ``docker`` SDK.

    One client connection is opened per runtime and closed by ``close()``.
    The isolation settings from ``SandboxSpec`` are passed through as-is:
    network off at both config and host level, swap equal to memory, PID
    ceiling, read-only root with a noexec tmpfs, all capabilities dropped,
    no-new-privileges, no volumes, unprivileged.
    """

    name = "docker"

    def __init__(self, client: Any = None):
        self._client = client if client is not None else _connect()

    @classmethod
    def from_config(cls, sandbox_config: Any = None) -> DockerContainerRuntime:
        docker_cfg = getattr(sandbox_config, "docker", None)
        base_url = getattr(docker_cfg, "base_url", None)
        timeout = int(getattr(docker_cfg, "client_timeout_seconds", 60) or 60)
        return cls(client=_connect(base_url=base_url, timeout=timeout))

    def __enter__(self) -> DockerContainerRuntime:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def ensure_image(self, image: str) -> None:
        try:
            self._client.images.get(image)
            return
        except ImageNotFound:
            logger.info("Pulling image %s", image)
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc

        try:
            self._client.images.pull(image)
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc

    def create_container(self, spec: SandboxSpec) -> str:
        try:
            container = self._client.containers.create(
                image=spec.image,
                command=list(spec.command),
                network_disabled=spec.network_disabled,
                network_mode="none",
                mem_limit=spec.memory_limit_bytes,
                memswap_limit=spec.memory_swap_bytes,
                nano_cpus=spec.nano_cpus,
                pids_limit=spec.pids_limit,
                read_only=spec.readonly_rootfs,
                tmpfs=dict(spec.tmpfs_mounts),
                cap_drop=list(spec.cap_drop),
                security_opt=list(spec.security_opt),
                privileged=spec.privileged,
                auto_remove=False,
                labels={"ironbox.managed": "true"},
            )
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc
        return container.id

    def start_container(self, handle: str) -> None:
        try:
            self._client.api.start(handle)
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc

    def wait_container(self, handle: str, scope: CancelScope) -> int | None:
        remaining = scope.remaining()
        timeout = None if remaining is None else remaining + _WAIT_GRACE_SECONDS
        try:
            status = self._client.api.wait(handle, timeout=timeout, condition="not-running")
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc

        error = (status or {}).get("Error") or {}
        if isinstance(error, dict) and error.get("Message"):
            raise ContainerRuntimeError(error["Message"])

        code = (status or {}).get("StatusCode")
        return int(code) if code is not None else None

    def get_logs(self, handle: str) -> str:
        try:
            raw = self._client.api.logs(handle, stdout=True, stderr=True, stream=False)
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return str(raw or "")

    def remove_container(self, handle: str) -> None:
        try:
            self._client.api.remove_container(handle, v=True, force=True)
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc

    def image_present(self, image: str) -> bool:
        try:
            self._client.images.get(image)
        except ImageNotFound:
            return False
        except _ENGINE_ERRORS as exc:
            raise ContainerRuntimeError(str(exc)) from exc
        return True

    def check_health(self) -> tuple[bool, str]:
        """Return (healthy, detail) for daemon availability."""
        try:
            self._client.ping()
            version = self._client.version().get("Version") or "unknown"
        except _ENGINE_ERRORS as exc:
            detail = str(exc).strip() or "docker daemon unavailable"
            return False, detail
        return True, f"docker daemon ready (server {version})"

    def close(self) -> None:
        try:
            self._client.close()
        except _ENGINE_ERRORS as exc:
            logger.warning("Failed to close docker client: %s", exc)


def _connect(base_url: str | None = None, timeout: int = 60) -> Any:
    try:
        if base_url:
            return docker.DockerClient(base_url=base_url, timeout=timeout)
        return docker.from_env(timeout=timeout)
    except DockerException as exc:
        raise ConfigurationError(
            f"Cannot connect to Docker: {exc}. Make sure the Docker daemon is running."
        ) from exc
