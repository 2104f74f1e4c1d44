"""
Container runtime contract for sandbox execution.
"""

from typing import Protocol

from ..cancellation import CancelScope
from ..limits import SandboxSpec


class ContainerRuntime(Protocol):
    """Operations the executor needs from a container engine.

    Every method raises ``ContainerRuntimeError`` on engine failure.
    """

    name: str

    def ensure_image(self, image: str) -> None:
        """Make ``image`` available locally, pulling it if absent."""

    def create_container(self, spec: SandboxSpec) -> str:
        """Create (but do not start) a container and return its handle."""

    def start_container(self, handle: str) -> None:
        """Start a created container."""

    def wait_container(self, handle: str, scope: CancelScope) -> int | None:
        """Block until the container stops; return its exit code, or None if unreported."""

    def get_logs(self, handle: str) -> str:
        """Return combined stdout and stderr as text."""

    def remove_container(self, handle: str) -> None:
        """Force-remove the container and its anonymous volumes."""

    def close(self) -> None:
        """Release the engine connection."""
