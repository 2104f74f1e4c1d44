"""
Timeout resolution and hardened container specs.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from ..core.exceptions import ConfigurationError

DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_MEMORY_LIMIT_BYTES = 64 * 1024 * 1024
DEFAULT_NANO_CPUS = 500_000_000
DEFAULT_PIDS_LIMIT = 64
DEFAULT_TMPFS_SIZE_MB = 16

_NANO_PER_CPU = 1_000_000_000


def resolve_timeout(requested: int | float | None, default: float = DEFAULT_TIMEOUT_SECONDS) -> float:
    """Return the effective timeout in seconds; non-positive means default."""
    if requested is None or requested <= 0:
        return float(default)
    return float(requested)


@dataclass(frozen=True, slots=True)
class ResourceLimits:
    """Operator-tunable resource ceilings."""

    memory_limit_bytes: int = DEFAULT_MEMORY_LIMIT_BYTES
    nano_cpus: int = DEFAULT_NANO_CPUS
    pids_limit: int = DEFAULT_PIDS_LIMIT
    tmpfs_size_mb: int = DEFAULT_TMPFS_SIZE_MB

    def __post_init__(self):
        for name in ("memory_limit_bytes", "nano_cpus", "pids_limit", "tmpfs_size_mb"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

    @classmethod
    def from_config(cls, sandbox_config: Any = None) -> "ResourceLimits":
        """Build limits from a SandboxConfig-like object."""
        if sandbox_config is None:
            return cls()
        memory_mb = getattr(sandbox_config, "memory_limit_mb", 64)
        cpus = getattr(sandbox_config, "cpus", 0.5)
        return cls(
            memory_limit_bytes=int(memory_mb) * 1024 * 1024,
            nano_cpus=int(round(float(cpus) * _NANO_PER_CPU)),
            pids_limit=int(getattr(sandbox_config, "pids_limit", DEFAULT_PIDS_LIMIT)),
            tmpfs_size_mb=int(getattr(sandbox_config, "tmpfs_size_mb", DEFAULT_TMPFS_SIZE_MB)),
        )


@dataclass(frozen=True, slots=True)
class SandboxSpec:
    """Everything a runtime needs to create one hardened container.

    The isolation fields have fixed defaults and are never derived from
    caller input.
    """

    image: str
    command: tuple[str, ...]
    memory_limit_bytes: int
    nano_cpus: int
    pids_limit: int
    tmpfs_mounts: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({"/tmp": f"size={DEFAULT_TMPFS_SIZE_MB}m,noexec,nosuid"})
    )
    network_disabled: bool = True
    readonly_rootfs: bool = True
    privileged: bool = False
    cap_drop: tuple[str, ...] = ("ALL",)
    security_opt: tuple[str, ...] = ("no-new-privileges",)

    @property
    def memory_swap_bytes(self) -> int:
        """Swap ceiling equal to the memory limit, so no swap headroom."""
        return self.memory_limit_bytes


def build_sandbox_spec(
    image: str, command: list[str], limits: ResourceLimits | None = None
) -> SandboxSpec:
    """Combine image, argv and resource ceilings with the fixed isolation settings."""
    limits = limits or ResourceLimits()
    return SandboxSpec(
        image=image,
        command=tuple(command),
        memory_limit_bytes=limits.memory_limit_bytes,
        nano_cpus=limits.nano_cpus,
        pids_limit=limits.pids_limit,
        tmpfs_mounts=MappingProxyType({"/tmp": f"size={limits.tmpfs_size_mb}m,noexec,nosuid"}),
    )
