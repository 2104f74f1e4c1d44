"""
Diagnostics for the sandbox runtime setup.
"""

from dataclasses import dataclass
from typing import Any

from ...core.exceptions import ConfigurationError, ContainerRuntimeError
from ..languages import LanguageCatalog
from ..limits import ResourceLimits

# Timeouts above this keep a container (and its memory) alive long enough
# to matter on a shared host.
_LONG_TIMEOUT_SECONDS = 120


@dataclass(slots=True)
class RuntimeDoctorCheck:
    """Detailed doctor check for sandbox diagnostics."""

    name: str
    status: str  # pass | warn | fail
    detail: str
    recommendation: str | None = None


def run_runtime_doctor(sandbox_config: Any = None, runtime: Any = None) -> list[RuntimeDoctorCheck]:
    """
    Run diagnostics for the configured sandbox.

    Args:
        sandbox_config: SandboxConfig-like object (defaults when None)
        runtime: Connected runtime exposing ``check_health`` and
            ``image_present``; None reports the engine as unreachable

    Returns:
        Checks in display order
    """
    checks: list[RuntimeDoctorCheck] = []

    try:
        limits = ResourceLimits.from_config(sandbox_config)
    except (ConfigurationError, TypeError, ValueError) as exc:
        checks.append(
            RuntimeDoctorCheck(
                name="resource_limits",
                status="fail",
                detail=str(exc),
                recommendation="Set positive memory_limit_mb, cpus, pids_limit and tmpfs_size_mb.",
            )
        )
        return checks

    checks.append(
        RuntimeDoctorCheck(
            name="resource_limits",
            status="pass",
            detail=(
                f"memory={limits.memory_limit_bytes // (1024 * 1024)}MiB "
                f"cpus={limits.nano_cpus / 1_000_000_000:g} "
                f"pids={limits.pids_limit} tmpfs={limits.tmpfs_size_mb}MiB"
            ),
        )
    )

    max_timeout = int(getattr(sandbox_config, "max_timeout_seconds", 30) or 30)
    if max_timeout > _LONG_TIMEOUT_SECONDS:
        checks.append(
            RuntimeDoctorCheck(
                name="timeout_policy",
                status="warn",
                detail=f"Callers may request up to {max_timeout}s per execution.",
                recommendation=f"Keep sandbox.max_timeout_seconds at or below {_LONG_TIMEOUT_SECONDS}.",
            )
        )
    else:
        checks.append(
            RuntimeDoctorCheck(
                name="timeout_policy",
                status="pass",
                detail=f"Callers may request up to {max_timeout}s per execution.",
            )
        )

    try:
        catalog = LanguageCatalog(getattr(sandbox_config, "images", None))
    except ConfigurationError as exc:
        checks.append(
            RuntimeDoctorCheck(
                name="language_images",
                status="fail",
                detail=str(exc),
                recommendation="Fix sandbox.images in ironbox.yaml.",
            )
        )
        return checks

    if runtime is None:
        checks.append(
            RuntimeDoctorCheck(
                name="docker_daemon",
                status="fail",
                detail="No connection to the Docker daemon.",
                recommendation="Start Docker and retry ironbox doctor.",
            )
        )
        return checks

    healthy, detail = runtime.check_health()
    checks.append(
        RuntimeDoctorCheck(
            name="docker_daemon",
            status="pass" if healthy else "fail",
            detail=detail,
            recommendation=None if healthy else "Start Docker and retry ironbox doctor.",
        )
    )
    if not healthy:
        return checks

    for language in catalog.languages():
        image = catalog.resolve(language).image
        try:
            present = runtime.image_present(image)
        except ContainerRuntimeError as exc:
            checks.append(
                RuntimeDoctorCheck(
                    name=f"image_{language}",
                    status="fail",
                    detail=f"Could not inspect '{image}': {exc}",
                )
            )
            continue
        if present:
            checks.append(
                RuntimeDoctorCheck(
                    name=f"image_{language}",
                    status="pass",
                    detail=f"Image '{image}' is available locally.",
                )
            )
        else:
            checks.append(
                RuntimeDoctorCheck(
                    name=f"image_{language}",
                    status="warn",
                    detail=f"Image '{image}' is not present locally; first run will pull it.",
                    recommendation=f"Run: docker pull {image}",
                )
            )

    return checks
