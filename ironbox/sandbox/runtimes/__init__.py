"""
Container runtime backends.
"""

from .base import ContainerRuntime
from .docker_runtime import DockerContainerRuntime
from .doctor import RuntimeDoctorCheck, run_runtime_doctor

__all__ = [
    "ContainerRuntime",
    "DockerContainerRuntime",
    "RuntimeDoctorCheck",
    "run_runtime_doctor",
]
