"""
Configuration management for ironbox.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


@dataclass
class SandboxDockerConfig:
    """Docker engine connection settings."""

    base_url: str | None = None  # None reads DOCKER_HOST and friends
    client_timeout_seconds: int = 60


@dataclass
class SandboxConfig:
    """Execution sandbox configuration.

    Only numeric ceilings are tunable here. Network isolation, the read-only
    root filesystem and privilege settings are fixed in the container spec.
    """

    default_timeout_seconds: int = 10
    max_timeout_seconds: int = 30
    memory_limit_mb: int = 64
    cpus: float = 0.5
    pids_limit: int = 64
    tmpfs_size_mb: int = 16
    max_code_bytes: int = 65536
    images: dict[str, str] = field(default_factory=dict)
    docker: SandboxDockerConfig = field(default_factory=SandboxDockerConfig)

    def validate(self) -> None:
        """Reject ceilings that would disable a limit and unknown image overrides."""
        positive = {
            "default_timeout_seconds": self.default_timeout_seconds,
            "max_timeout_seconds": self.max_timeout_seconds,
            "memory_limit_mb": self.memory_limit_mb,
            "cpus": self.cpus,
            "pids_limit": self.pids_limit,
            "tmpfs_size_mb": self.tmpfs_size_mb,
            "max_code_bytes": self.max_code_bytes,
        }
        for key, value in positive.items():
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"sandbox.{key} must be a positive number, got {value!r}")
        if self.default_timeout_seconds > self.max_timeout_seconds:
            raise ConfigurationError(
                "sandbox.default_timeout_seconds cannot exceed sandbox.max_timeout_seconds"
            )

        from ..sandbox.languages import BUILTIN_LANGUAGES

        if not isinstance(self.images, dict):
            raise ConfigurationError(f"sandbox.images must be a mapping, got {self.images!r}")
        for language, image in self.images.items():
            if language not in BUILTIN_LANGUAGES:
                raise ConfigurationError(
                    f"sandbox.images names unknown language '{language}'. "
                    f"Supported: {', '.join(sorted(BUILTIN_LANGUAGES))}"
                )
            if not isinstance(image, str) or not image.strip():
                raise ConfigurationError(f"sandbox.images.{language} must be a non-empty image name")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    rich: bool = True


@dataclass
class IronboxConfig:
    """Main configuration."""

    sandbox: SandboxConfig = field(default_factory=SandboxConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "IronboxConfig":
        """Load configuration from a YAML or JSON file."""
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path) as f:
                if config_path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        config = cls.from_dict(data or {})
        config.apply_env_overrides()
        config.sandbox.validate()
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IronboxConfig":
        """Build configuration from a parsed mapping, ignoring unknown keys."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        sandbox_data = data.get("sandbox") or {}
        logging_data = data.get("logging") or {}
        if not isinstance(sandbox_data, dict) or not isinstance(logging_data, dict):
            raise ConfigurationError("'sandbox' and 'logging' sections must be mappings")

        docker_data = sandbox_data.get("docker") or {}
        if not isinstance(docker_data, dict):
            docker_data = {}

        try:
            docker_cfg = SandboxDockerConfig(**_known_fields(SandboxDockerConfig, docker_data))
            sandbox_fields = _known_fields(SandboxConfig, sandbox_data)
            sandbox_fields["docker"] = docker_cfg
            images = sandbox_fields.get("images") or {}
            if not isinstance(images, dict):
                raise ConfigurationError("sandbox.images must map language to image")
            sandbox_fields["images"] = {str(k): v for k, v in images.items()}
            sandbox_cfg = SandboxConfig(**sandbox_fields)
            logging_cfg = LoggingConfig(**_known_fields(LoggingConfig, logging_data))
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        return cls(sandbox=sandbox_cfg, logging=logging_cfg)

    def apply_env_overrides(self) -> None:
        """Apply IRONBOX_* environment variables on top of file values."""
        level = os.getenv("IRONBOX_LOG_LEVEL")
        if level:
            self.logging.level = level.strip().upper()

        timeout = os.getenv("IRONBOX_DEFAULT_TIMEOUT")
        if timeout:
            try:
                self.sandbox.default_timeout_seconds = int(timeout)
            except ValueError as e:
                raise ConfigurationError(
                    f"IRONBOX_DEFAULT_TIMEOUT must be an integer, got {timeout!r}"
                ) from e

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to file."""
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            data = asdict(self)
            with open(config_path, "w") as f:
                if config_path.suffix.lower() == ".json":
                    json.dump(data, f, indent=2)
                else:
                    yaml.dump(data, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e


def _known_fields(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    names = set(cls.__dataclass_fields__)
    return {k: v for k, v in data.items() if k in names}


class ConfigManager:
    """Locates and loads the active configuration."""

    CONFIG_FILENAME = "ironbox.yaml"

    def __init__(
        self, project_root: Path | None = None, config_path: Path | str | None = None
    ):
        self.project_root = project_root or Path.cwd()
        self._explicit = config_path is not None
        self.config_path = (
            Path(config_path) if config_path is not None else self.project_root / self.CONFIG_FILENAME
        )
        self._config: IronboxConfig | None = None

    @property
    def config(self) -> IronboxConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> IronboxConfig:
        """Load configuration from file, falling back to defaults."""
        # An explicitly requested file must exist.
        if self._explicit or self.config_path.exists():
            self._config = IronboxConfig.load_from_file(self.config_path)
        else:
            self._config = IronboxConfig()
            self._config.apply_env_overrides()
            self._config.sandbox.validate()
        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            raise ConfigurationError("No configuration to save")
        self._config.save_to_file(self.config_path)
