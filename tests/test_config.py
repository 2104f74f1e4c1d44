"""Tests for configuration loading."""

import re

import pytest
import yaml

from ironbox.core.config import ConfigManager, IronboxConfig, SandboxConfig
from ironbox.core.exceptions import ConfigurationError


def test_defaults():
    config = IronboxConfig()
    assert config.sandbox.default_timeout_seconds == 10
    assert config.sandbox.max_timeout_seconds == 30
    assert config.sandbox.memory_limit_mb == 64
    assert config.sandbox.cpus == 0.5
    assert config.sandbox.pids_limit == 64
    assert config.sandbox.tmpfs_size_mb == 16
    assert config.sandbox.images == {}
    assert config.sandbox.docker.base_url is None
    assert config.logging.level == "WARNING"


def test_missing_file_gives_defaults(tmp_path):
    manager = ConfigManager(project_root=tmp_path)
    assert manager.config == IronboxConfig()


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigManager(config_path=tmp_path / "nope.yaml").load_config()


def test_load_yaml(tmp_path):
    (tmp_path / "ironbox.yaml").write_text(
        """
sandbox:
  default_timeout_seconds: 5
  memory_limit_mb: 128
  images:
    python: registry.local/python:3.12
  docker:
    base_url: unix:///run/user/1000/docker.sock
  unknown_key: ignored
logging:
  level: DEBUG
""",
        encoding="utf-8",
    )
    config = ConfigManager(project_root=tmp_path).load_config()
    assert config.sandbox.default_timeout_seconds == 5
    assert config.sandbox.memory_limit_mb == 128
    assert config.sandbox.images == {"python": "registry.local/python:3.12"}
    assert config.sandbox.docker.base_url == "unix:///run/user/1000/docker.sock"
    assert config.logging.level == "DEBUG"


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "ironbox.yaml"
    path.write_text("", encoding="utf-8")
    assert IronboxConfig.load_from_file(path) == IronboxConfig()


def test_invalid_yaml(tmp_path):
    path = tmp_path / "ironbox.yaml"
    path.write_text("sandbox: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Failed to load"):
        IronboxConfig.load_from_file(path)


@pytest.mark.parametrize(
    "sandbox",
    [
        {"memory_limit_mb": 0},
        {"cpus": -1},
        {"pids_limit": 0},
        {"default_timeout_seconds": 60, "max_timeout_seconds": 30},
    ],
)
def test_invalid_limits_rejected(tmp_path, sandbox):
    with pytest.raises(ConfigurationError):
        IronboxConfig.from_dict({"sandbox": sandbox}).sandbox.validate()


@pytest.mark.parametrize(
    "images, fragment",
    [
        ({"ruby": "ruby:3"}, "unknown language 'ruby'"),
        ({"python": "  "}, "sandbox.images.python"),
        ({"bash": None}, "sandbox.images.bash"),
    ],
)
def test_invalid_image_overrides_rejected(tmp_path, images, fragment):
    path = tmp_path / "ironbox.yaml"
    path.write_text(yaml.safe_dump({"sandbox": {"images": images}}), encoding="utf-8")
    with pytest.raises(ConfigurationError, match=re.escape(fragment)):
        ConfigManager(config_path=path).load_config()


def test_non_mapping_root_rejected():
    with pytest.raises(ConfigurationError):
        IronboxConfig.from_dict(["sandbox"])


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("IRONBOX_LOG_LEVEL", "info")
    monkeypatch.setenv("IRONBOX_DEFAULT_TIMEOUT", "20")
    config = ConfigManager(project_root=tmp_path).load_config()
    assert config.logging.level == "INFO"
    assert config.sandbox.default_timeout_seconds == 20


def test_bad_env_timeout(tmp_path, monkeypatch):
    monkeypatch.setenv("IRONBOX_DEFAULT_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError, match="IRONBOX_DEFAULT_TIMEOUT"):
        ConfigManager(project_root=tmp_path).load_config()


def test_save_and_reload(tmp_path):
    manager = ConfigManager(project_root=tmp_path)
    manager.config.sandbox.pids_limit = 32
    manager.save_config()

    reloaded = ConfigManager(project_root=tmp_path).load_config()
    assert reloaded.sandbox.pids_limit == 32
    assert isinstance(reloaded.sandbox, SandboxConfig)


def test_json_config(tmp_path):
    path = tmp_path / "ironbox.json"
    path.write_text('{"sandbox": {"tmpfs_size_mb": 8}}', encoding="utf-8")
    assert IronboxConfig.load_from_file(path).sandbox.tmpfs_size_mb == 8
