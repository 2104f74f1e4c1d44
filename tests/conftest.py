"""
Pytest configuration and fixtures for ironbox tests.
"""

import logging
import os

import pytest
from hypothesis import Verbosity, settings

from ironbox.core.exceptions import ContainerRuntimeError

# Configure hypothesis settings for property-based testing
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,  # Disable deadline for slow operations
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


class RecordingRuntime:
    """In-memory ContainerRuntime that records every call.

    ``failures`` maps a step name (ensure_image, create, start, wait, logs,
    remove) to the exception that step raises.
    """

    name = "fake"

    def __init__(
        self,
        *,
        exit_code=0,
        logs="",
        failures=None,
        wait=None,
        handle="c0ffee0123456789",
        image_present=True,
        healthy=True,
    ):
        self.exit_code = exit_code
        self.logs = logs
        self.failures = dict(failures or {})
        self.wait_hook = wait
        self.handle = handle
        self.present = image_present
        self.healthy = healthy
        self.calls = []
        self.specs = []
        self.closed = False

    def _step(self, step, *args):
        self.calls.append((step, *args))
        error = self.failures.get(step)
        if error is not None:
            raise error

    def ensure_image(self, image):
        self._step("ensure_image", image)

    def create_container(self, spec):
        self._step("create", spec.image)
        self.specs.append(spec)
        return self.handle

    def start_container(self, handle):
        self._step("start", handle)

    def wait_container(self, handle, scope):
        self._step("wait", handle)
        if self.wait_hook is not None:
            return self.wait_hook(handle, scope)
        return self.exit_code

    def get_logs(self, handle):
        self._step("logs", handle)
        return self.logs

    def remove_container(self, handle):
        self._step("remove", handle)

    def image_present(self, image):
        error = self.failures.get("image_present")
        if error is not None:
            raise error
        return self.present

    def check_health(self):
        if self.healthy:
            return True, "docker daemon ready (server test)"
        return False, "docker daemon unavailable"

    def close(self):
        self.closed = True

    @property
    def steps(self):
        return [call[0] for call in self.calls]

    def count(self, step):
        return self.steps.count(step)


@pytest.fixture
def make_runtime():
    """Factory for RecordingRuntime instances."""
    return RecordingRuntime


@pytest.fixture
def runtime_error():
    """Factory for engine failures."""
    return ContainerRuntimeError


@pytest.fixture(autouse=True)
def _reset_ironbox_logger():
    """Undo setup_logging so caplog sees records in every test."""

    def _reset():
        logger = logging.getLogger("ironbox")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


@pytest.fixture(autouse=True)
def _clear_ironbox_env(monkeypatch):
    monkeypatch.delenv("IRONBOX_LOG_LEVEL", raising=False)
    monkeypatch.delenv("IRONBOX_DEFAULT_TIMEOUT", raising=False)
