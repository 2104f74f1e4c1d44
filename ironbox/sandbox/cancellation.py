"""
Cooperative cancellation for blocking sandbox operations.

A ``CancelScope`` is a cancellation flag with an optional deadline. Scopes
can be nested: a child is done as soon as its parent is. The executor derives
a child scope carrying the execution timeout from whatever scope the caller
passed in.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TypeVar

T = TypeVar("T")

_POLL_INTERVAL = 0.05


class CancelledScopeError(Exception):
    """Raised by ``wait_with_cancellation`` when the scope finishes first.

    ``reason`` is ``"timeout"`` when the deadline passed and ``"cancelled"``
    when ``cancel()`` was called on the scope or one of its parents.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class CancelScope:
    """Cancellation flag with an optional deadline."""

    def __init__(self, timeout: float | None = None, parent: CancelScope | None = None):
        self._event = threading.Event()
        self._parent = parent
        self.timeout = timeout
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Request cancellation. Safe to call from any thread."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent.cancelled if self._parent is not None else False

    @property
    def expired(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent.expired if self._parent is not None else False

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    @property
    def reason(self) -> str | None:
        """Why the scope is done, or None while it is still live."""
        if self.cancelled:
            return "cancelled"
        if self.expired:
            return "timeout"
        return None

    def remaining(self) -> float | None:
        """Seconds until the nearest deadline in the chain, or None if unbounded."""
        candidates = []
        if self._deadline is not None:
            candidates.append(max(0.0, self._deadline - time.monotonic()))
        if self._parent is not None:
            parent_remaining = self._parent.remaining()
            if parent_remaining is not None:
                candidates.append(parent_remaining)
        return min(candidates) if candidates else None

    def raise_if_done(self) -> None:
        reason = self.reason
        if reason is not None:
            raise CancelledScopeError(reason)


def wait_with_cancellation(
    fn: Callable[[], T], scope: CancelScope, poll_interval: float = _POLL_INTERVAL
) -> T:
    """
    Run a blocking call and return whichever finishes first: the call or the scope.

    The call runs on a daemon thread. If the scope finishes first the thread is
    abandoned; callers must make sure whatever it is blocked on gets released
    (for container waits, removing the container does that).

    Raises:
        CancelledScopeError: the scope was cancelled or its deadline passed
        Exception: whatever ``fn`` raised, unchanged
    """
    future: Future[T] = Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    worker = threading.Thread(target=_run, name="ironbox-wait", daemon=True)
    worker.start()

    while True:
        # Checked outside the try: fn may itself raise TimeoutError.
        if future.done():
            return future.result()
        scope.raise_if_done()
        remaining = scope.remaining()
        step = poll_interval if remaining is None else min(poll_interval, remaining)
        try:
            return future.result(timeout=max(step, 0.0))
        except FutureTimeoutError:
            continue
