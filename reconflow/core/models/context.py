"""Cancellation context passed to every task body."""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

CancelReason = Literal['cancelled', 'deadline_exceeded']


class ReconcileContext:
    """
    Cancellation signal and caller values shared by the driver and task bodies.

    The driver samples ``cancelled`` once before each task starts. A task
    already running is never interrupted; long-running bodies may poll
    ``cancelled`` themselves.

    Example:
        ctx = ReconcileContext(timeout=30.0, values={'region': 'eu-1'})
        report = workflow.reconcile(ctx)
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        deadline: float | None = None,
        values: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Args:
            timeout: seconds from now after which the context counts as cancelled.
            deadline: absolute ``time.monotonic()`` value with the same effect.
                When both are given the earlier one wins.
            values: read-only caller values for task bodies.
        """
        if timeout is not None and timeout < 0:
            raise ValueError(f'timeout must be >= 0, got {timeout}')
        if timeout is not None:
            timeout_deadline = time.monotonic() + timeout
            deadline = timeout_deadline if deadline is None else min(deadline, timeout_deadline)
        self._deadline = deadline
        self._event = threading.Event()
        self._values: Mapping[str, Any] = MappingProxyType(dict(values or {}))

    @classmethod
    def background(cls) -> ReconcileContext:
        """A context with no deadline that is only cancelled via cancel()."""
        return cls()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def values(self) -> Mapping[str, Any]:
        return self._values

    def cancel(self) -> None:
        """Signal cancellation. Safe to call from any thread, idempotent."""
        self._event.set()

    @property
    def reason(self) -> CancelReason | None:
        if self._event.is_set():
            return 'cancelled'
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return 'deadline_exceeded'
        return None

    @property
    def cancelled(self) -> bool:
        return self.reason is not None

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def __repr__(self) -> str:
        return f'ReconcileContext(reason={self.reason!r}, deadline={self._deadline!r})'
