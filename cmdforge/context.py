"""Cancellation context accepted by commands that take a single parameter."""

from __future__ import annotations

import threading
import time
from typing import Optional


class Context:
    """Carries a cancellation flag and an optional monotonic deadline.

    Task functions declare ``def build(ctx: Context) -> None`` to receive one;
    generated wrappers forward it unchanged.
    """

    def __init__(self, deadline: Optional[float] = None, parent: Optional["Context"] = None) -> None:
        self._cancelled = threading.Event()
        self._parent = parent
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        if self._parent is not None and self._parent.cancelled:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self) -> None:
        self._cancelled.set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def with_timeout(self, seconds: float) -> "Context":
        """Return a child context that expires after ``seconds``."""
        return Context(deadline=time.monotonic() + seconds, parent=self)


__all__ = ["Context"]
