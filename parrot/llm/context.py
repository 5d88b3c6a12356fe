"""Deadline and cancellation signal shared by one generation call.

A root context is created by the caller with an overall timeout. Nested
calls derive children whose deadline can only be tighter than the parent's,
and cancelling a parent cancels every live child. Backends register a
callback while a request is outstanding so that cancellation can tear down
the underlying connection.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional


class CallContext:
    def __init__(self, deadline: Optional[float] = None, *, parent: Optional["CallContext"] = None):
        self.deadline = deadline
        self._parent = parent
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._children: List["CallContext"] = []

    @classmethod
    def root(cls, timeout: Optional[float] = None) -> "CallContext":
        if timeout is None:
            return cls()
        return cls(deadline=time.monotonic() + max(0.0, float(timeout)))

    # ------------------------------------------------------------------
    def child(self, timeout: Optional[float] = None) -> "CallContext":
        deadline = self.deadline
        if timeout is not None:
            own = time.monotonic() + max(0.0, float(timeout))
            deadline = own if deadline is None else min(deadline, own)
        ctx = CallContext(deadline, parent=self)
        with self._lock:
            attached = not self._event.is_set()
            if attached:
                self._children.append(ctx)
        if not attached:
            ctx.cancel()
        return ctx

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            children, self._children = self._children, []
        for callback in callbacks:
            callback()
        for ctx in children:
            ctx.cancel()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        if self._event.is_set():
            return 0.0
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def bounded_timeout(self, limit: float) -> float:
        """Clamp a per-request timeout to whatever is left of the deadline."""
        left = self.remaining()
        if left is None:
            return float(limit)
        return min(float(limit), left)

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run *callback* on cancellation; returns a function that unregisters it."""
        with self._lock:
            registered = not self._event.is_set()
            if registered:
                self._callbacks.append(callback)
        if not registered:
            callback()

        def _unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return _unregister

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or expired; True if that happened within *timeout*."""
        left = self.remaining()
        if left is not None:
            timeout = left if timeout is None else min(timeout, left)
        self._event.wait(timeout)
        return self.cancelled

    # ------------------------------------------------------------------
    def __enter__(self) -> "CallContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cancel()
        parent = self._parent
        if parent is not None:
            with parent._lock:
                if self in parent._children:
                    parent._children.remove(self)
