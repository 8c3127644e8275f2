"""
Operation context — cancellation and deadlines for one invocation.

Every externally visible operation (HTTP lookups, downloads, shell
actions) takes an ``OperationContext`` and polls it.  The context
carries ONLY the cancel signal and the deadline; runtime switches
(quiet, verbose, dry-run) travel separately in ``ExecOptions``.

Design notes:
    - ``cancel()`` is safe to call from any thread (``threading.Event``).
    - ``with_timeout()`` derives a child that shares the parent's
      event, so cancelling the parent cancels every child.
    - Deadlines use ``time.monotonic()``.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from sth.core.errors import OperationCancelled


@dataclass
class ExecOptions:
    """Runtime switches passed alongside the context."""

    quiet: bool = False
    verbose: bool = False
    dry_run: bool = False


@dataclass
class OperationContext:
    """Cancellation signal plus optional deadline."""

    cancel_event: threading.Event = field(default_factory=threading.Event)
    deadline: float | None = None

    @classmethod
    def background(cls) -> OperationContext:
        """A context that is never cancelled and has no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> OperationContext:
        """Derive a child context whose deadline is at most ``seconds`` away."""
        candidate = time.monotonic() + seconds
        if self.deadline is not None:
            candidate = min(candidate, self.deadline)
        return OperationContext(cancel_event=self.cancel_event, deadline=candidate)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def check(self) -> None:
        """Raise ``OperationCancelled`` if cancelled or past the deadline."""
        if self.cancel_event.is_set():
            raise OperationCancelled("operation cancelled")
        left = self.remaining()
        if left is not None and left <= 0:
            raise OperationCancelled("operation deadline exceeded")

    def timeout_for(self, limit: float) -> float:
        """Per-request timeout: ``limit`` clipped to the remaining deadline."""
        self.check()
        left = self.remaining()
        if left is None:
            return limit
        return max(0.001, min(limit, left))
