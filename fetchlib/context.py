"""Cancellation tokens shared between the caller, the dispatcher and workers.

A Context is done once it is cancelled, once its deadline passes, or once its
parent is done. Deadlines are checked lazily; nothing runs in the background.
"""
import threading
import time
from typing import Callable, List, Optional, Tuple

from .errors import Cancelled, ContextError, DeadlineExceeded


class Context:
    def __init__(
        self,
        parent: "Context | None" = None,
        deadline: Optional[float] = None,
        now: Callable[[], float] | None = None,
    ):
        self._parent = parent
        self._now = now or (parent._now if parent else time.monotonic)
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._children: List["Context"] = []
        self._lock = threading.Lock()
        if parent is not None:
            parent._adopt(self)

    def _adopt(self, child: "Context") -> None:
        with self._lock:
            cancelled = self._cancelled.is_set()
            if not cancelled:
                self._children.append(child)
        if cancelled:
            child.cancel()

    def _detach(self, child: "Context") -> None:
        with self._lock:
            try:
                self._children.remove(child)
            except ValueError:
                pass

    def cancel(self) -> None:
        """Cancel this context and its children, and drop it from its parent."""
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        with self._lock:
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.cancel()
        if self._parent is not None:
            self._parent._detach(self)

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._now())

    def error(self) -> Optional[ContextError]:
        if self._cancelled.is_set():
            return Cancelled()
        if self.deadline is not None and self._now() >= self.deadline:
            return DeadlineExceeded()
        return None

    def done(self) -> bool:
        return self.error() is not None

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; True if the context is done."""
        remaining = self.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)
        self._cancelled.wait(timeout)
        return self.done()

    def raise_if_done(self) -> None:
        err = self.error()
        if err is not None:
            raise err


def background() -> Context:
    return Context()


def with_cancel(parent: Context | None = None) -> Tuple[Context, Callable[[], None]]:
    ctx = Context(parent=parent)
    return ctx, ctx.cancel


def with_timeout(parent: Context | None, seconds: float) -> Tuple[Context, Callable[[], None]]:
    now = parent._now if parent else time.monotonic
    ctx = Context(parent=parent, deadline=now() + seconds, now=now)
    return ctx, ctx.cancel
