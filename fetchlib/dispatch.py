import logging
import queue
import threading
from typing import Generic, Iterable, Optional, TypeVar

from .context import Context


T = TypeVar("T")

POLL_INTERVAL = 0.05


class QueueClosed(Exception):
    """The queue was closed and every item has been taken."""


class WorkQueue(Generic[T]):
    """Bounded queue with a close signal; single producer, many consumers."""

    def __init__(self, capacity: int):
        self._queue: "queue.Queue[T]" = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, item: T, context: Context) -> bool:
        """Block until there is room; False if the context finished first."""
        while not context.done():
            try:
                self._queue.put(item, timeout=POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def get(self, context: Context) -> Optional[T]:
        """Next item, or None once ``context`` is done.

        Raises QueueClosed when the queue is closed and drained.
        """
        while not context.done():
            try:
                return self._queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                # close() happens after the last put, so closed-and-empty is final
                if self._closed.is_set() and self._queue.empty():
                    raise QueueClosed()
        return None


def dispatch(urls: Iterable[str], work: WorkQueue[str], context: Context) -> int:
    """Feed ``urls`` into ``work`` until exhausted or cancelled, then close it."""
    placed = 0
    try:
        for url in urls:
            if context.done() or not work.put(url, context):
                logging.debug("Dispatch stopped after %d URLs: %s", placed, context.error())
                break
            placed += 1
    except Exception:
        logging.exception("URL source failed after %d URLs", placed)
    finally:
        work.close()
    return placed
