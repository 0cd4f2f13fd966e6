import threading
import time
from dataclasses import dataclass


@dataclass
class Totals:
    dispatched: int = 0
    delivered: int = 0
    build_errors: int = 0
    transport_errors: int = 0
    handler_errors: int = 0
    release_errors: int = 0
    fetch_ms_sum: float = 0.0

    @property
    def errors(self) -> int:
        return self.build_errors + self.transport_errors + self.handler_errors + self.release_errors


class Metrics:
    def __init__(self):
        self._totals = Totals()
        self._lock = threading.Lock()
        self._start = time.time()

    def record_dispatched(self, count: int = 1) -> None:
        with self._lock:
            self._totals.dispatched += count

    def record_fetch(self, ok: bool, fetch_ms: float) -> None:
        with self._lock:
            if ok:
                self._totals.delivered += 1
            else:
                self._totals.transport_errors += 1
            self._totals.fetch_ms_sum += fetch_ms

    def record_error(self, kind: str) -> None:
        """Count a build, handler or release error."""
        with self._lock:
            attr = f"{kind}_errors"
            setattr(self._totals, attr, getattr(self._totals, attr) + 1)

    def snapshot(self) -> tuple[Totals, float]:
        with self._lock:
            t = Totals(**vars(self._totals))
        elapsed = max(1e-6, time.time() - self._start)
        return t, elapsed


class StatsLogger(threading.Thread):
    daemon = True

    def __init__(self, metrics: Metrics, interval_s: float, log_fn):
        super().__init__(name="stats-logger")
        self._metrics = metrics
        self._interval = max(0.5, interval_s)
        self._log = log_fn
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.is_set():
            self._stopped.wait(self._interval)
            if self._stopped.is_set():
                break
            totals, elapsed = self._metrics.snapshot()
            fetched = totals.delivered + totals.transport_errors
            self._log(
                "Perf: dispatched=%d, delivered=%d, errors=%d, avg_fetch_ms=%.1f, urls/sec=%.2f",
                totals.dispatched,
                totals.delivered,
                totals.errors,
                totals.fetch_ms_sum / max(1, fetched),
                fetched / elapsed,
            )

    def stop(self) -> None:
        self._stopped.set()
