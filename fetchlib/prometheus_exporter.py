import logging
import threading
from typing import Dict

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, start_http_server

from .metrics import Metrics


logger = logging.getLogger(__name__)

ERROR_KINDS = ("build", "transport", "handler", "release")


class PrometheusExporter:
    def __init__(self, metrics: Metrics, port: int = 8000, registry: CollectorRegistry = REGISTRY) -> None:
        self.metrics = metrics
        self.port = port
        self.registry = registry
        self._server_thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self.dispatched_total = Counter(
            'fetcher_dispatched_total', 'URLs taken from the queue by workers', registry=registry
        )
        self.delivered_total = Counter(
            'fetcher_delivered_total', 'Responses delivered to the response handler', registry=registry
        )
        self.errors_total = Counter(
            'fetcher_errors_total', 'Errors routed to the error handler', ['kind'], registry=registry
        )
        self.urls_per_second = Gauge('fetcher_urls_per_second', 'Fetch rate in URLs per second', registry=registry)
        self.avg_fetch_duration_seconds = Gauge(
            'fetcher_avg_fetch_duration_seconds', 'Average fetch duration in seconds', registry=registry
        )

        self._last_dispatched = 0
        self._last_delivered = 0
        self._last_errors: Dict[str, int] = {kind: 0 for kind in ERROR_KINDS}

    def start(self) -> None:
        start_http_server(self.port, registry=self.registry)
        logger.info("Prometheus metrics server started on port %d", self.port)

        self._server_thread = threading.Thread(
            target=self._update_metrics_loop,
            name="prometheus-updater",
            daemon=True
        )
        self._server_thread.start()

    def _update_metrics_loop(self) -> None:
        while not self._stop_event.is_set():
            self.update()
            self._stop_event.wait(5.0)

    def update(self) -> None:
        totals, elapsed = self.metrics.snapshot()

        dispatched_delta = totals.dispatched - self._last_dispatched
        delivered_delta = totals.delivered - self._last_delivered
        if dispatched_delta > 0:
            self.dispatched_total.inc(dispatched_delta)
        if delivered_delta > 0:
            self.delivered_total.inc(delivered_delta)
        for kind in ERROR_KINDS:
            count = getattr(totals, f"{kind}_errors")
            delta = count - self._last_errors[kind]
            if delta > 0:
                self.errors_total.labels(kind=kind).inc(delta)
            self._last_errors[kind] = count

        fetched = totals.delivered + totals.transport_errors
        self.urls_per_second.set(fetched / elapsed)
        if fetched > 0:
            self.avg_fetch_duration_seconds.set(totals.fetch_ms_sum / fetched / 1000.0)

        self._last_dispatched = totals.dispatched
        self._last_delivered = totals.delivered

    def stop(self) -> None:
        self._stop_event.set()
        if self._server_thread:
            self._server_thread.join(timeout=2.0)
