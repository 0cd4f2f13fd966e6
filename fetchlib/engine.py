import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Optional

from urllib3 import BaseHTTPResponse

from .config import FetchConfig
from .context import Context, background, with_cancel
from .dispatch import QueueClosed, WorkQueue, dispatch
from .errors import ReleaseError, RequestBuildError, TransportError
from .metrics import Metrics, StatsLogger
from .net import HttpClient
from .pipeline import prepare_request
from .useragent import generate_sec_ch_ua, resolve_user_agent


class Fetcher:
    """Fetches URLs from a lazy source with a fixed pool of worker threads.

    The User-Agent is resolved once here (an explicit config value wins over
    the identity endpoint) and reused by every run.
    """

    def __init__(self, config: FetchConfig | None = None, context: Context | None = None):
        self.config = (config or FetchConfig()).with_defaults()
        context = context or background()
        self.http = HttpClient(
            self.config.redirect_policy,
            self.config.request_timeout,
            http=self.config.http,
            worker_count=self.config.worker_count,
            max_retries=self.config.max_retries,
            insecure_skip_verify=self.config.insecure_skip_verify,
        )
        self.user_agent = resolve_user_agent(
            self.config.user_agent,
            context,
            http=self.config.http,
            endpoint=self.config.user_agent_endpoint,
        )
        self.sec_ch_ua = generate_sec_ch_ua(self.user_agent)
        self.metrics = Metrics()
        self.processed = 0
        self._processed_lock = threading.Lock()

    def _report(self, url: str, error: BaseException, kind: str) -> None:
        self.metrics.record_error(kind)
        self.config.error_handler(url, error)

    def _increment_processed(self) -> None:
        with self._processed_lock:
            self.processed += 1
            processed = self.processed
        if processed % 10 == 0:
            logging.info("Processed %d URLs", processed)

    def process_url(self, context: Context, url: str) -> None:
        """Build, send, handle and release one URL. Never raises for per-URL failures."""
        try:
            request = prepare_request(
                self.config.request_builder, context, url, self.user_agent, self.sec_ch_ua
            )
        except RequestBuildError as exc:
            self._report(url, exc, "build")
            return

        t0 = time.perf_counter()
        try:
            response = self.http.send(request)
        except TransportError as exc:
            self.metrics.record_fetch(False, (time.perf_counter() - t0) * 1000.0)
            self.config.error_handler(url, exc)
            return
        self.metrics.record_fetch(True, (time.perf_counter() - t0) * 1000.0)

        try:
            self.config.response_handler(url, response)
        except Exception as exc:
            self._report(url, exc, "handler")
        finally:
            self._release(url, response)

    def _release(self, url: str, response: BaseHTTPResponse) -> None:
        try:
            response.drain_conn()
            response.release_conn()
        except Exception as exc:
            self._report(url, ReleaseError(f"releasing response for {url}: {exc}"), "release")

    def _worker(self, context: Context, work: WorkQueue[str]) -> None:
        while not context.done():
            try:
                url = work.get(context)
            except QueueClosed:
                return
            if url is None:
                return
            self.metrics.record_dispatched()
            self.process_url(context, url)
            self._increment_processed()

    def run(self, urls: Iterable[str], context: Optional[Context] = None) -> None:
        """Fetch every URL from ``urls``.

        Raises Cancelled or DeadlineExceeded if ``context`` ended the run early.
        """
        parent = context or background()
        run_ctx, stop = with_cancel(parent)
        work: WorkQueue[str] = WorkQueue(self.config.worker_count * 2)
        with self._processed_lock:
            self.processed = 0
        logging.info("Starting fetch with %d workers as %s", self.config.worker_count, self.user_agent)

        stats: Optional[StatsLogger] = None
        if self.config.metrics_interval and self.config.metrics_interval > 0:
            stats = StatsLogger(self.metrics, self.config.metrics_interval, logging.info)
            stats.start()

        dispatcher = threading.Thread(
            target=dispatch, args=(urls, work, run_ctx), name="dispatcher", daemon=True
        )
        try:
            with ThreadPoolExecutor(
                max_workers=self.config.worker_count, thread_name_prefix="worker"
            ) as executor:
                futures = [
                    executor.submit(self._worker, run_ctx, work) for _ in range(self.config.worker_count)
                ]
                dispatcher.start()
                try:
                    for future in as_completed(futures):
                        future.result()
                finally:
                    # Workers finish their current URL; the dispatcher stops pulling.
                    # A producer blocked in next() is left to its daemon thread.
                    stop()
        finally:
            if stats:
                stats.stop()

        logging.info("Finished. URLs processed: %d", self.processed)
        parent.raise_if_done()
