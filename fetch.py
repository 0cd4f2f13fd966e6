#!/usr/bin/env python3
import argparse
import logging
import sys

from fetchlib.config import DEFAULT_WORKER_COUNT, FetchConfig
from fetchlib.context import background, with_timeout
from fetchlib.engine import Fetcher
from fetchlib.errors import ContextError
from fetchlib.handlers import (
    file_urls,
    print_status_handler,
    response_body_saver,
    response_file_dumper,
    stderr_error_handler,
)
from fetchlib.redirects import DEFAULT_MAX_REDIRECTS, max_redirects_policy, same_domain_policy


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch many URLs in parallel with browser-like headers.")
    parser.add_argument("urls", nargs="*", help="URLs or hostnames to fetch.")
    parser.add_argument("-f", "--file", dest="urls_file", default=None, help="File with one URL or hostname per line.")
    parser.add_argument("-w", "--workers", type=int, default=DEFAULT_WORKER_COUNT, help="Number of parallel workers.")
    parser.add_argument("--user-agent", default="", help="User-Agent to send (default: fetch latest Chrome UA).")
    parser.add_argument("--max-redirects", type=int, default=DEFAULT_MAX_REDIRECTS, help="Redirects to follow.")
    parser.add_argument(
        "--same-domain", action="store_true", help="Only follow redirects within the original registrable domain."
    )
    parser.add_argument("--save-dir", default=None, help="Save bodies under this directory, one file per host.")
    parser.add_argument("--dump-dir", default=None, help="Save bodies under this directory, named by URL hash.")
    parser.add_argument("--timeout", type=float, default=30.0, help="Per-request timeout in seconds.")
    parser.add_argument("--retries", type=int, default=0, help="Retries per request on connection errors and 5xx.")
    parser.add_argument("--deadline", type=float, default=0.0, help="Stop the whole run after N seconds (0: never).")
    parser.add_argument("--verify-tls", action="store_true", help="Verify TLS certificates.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity.")
    parser.add_argument("--metrics-interval", type=float, default=0.0, help="Seconds between perf logs (0 to disable).")
    parser.add_argument("--prometheus-port", type=int, default=0, help="Serve Prometheus metrics on this port.")
    return parser.parse_args()


def iter_urls(args: argparse.Namespace):
    for u in args.urls:
        yield u if u.startswith(("http://", "https://")) else "https://" + u
    if args.urls_file:
        yield from file_urls(args.urls_file)


def main() -> int:
    args = parse_args()
    log_level = logging.WARNING
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(threadName)s %(message)s",
    )

    if args.save_dir:
        handler = response_body_saver(args.save_dir)
    elif args.dump_dir:
        handler = response_file_dumper(args.dump_dir)
    else:
        handler = print_status_handler
    policy = same_domain_policy() if args.same_domain else max_redirects_policy(max(0, args.max_redirects))

    ctx, cancel = background(), None
    if args.deadline > 0:
        ctx, cancel = with_timeout(ctx, args.deadline)

    config = FetchConfig(
        worker_count=max(1, args.workers),
        response_handler=handler,
        error_handler=stderr_error_handler(),
        user_agent=args.user_agent,
        redirect_policy=policy,
        request_timeout=max(1.0, args.timeout),
        max_retries=max(0, args.retries),
        insecure_skip_verify=not args.verify_tls,
        metrics_interval=max(0.0, args.metrics_interval),
    )
    fetcher = Fetcher(config, ctx)

    exporter = None
    if args.prometheus_port:
        from fetchlib.prometheus_exporter import PrometheusExporter

        exporter = PrometheusExporter(fetcher.metrics, port=args.prometheus_port)
        exporter.start()
        logging.info("Prometheus metrics available at http://0.0.0.0:%d/metrics", args.prometheus_port)

    try:
        fetcher.run(iter_urls(args), ctx)
    except ContextError as exc:
        print(f"Fetch stopped: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        if exporter:
            exporter.stop()
        if cancel:
            cancel()
    return 0


if __name__ == "__main__":
    sys.exit(main())
