"""Stock response handlers, error handlers and URL sources."""
import hashlib
import logging
import os
import shutil
import sys
from typing import Iterator

from urllib3 import BaseHTTPResponse
from urllib3.util import parse_url

from .types import ErrorHandler, ResponseHandler


DEFAULT_SAVER_DIR = "snapshot"
DEFAULT_DUMPER_DIR = "./responses"


def print_status_handler(url: str, response: BaseHTTPResponse) -> None:
    print(f"{url} -> {response.status} {response.reason}")


def noop_error_handler(url: str, error: BaseException) -> None:
    pass


def stderr_error_handler() -> ErrorHandler:
    def handler(url: str, error: BaseException) -> None:
        print(f"ERROR: {url} -> {error}", file=sys.stderr)

    return handler


def file_urls(path: str) -> Iterator[str]:
    """Yield hostnames or URLs from ``path``, one per line.

    Blank lines and lines starting with # are skipped. Lines without an
    http:// or https:// scheme get https:// prepended.
    """
    try:
        f = open(path, "r", encoding="utf-8")
    except OSError as exc:
        logging.error("Error opening file %s: %s", path, exc)
        return
    with f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if not line.startswith(("http://", "https://")):
                line = "https://" + line
            yield line


def _write_body(response: BaseHTTPResponse, path: str) -> None:
    try:
        with open(path, "wb") as out:
            shutil.copyfileobj(response, out)
    except OSError as exc:
        raise OSError(f"failed to write response to {path}: {exc}") from exc


def response_body_saver(directory: str = "") -> ResponseHandler:
    """Save each body to <directory>/<host>, printing "<status> <host>"."""
    directory = directory or DEFAULT_SAVER_DIR
    os.makedirs(directory, exist_ok=True)

    def handler(url: str, response: BaseHTTPResponse) -> None:
        host = parse_url(url).netloc
        if not host:
            raise ValueError(f"failed to parse URL {url}: no host")
        _write_body(response, os.path.join(directory, host))
        print(f"{response.status} {host}")

    return handler


def response_file_dumper(directory: str = "") -> ResponseHandler:
    """Save each body to <directory>/<sha256(url)[:8 bytes]>.html."""
    directory = directory or DEFAULT_DUMPER_DIR
    os.makedirs(directory, exist_ok=True)

    def handler(url: str, response: BaseHTTPResponse) -> None:
        name = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16] + ".html"
        path = os.path.join(directory, name)
        _write_body(response, path)
        print(f"{url} -> {response.status} {response.reason} (saved to {path})")

    return handler
