import logging
from typing import List, Optional
from urllib.parse import urljoin

import urllib3
from urllib3 import BaseHTTPResponse
from urllib3 import exceptions as urllib3_exc
from urllib3.util import parse_url
from urllib3.util.retry import Retry

from .context import Context
from .errors import ContextError, TransportError
from .types import RedirectPolicy, Request


# Redirect statuses that turn the follow-up request into a bodiless GET.
_REWRITE_TO_GET = (301, 302, 303)
# Not forwarded when a redirect leaves the original host.
_SENSITIVE_HEADERS = ("Authorization", "Cookie", "Proxy-Authorization")


def make_pool(worker_count: int, max_retries: int, insecure_skip_verify: bool = True) -> urllib3.PoolManager:
    kw = {}
    if insecure_skip_verify:
        kw = {"cert_reqs": "CERT_NONE", "assert_hostname": False}
    retries: Retry | bool = False
    if max_retries > 0:
        retries = Retry(
            total=max_retries,
            backoff_factor=0.3,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
            redirect=False,
        )
    return urllib3.PoolManager(
        num_pools=max(8, worker_count),
        maxsize=max(1, worker_count),
        retries=retries,
        **kw,
    )


def skip_tls_verification(http: urllib3.PoolManager) -> None:
    """Make ``http`` accept invalid and self-signed certificates."""
    http.connection_pool_kw["cert_reqs"] = "CERT_NONE"
    http.connection_pool_kw["assert_hostname"] = False
    urllib3.disable_warnings(urllib3_exc.InsecureRequestWarning)


class HttpClient:
    def __init__(
        self,
        redirect_policy: RedirectPolicy,
        request_timeout: float,
        http: Optional[urllib3.PoolManager] = None,
        worker_count: int = 10,
        max_retries: int = 0,
        insecure_skip_verify: bool = True,
    ):
        self.redirect_policy = redirect_policy
        self.request_timeout = request_timeout
        self.http = http or make_pool(worker_count, max_retries, insecure_skip_verify)
        if insecure_skip_verify:
            skip_tls_verification(self.http)

    def _timeout(self, context: Optional[Context]) -> urllib3.Timeout:
        total = self.request_timeout
        if context is not None:
            remaining = context.remaining()
            if remaining is not None:
                # urllib3 rejects non-positive timeouts
                total = max(0.001, min(total, remaining))
        return urllib3.Timeout(connect=min(5.0, total), read=total)

    def _send_once(self, request: Request) -> BaseHTTPResponse:
        if request.context is not None:
            request.context.raise_if_done()
        return self.http.request(
            request.method,
            request.url,
            body=request.body,
            headers=request.headers,
            timeout=self._timeout(request.context),
            redirect=False,
            preload_content=False,
        )

    def _next_hop(self, request: Request, response: BaseHTTPResponse, location: str) -> Request:
        method, body = request.method, request.body
        if response.status in _REWRITE_TO_GET and method != "HEAD":
            method, body = "GET", None
        url = urljoin(request.url, location)
        headers = request.headers.copy()
        if body is None:
            for name in ("Content-Type", "Content-Length"):
                headers.discard(name)
        if parse_url(url).host != parse_url(request.url).host:
            for name in _SENSITIVE_HEADERS:
                headers.discard(name)
        return Request(
            method=method,
            url=url,
            headers=headers,
            body=body,
            context=request.context,
        )

    def send(self, request: Request) -> BaseHTTPResponse:
        """Send ``request``, following redirects the policy allows.

        A vetoed hop is not an error: the redirect response itself is returned.
        The caller owns the returned response and must release it.
        """
        via: List[Request] = []
        current = request
        try:
            while True:
                response = self._send_once(current)
                location = response.get_redirect_location()
                if not location:
                    return response
                try:
                    pending = self._next_hop(current, response, location)
                    via.append(current)
                    follow = self.redirect_policy(pending, via)
                except Exception as exc:
                    response.release_conn()
                    raise TransportError(f"{current.method} {current.url}: redirect to {location!r}: {exc}") from exc
                if not follow:
                    logging.debug("Redirect %s -> %s stopped after %d hop(s)", request.url, pending.url, len(via))
                    return response
                response.drain_conn()
                response.release_conn()
                current = pending
        except urllib3_exc.HTTPError as exc:
            raise TransportError(f"{current.method} {current.url}: {exc}") from exc
        except ContextError as exc:
            raise TransportError(f"{current.method} {current.url}: {exc}") from exc
