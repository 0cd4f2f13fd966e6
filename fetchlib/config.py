from dataclasses import dataclass, replace
from typing import Optional

import urllib3

from .handlers import noop_error_handler, print_status_handler
from .pipeline import default_request_builder
from .redirects import DEFAULT_MAX_REDIRECTS, max_redirects_policy
from .types import ErrorHandler, RedirectPolicy, RequestBuilder, ResponseHandler
from .useragent import DEFAULT_USER_AGENT_ENDPOINT


DEFAULT_WORKER_COUNT = 10


@dataclass(frozen=True)
class FetchConfig:
    worker_count: int = DEFAULT_WORKER_COUNT
    request_builder: Optional[RequestBuilder] = None
    response_handler: Optional[ResponseHandler] = None
    error_handler: Optional[ErrorHandler] = None
    # Empty means: ask user_agent_endpoint once per Fetcher.
    user_agent: str = ""
    redirect_policy: Optional[RedirectPolicy] = None
    http: Optional[urllib3.PoolManager] = None
    request_timeout: float = 30.0
    # Connect/read/5xx retries; 0 sends each request exactly once.
    max_retries: int = 0
    # Certificates are not verified unless this is turned off.
    insecure_skip_verify: bool = True
    user_agent_endpoint: str = DEFAULT_USER_AGENT_ENDPOINT
    metrics_interval: float = 0.0

    def with_defaults(self) -> "FetchConfig":
        return replace(
            self,
            worker_count=self.worker_count if self.worker_count > 0 else DEFAULT_WORKER_COUNT,
            request_builder=self.request_builder or default_request_builder,
            response_handler=self.response_handler or print_status_handler,
            error_handler=self.error_handler or noop_error_handler,
            redirect_policy=self.redirect_policy or max_redirects_policy(DEFAULT_MAX_REDIRECTS),
        )
