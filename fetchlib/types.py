from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from urllib3 import BaseHTTPResponse, HTTPHeaderDict

from .context import Context


@dataclass
class Request:
    method: str
    url: str
    headers: HTTPHeaderDict = field(default_factory=HTTPHeaderDict)
    body: Optional[bytes] = None
    context: Optional[Context] = None

    def __post_init__(self):
        # Builders may pass a plain dict; lookups and redirects need case-insensitivity.
        if not isinstance(self.headers, HTTPHeaderDict):
            self.headers = HTTPHeaderDict(self.headers or {})


class RequestBuilder(Protocol):
    def __call__(self, context: Context, url: str) -> Request: ...


class ResponseHandler(Protocol):
    def __call__(self, url: str, response: BaseHTTPResponse) -> None: ...


class ErrorHandler(Protocol):
    def __call__(self, url: str, error: BaseException) -> None: ...


class RedirectPolicy(Protocol):
    """Returns True to follow the pending hop, False to stop at the last response."""

    def __call__(self, pending: Request, via: List[Request]) -> bool: ...
