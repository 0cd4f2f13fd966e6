from typing import Dict

from urllib3.util import parse_url

from .context import Context
from .errors import RequestBuildError
from .types import Request, RequestBuilder


# Navigation headers a desktop Chrome on macOS sends. Sec-Ch-Ua is derived per
# engine from the resolved User-Agent and filled in separately.
BROWSER_HEADERS: Dict[str, str] = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
        "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": "en-GB,en-US;q=0.9,en;q=0.8,nl;q=0.7,sv;q=0.6",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Priority": "u=0, i",
    "Referer": "https://www.google.com/",
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"macOS"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "same-origin",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


def default_request_builder(context: Context, url: str) -> Request:
    """Plain GET with no body. Raises LocationParseError for unparsable URLs."""
    parse_url(url)
    return Request("GET", url, context=context)


def apply_browser_headers(request: Request, user_agent: str, sec_ch_ua: str) -> None:
    request.headers["User-Agent"] = user_agent
    defaults = dict(BROWSER_HEADERS, **{"Sec-Ch-Ua": sec_ch_ua})
    for name, value in defaults.items():
        if not request.headers.get(name):
            request.headers[name] = value


def prepare_request(
    builder: RequestBuilder,
    context: Context,
    url: str,
    user_agent: str,
    sec_ch_ua: str,
) -> Request:
    try:
        request = builder(context, url)
    except Exception as exc:
        raise RequestBuildError(f"building request for {url}: {exc}") from exc
    if request.context is None:
        request.context = context
    apply_browser_headers(request, user_agent, sec_ch_ua)
    return request
