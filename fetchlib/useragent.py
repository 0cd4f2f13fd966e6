"""User-Agent acquisition and the Sec-Ch-Ua client hint derived from it."""
import logging
import re
from typing import Optional

import urllib3
from urllib3 import exceptions as urllib3_exc

from .context import Context


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
)
DEFAULT_USER_AGENT_ENDPOINT = "https://api.sansec.io/v1/useragent/latest"
DEFAULT_CHROME_VERSION = "144"
USER_AGENT_FETCH_TIMEOUT = 5.0

_CHROME_VERSION_RE = re.compile(r"Chrome/(\d+)\.")


def fetch_user_agent(
    context: Context,
    http: Optional[urllib3.PoolManager] = None,
    endpoint: str = DEFAULT_USER_AGENT_ENDPOINT,
) -> str:
    """Fetch the latest browser User-Agent, falling back to DEFAULT_USER_AGENT."""
    timeout = USER_AGENT_FETCH_TIMEOUT
    remaining = context.remaining()
    if remaining is not None:
        timeout = min(timeout, remaining)
    if context.done() or timeout <= 0:
        return DEFAULT_USER_AGENT
    try:
        if http is not None:
            response = http.request("GET", endpoint, timeout=timeout, retries=False)
        else:
            with urllib3.PoolManager() as pool:
                response = pool.request("GET", endpoint, timeout=timeout, retries=False)
    except urllib3_exc.HTTPError as exc:
        logging.debug("User-Agent lookup failed, using default: %s", exc)
        return DEFAULT_USER_AGENT
    if response.status != 200:
        logging.debug("User-Agent lookup returned %d, using default", response.status)
        return DEFAULT_USER_AGENT
    user_agent = (response.data or b"").decode("utf-8", errors="ignore").strip()
    return user_agent or DEFAULT_USER_AGENT


def resolve_user_agent(
    explicit: Optional[str],
    context: Context,
    http: Optional[urllib3.PoolManager] = None,
    endpoint: str = DEFAULT_USER_AGENT_ENDPOINT,
) -> str:
    if explicit:
        return explicit
    return fetch_user_agent(context, http=http, endpoint=endpoint)


def extract_chrome_version(user_agent: str) -> str:
    # "Chrome/144.0.0.0" -> "144"
    match = _CHROME_VERSION_RE.search(user_agent)
    if match:
        return match.group(1)
    return DEFAULT_CHROME_VERSION


def generate_sec_ch_ua(user_agent: str) -> str:
    version = extract_chrome_version(user_agent)
    return f'"Chromium";v="{version}", "Google Chrome";v="{version}", "Not_A Brand";v="99"'
