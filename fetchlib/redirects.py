import logging
from typing import List, Optional

import tldextract
from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

from .types import RedirectPolicy, Request


DEFAULT_MAX_REDIRECTS = 3
SAME_DOMAIN_MAX_REDIRECTS = 3

# Bundled public suffix snapshot only; never fetch the list at runtime.
_extract = tldextract.TLDExtract(suffix_list_urls=())


def registrable_domain(url: str) -> Optional[str]:
    """Public suffix plus one label for the URL's host, or None."""
    try:
        host = parse_url(url).host
    except LocationParseError:
        return None
    if not host:
        return None
    ext = _extract(host.lower())
    if not ext.domain or not ext.suffix:
        return None
    return f"{ext.domain}.{ext.suffix}"


def max_redirects_policy(max_redirects: int) -> RedirectPolicy:
    def policy(pending: Request, via: List[Request]) -> bool:
        return len(via) < max_redirects

    return policy


def same_domain_policy() -> RedirectPolicy:
    """Follow up to three redirects that stay on the first request's registrable domain.

    example.com and www.example.com share a domain; example.com and other.com
    do not.
    """

    def policy(pending: Request, via: List[Request]) -> bool:
        if len(via) >= SAME_DOMAIN_MAX_REDIRECTS:
            return False
        if not via:
            return True
        original = registrable_domain(via[0].url)
        current = registrable_domain(pending.url)
        if original is None or current is None:
            logging.debug("Cannot determine domain for redirect %s -> %s", via[0].url, pending.url)
            return False
        return original == current

    return policy
