import pytest

from fetchlib.context import background
from fetchlib.errors import RequestBuildError
from fetchlib.pipeline import BROWSER_HEADERS, default_request_builder, prepare_request
from fetchlib.types import Request


UA = "Mozilla/5.0 Chrome/144.0.0.0 Safari/537.36"
SEC_CH_UA = '"Chromium";v="144", "Google Chrome";v="144", "Not_A Brand";v="99"'


def test_default_request_builder():
    ctx = background()
    req = default_request_builder(ctx, "https://example.com")
    assert req.method == "GET"
    assert req.url == "https://example.com"
    assert req.body is None
    assert req.context is ctx


def test_prepare_fills_browser_headers():
    req = prepare_request(default_request_builder, background(), "https://example.com", UA, SEC_CH_UA)
    assert req.headers["User-Agent"] == UA
    assert req.headers["Sec-Ch-Ua"] == SEC_CH_UA
    for name, value in BROWSER_HEADERS.items():
        assert req.headers[name] == value


def test_builder_headers_win_except_user_agent():
    def builder(ctx, url):
        req = Request("POST", url, body=b'{"key": "value"}', context=ctx)
        req.headers["accept"] = "application/json"
        req.headers["User-Agent"] = "my-tool/1.0"
        req.headers["Referer"] = ""
        return req

    req = prepare_request(builder, background(), "https://httpbin.org/post", UA, SEC_CH_UA)
    assert req.headers["Accept"] == "application/json"
    assert req.headers["User-Agent"] == UA
    assert req.headers["Referer"] == "https://www.google.com/"
    assert req.method == "POST"


def test_builder_error_wrapped():
    def builder(ctx, url):
        raise ValueError("bad url")

    with pytest.raises(RequestBuildError) as info:
        prepare_request(builder, background(), "::nope::", UA, SEC_CH_UA)
    assert isinstance(info.value.__cause__, ValueError)


def test_request_gets_context_when_builder_omits_it():
    ctx = background()
    req = prepare_request(lambda c, u: Request("GET", u), ctx, "https://example.com", UA, SEC_CH_UA)
    assert req.context is ctx


def test_plain_dict_headers_are_case_insensitive():
    def builder(ctx, url):
        return Request("GET", url, headers={"accept": "application/json", "X-Token": "abc"}, context=ctx)

    req = prepare_request(builder, background(), "https://example.com", UA, SEC_CH_UA)
    assert req.headers["Accept"] == "application/json"
    assert req.headers["x-token"] == "abc"
    assert len(req.headers.getlist("accept")) == 1
