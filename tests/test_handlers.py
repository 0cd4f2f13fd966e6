import hashlib
import io

from urllib3 import HTTPResponse

from fetchlib.handlers import (
    file_urls,
    noop_error_handler,
    print_status_handler,
    response_body_saver,
    response_file_dumper,
    stderr_error_handler,
)


def make_response(body: bytes = b"test content", status: int = 200) -> HTTPResponse:
    return HTTPResponse(body=io.BytesIO(body), status=status, reason="OK", preload_content=False)


def test_file_urls(tmp_path):
    path = tmp_path / "urls.txt"
    path.write_text(
        "https://example.com\n"
        "# This is a comment\n"
        "google.com\n"
        "\n"
        "   http://httpbin.org/status/200  \n"
    )
    assert list(file_urls(str(path))) == [
        "https://example.com",
        "https://google.com",
        "http://httpbin.org/status/200",
    ]


def test_file_urls_missing_file(tmp_path, caplog):
    assert list(file_urls(str(tmp_path / "nope.txt"))) == []
    assert "Error opening file" in caplog.text


def test_print_status_handler(capsys):
    print_status_handler("https://example.com", make_response())
    out = capsys.readouterr().out
    assert "https://example.com" in out
    assert "200" in out


def test_stderr_error_handler(capsys):
    stderr_error_handler()("https://example.com", RuntimeError("test error"))
    err = capsys.readouterr().err
    assert err == "ERROR: https://example.com -> test error\n"


def test_noop_error_handler(capsys):
    noop_error_handler("https://example.com", RuntimeError("ignored"))
    captured = capsys.readouterr()
    assert captured.out == "" and captured.err == ""


def test_response_body_saver(tmp_path, capsys):
    target = tmp_path / "snap"
    handler = response_body_saver(str(target))
    assert target.is_dir()
    handler("https://example.com/test", make_response())
    assert (target / "example.com").read_bytes() == b"test content"
    assert capsys.readouterr().out == "200 example.com\n"


def test_response_file_dumper(tmp_path):
    handler = response_file_dumper(str(tmp_path / "dump"))
    url = "https://example.com/page?id=1"
    handler(url, make_response(b"<html></html>"))
    name = hashlib.sha256(url.encode()).hexdigest()[:16] + ".html"
    assert (tmp_path / "dump" / name).read_bytes() == b"<html></html>"
