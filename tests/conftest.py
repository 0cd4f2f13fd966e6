import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class RecordingServer:
    def __init__(self):
        self.lock = threading.Lock()
        self.requests = []
        self.user_agent_body = b""
        self.user_agent_status = 200
        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), self._handler_class())
        self.httpd.daemon_threads = True
        self.url = f"http://127.0.0.1:{self.httpd.server_port}"

    @property
    def count(self) -> int:
        with self.lock:
            return len(self.requests)

    def _handler_class(self):
        server = self

        class Handler(BaseHTTPRequestHandler):
            def log_message(self, format, *args):
                pass

            def _reply(self, status, body=b"OK", headers=None):
                self.send_response(status)
                for k, v in (headers or {}).items():
                    self.send_header(k, v)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def do_GET(self):
                length = int(self.headers.get("Content-Length") or 0)
                if length:
                    self.rfile.read(length)
                with server.lock:
                    server.requests.append((self.command, self.path, dict(self.headers)))
                if self.path == "/slow":
                    time.sleep(0.1)
                    self._reply(200)
                elif self.path.startswith("/redirect/"):
                    n = int(self.path.rsplit("/", 1)[1])
                    if n <= 0:
                        self._reply(200, b"done")
                    else:
                        self._reply(302, b"", {"Location": f"/redirect/{n - 1}"})
                elif self.path.startswith("/status/"):
                    self._reply(int(self.path.rsplit("/", 1)[1]), b"status")
                elif self.path == "/ua":
                    self._reply(server.user_agent_status, server.user_agent_body)
                else:
                    self._reply(200)

            do_POST = do_GET

        return Handler

    def start(self):
        threading.Thread(target=self.httpd.serve_forever, daemon=True).start()

    def stop(self):
        self.httpd.shutdown()
        self.httpd.server_close()


@pytest.fixture
def server():
    s = RecordingServer()
    s.start()
    yield s
    s.stop()
