"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest

from sth.core.context import OperationContext
from sth.core.models.resolved import PlatformInfo


@pytest.fixture
def linux_amd64() -> PlatformInfo:
    """A typical Ubuntu x86_64 host."""
    return PlatformInfo(os="linux", arch="amd64", distro="ubuntu", family="debian")


@pytest.fixture
def ctx() -> OperationContext:
    return OperationContext.background()


@pytest.fixture
def sth_root(tmp_path: Path) -> Path:
    """Return an empty install root for one test."""
    root = tmp_path / "root"
    root.mkdir()
    return root


class LocalServer:
    """Serves canned responses: ``routes[path] = (status, body)``.

    ``delay`` holds every response back that many seconds.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes]] = {}
        self.delay = 0.0
        self.requests: list[tuple[str, dict[str, str]]] = []
        server = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                server.requests.append((self.path, {k.lower(): v for k, v in self.headers.items()}))
                if server.delay:
                    time.sleep(server.delay)
                status, body = server.routes.get(self.path, (404, b"not found"))
                self.send_response(status)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format: str, *args: object) -> None:
                pass

        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    def url(self, path: str) -> str:
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}{path}"


@pytest.fixture
def http_server():
    """A local HTTP server running for the duration of one test."""
    server = LocalServer()
    server.thread.start()
    try:
        yield server
    finally:
        server.httpd.shutdown()
        server.httpd.server_close()
