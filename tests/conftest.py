"""
pytest configuration and fixtures.
"""

import json
import socket
import threading
import time
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from userapi import HTTPServer, ServerConfig, UserStore, create_app
from userapi.http import HTTPRequest, HTTPResponse, ResponseBuilder


def make_request(
    method: str,
    path: str,
    body: Optional[object] = None,
    headers: Optional[dict] = None,
    client_ip: str = "127.0.0.1",
) -> HTTPRequest:
    """
    Build a request as the parser would.

    ``body`` may be bytes, a str, or a dict/list (sent as JSON with the
    matching Content-Type).
    """
    path, _, query = path.partition("?")
    request_headers = {k.lower(): v for k, v in (headers or {}).items()}

    if isinstance(body, (dict, list)):
        raw = json.dumps(body).encode()
        request_headers.setdefault("content-type", "application/json")
    elif isinstance(body, str):
        raw = body.encode()
    else:
        raw = body or b""

    if raw:
        request_headers["content-length"] = str(len(raw))

    return HTTPRequest(
        method=method,
        path=path,
        headers=request_headers,
        query_string=query,
        body=raw,
        client_address=(client_ip, 50000),
    )


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "Ann", "age": 30}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def config() -> ServerConfig:
    """Test configuration: localhost, small pool, quiet logs."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def store() -> UserStore:
    return UserStore()


@pytest.fixture
def app(config: ServerConfig, store: UserStore) -> HTTPServer:
    """The full application, driven in-process through ``app.handle``."""
    return create_app(config, store)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class despite the name

    def __init__(self, server: HTTPServer, port: int):
        self.server = server
        self.port = port
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"port": self.port, "configure_logging": False},
            daemon=True
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

        # Wait for the accept loop to take connections
        for _ in range(50):
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                    s.connect(('127.0.0.1', self.port))
                    return
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.stop()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(free_port: int, config: ServerConfig) -> Generator[TestServer, None, None]:
    """The full application listening on a real socket."""
    server = create_app(config)

    test_srv = TestServer(server, free_port)
    test_srv.start()

    yield test_srv

    test_srv.stop()
