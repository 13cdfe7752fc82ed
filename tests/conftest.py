"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional

import pytest

from userservice import HTTPServer, ServerConfig, create_app
from userservice.http import HTTPRequest, parse_request
from userservice.users import InMemoryUserStore


def _build_request(
    method: str,
    path: str,
    body: Optional[bytes] = None,
    headers: Optional[dict] = None,
) -> HTTPRequest:
    """Build a parsed request the way the server would from raw bytes."""
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if body is not None:
        lines.append("Content-Type: application/json")
        lines.append(f"Content-Length: {len(body)}")
    raw = ("\r\n".join(lines) + "\r\n\r\n").encode() + (body or b"")
    return parse_request(raw, ("127.0.0.1", 54321))


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /users/3f2b8c1e-9a4d-4e6f-b1c2-7d8e9f0a1b2c?verbose=1&fields=name HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def app(store: InMemoryUserStore) -> HTTPServer:
    """The full service with an inspectable store, never bound to a socket."""
    return create_app(ServerConfig(log_level="WARNING"), store=store)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class BackgroundServer:
    """Runs a server in a daemon thread for socket-level tests."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False, "banner": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=15.0)


@pytest.fixture
def running_server(free_port: int, store: InMemoryUserStore) -> Generator[BackgroundServer, None, None]:
    """The user service listening on a free local port."""
    server = create_app(
        ServerConfig(
            host="127.0.0.1",
            port=free_port,
            min_workers=2,
            max_workers=4,
            timeout=5.0,
            keep_alive_timeout=1.0,
            log_level="WARNING",
        ),
        store=store,
    )

    background = BackgroundServer(server)
    background.start()

    yield background

    background.stop()


@pytest.fixture
def make_request():
    """Factory: make_request("POST", "/users", body=b'{...}') → HTTPRequest."""
    return _build_request
