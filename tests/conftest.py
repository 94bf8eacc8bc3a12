"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyhttpd import Application, HTTPServer, ServerConfig, ServerContext, Stats
from tinyhttpd.app import build_router


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /search?q=tiny&page=2 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /echo?source=test HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """
    A document root with a few files, plus a secret file next to it
    (outside the root) that must never be served.

        tmp_path/
            secret.txt          outside the root
            public/
                test.html       <p>hi</p>
                data.json
                notes.unknownext
                sub/page.txt
                emptydir/
    """
    root = tmp_path / "public"
    root.mkdir()
    (root / "test.html").write_bytes(b"<p>hi</p>")
    (root / "data.json").write_bytes(b'{"a": [1, 2, 3]}\n')
    (root / "notes.unknownext").write_bytes(b"\x00\x01binary")
    (root / "sub").mkdir()
    (root / "sub" / "page.txt").write_bytes(b"nested page")
    (root / "emptydir").mkdir()
    (tmp_path / "secret.txt").write_bytes(b"TOP SECRET")
    return root


@pytest.fixture
def config(doc_root: Path) -> ServerConfig:
    """Test server configuration serving doc_root."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        document_root=str(doc_root),
        timeout=5.0,
        shutdown_timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def context(config: ServerConfig) -> ServerContext:
    return ServerContext(stats=Stats(), config=config)


@pytest.fixture
def app(context: ServerContext) -> Application:
    """Application with the default routes, no sockets involved."""
    return Application(build_router(context), context)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class RunningServer:
    """Test server helper that runs HTTPServer.run() in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread = None

    @property
    def address(self):
        return self.server.address

    def start(self):
        self._thread = threading.Thread(target=self.server.run, name="test-server")
        self._thread.start()
        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes, read until the server closes, return everything."""
        with socket.create_connection(self.address, timeout=timeout) as sock:
            sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A live server on an ephemeral port."""
    server = HTTPServer(config, configure_logging=False)
    running = RunningServer(server)
    running.start()

    yield running

    running.stop()
