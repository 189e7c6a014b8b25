"""
pytest configuration and fixtures.
"""

import socket
import threading
from dataclasses import dataclass
from typing import Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from statichttp import StaticServer, ServerConfig


# Bytes that are not valid UTF-8 and contain every byte value once
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 20

INDEX_HTML = b"<html><body>index</body></html>\n"
DOCS_INDEX_HTML = b"<html><body>docs</body></html>\n"
STYLE_CSS = b"body { color: black; }\n"

ERROR_PAGES = {
    "400.html": b"<h1>400 Bad Request</h1>\n",
    "404.html": b"<h1>404 Not Found</h1>\n",
    "405.html": b"<h1>405 Method Not Allowed</h1>\n",
    "415.html": b"<h1>415 Unsupported Media Type</h1>\n",
}


@dataclass
class Site:
    """A temporary document root and error page directory."""
    root: Path
    errors: Path


@pytest.fixture
def site(tmp_path: Path) -> Site:
    """
    public/
        index.html
        a.png
        style.css
        data.xyz
        docs/index.html
        sub/              (directory without index.html)
    err/
        400.html 404.html 405.html 415.html
    """
    root = tmp_path / "public"
    errors = tmp_path / "err"
    root.mkdir()
    errors.mkdir()

    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "a.png").write_bytes(PNG_BYTES)
    (root / "style.css").write_bytes(STYLE_CSS)
    (root / "data.xyz").write_bytes(b"not served\n")
    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_bytes(DOCS_INDEX_HTML)
    (root / "sub").mkdir()

    # Outside the root, for traversal tests
    (tmp_path / "secret.html").write_bytes(b"secret\n")

    for name, content in ERROR_PAGES.items():
        (errors / name).write_bytes(content)

    return Site(root=root, errors=errors)


@pytest.fixture
def config(site: Site) -> ServerConfig:
    """Test server configuration over the temporary site."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=2.0,
        root_dir=str(site.root),
        error_dir=str(site.errors),
        log_level="WARNING",
    )


class RunningServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: StaticServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.server_address

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


def start_server(config: ServerConfig) -> RunningServer:
    running = RunningServer(StaticServer(config))
    running.start()
    return running


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A server over the temporary site, serial mode."""
    running = start_server(config)

    yield running

    running.stop()


@dataclass
class RawResponse:
    """A response as read off the wire."""
    status_line: str
    headers: dict
    body: bytes
    raw: bytes

    @property
    def status(self) -> int:
        return int(self.status_line.split()[1])


def exchange(address: Tuple[str, int], payload: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes, half-close, and read until the server closes."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(payload)
        sock.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)

    return b"".join(chunks)


def split_response(raw: bytes) -> RawResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")

    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()

    return RawResponse(status_line=lines[0], headers=headers, body=body, raw=raw)


def fetch(address: Tuple[str, int], payload: bytes, timeout: float = 5.0) -> RawResponse:
    """Send a raw request and parse the response."""
    return split_response(exchange(address, payload, timeout))
