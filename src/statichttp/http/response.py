"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Every response this server sends has the same shape:

    HTTP/1.1 200 OK\r\n                   ← Status line
    Content-Type: image/png\r\n
    Content-Length: 5120\r\n              ← Exact size of the file
    Connection: close\r\n                 ← Always; no keep-alive offered
    \r\n                                  ← Empty line ends the header
    <5120 bytes of file>                  ← Body, streamed from disk

The header block is rendered into bytes in one go and sent before the
body. The body is NOT held in memory: HTTPResponse carries an open file
handle and the transfer layer streams it to the socket.

=============================================================================
HEADER LIMIT
=============================================================================

The rendered header must fit in the shared 4096-byte buffer limit. With
fixed status lines and a short MIME table it always does, but a header
that would not fit raises ResponseHeaderTooLarge, which is fatal to that
connection only.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import BinaryIO, Dict, Optional

from .errors import ResponseHeaderTooLarge
from .status_codes import HTTPStatus


DEFAULT_HEADER_LIMIT = 4096


def render_header(
    status_code: int,
    reason: str,
    content_type: str,
    content_length: int,
    max_size: int = DEFAULT_HEADER_LIMIT,
) -> bytes:
    """
    Render a complete header block, terminating empty line included.

    Args:
        status_code: Numeric status (e.g. 404).
        reason: Reason phrase (e.g. "Not Found").
        content_type: Value of the Content-Type header.
        content_length: Body size in bytes.
        max_size: Largest header block allowed, in bytes.

    Returns:
        The header as ASCII bytes.

    Raises:
        ResponseHeaderTooLarge: If the header exceeds max_size.

    Example:
        >>> render_header(200, "OK", "text/css", 12)
        b'HTTP/1.1 200 OK\\r\\nContent-Type: text/css\\r\\nContent-Length: 12\\r\\nConnection: close\\r\\n\\r\\n'
    """
    header = (
        f"HTTP/1.1 {status_code} {reason}\r\n"
        f"Content-Type: {content_type}\r\n"
        f"Content-Length: {content_length}\r\n"
        f"Connection: close\r\n"
        f"\r\n"
    ).encode("latin-1")

    if len(header) > max_size:
        raise ResponseHeaderTooLarge(
            f"Header is {len(header)} bytes, limit is {max_size}"
        )

    return header


@dataclass
class HTTPResponse:
    """
    A response waiting to be sent.

        Handler returns          header_bytes()          Transfer streams
        HTTPResponse    ─────►   renders header  ─────►  body from file
            │
        HTTPResponse(
          status=200,
          content_type="image/png",
          content_length=5120,
          body=<open file>,
        )

    The response owns its body handle; call close() (or use it as a
    context manager) once the body has been sent or abandoned.
    """

    status: HTTPStatus = HTTPStatus.OK
    content_type: str = "text/html"
    content_length: int = 0
    body: Optional[BinaryIO] = None
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Length": str(self.content_length),
            "Connection": "close",
        }

    def header_bytes(self, max_size: int = DEFAULT_HEADER_LIMIT) -> bytes:
        """Render the status line and headers for sending."""
        return render_header(
            int(self.status),
            self.status.phrase,
            self.content_type,
            self.content_length,
            max_size=max_size,
        )

    def close(self):
        """Close the body handle, if any. Safe to call twice."""
        if self.body is not None:
            self.body.close()
            self.body = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class ResponseBuilder:
    """
    Fluent builder for file-backed responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("image/png")
            .file(open(path, "rb"))
            .build())

    file() takes the Content-Length from fstat() of the open handle, so
    the length always matches what the transfer will send, even when the
    path was replaced after being resolved.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._content_type = "text/html"
        self._content_length = 0
        self._body: Optional[BinaryIO] = None

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        self._content_type = content_type
        return self

    def content_length(self, length: int) -> "ResponseBuilder":
        self._content_length = length
        return self

    def file(self, handle: BinaryIO) -> "ResponseBuilder":
        """Attach an open binary file as the body."""
        self._body = handle
        self._content_length = os.fstat(handle.fileno()).st_size
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            content_type=self._content_type,
            content_length=self._content_length,
            body=self._body,
        )
