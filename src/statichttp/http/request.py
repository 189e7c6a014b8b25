"""
=============================================================================
REQUEST LINE PARSING
=============================================================================

Turns the raw bytes read from a client socket into an HTTPRequest.

Only the request line is consulted. Headers, the HTTP version and any
body are read off the wire (they sit in the same buffer) but ignored.

=============================================================================
WHAT WE LOOK AT
=============================================================================

    GET /images/logo.png HTTP/1.1\r\n      ◄── request line (parsed)
    Host: localhost:8080\r\n               ◄── ignored
    Accept: */*\r\n                        ◄── ignored
    \r\n

    "GET /images/logo.png HTTP/1.1"
     ─┬─ ───────┬──────── ────┬───
      │         │             │
    method    target       version (ignored)

Tokens are separated by any run of whitespace. The method is truncated
to 15 characters; an over-long method is not a parse error because it
can never equal "GET" and is rejected later with 405.

=============================================================================
FAILURE MODES
=============================================================================

    b""                          → MalformedRequest (empty)
    b"\xff\xfe / HTTP/1.1"       → MalformedRequest (not UTF-8)
    b"GET\r\n"                   → MalformedRequest (no target)
    4096+ bytes, no line break   → RequestTooLarge

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional

from .errors import MalformedRequest, RequestTooLarge


# Receive limit for one request, matching the classic 4 KB line buffer
DEFAULT_MAX_REQUEST_SIZE = 4096

# Longest method token kept; longer ones are cut, not rejected
DEFAULT_MAX_METHOD_LENGTH = 15


@dataclass
class HTTPRequest:
    """
    A parsed request line.

    Created by the parser, consumed by the handler, discarded once the
    response has been sent. Nothing about a request outlives its
    connection.
    """

    method: str
    target: str
    client_address: Optional[tuple[str, int]] = None

    @property
    def client_ip(self) -> str:
        """Client IP for logging, "-" when unknown."""
        if self.client_address:
            return self.client_address[0]
        return "-"


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

        Raw bytes
            │
            ▼
        1. Size check          too large?  → RequestTooLarge
            │
            ▼
        2. Cut request line    up to the first \\n
            │
            ▼
        3. Decode UTF-8        invalid?    → MalformedRequest
            │
            ▼
        4. Split tokens        fewer than two? → MalformedRequest
            │
            ▼
        HTTPRequest(method[:15], target)
    """

    def __init__(
        self,
        max_request_size: int = DEFAULT_MAX_REQUEST_SIZE,
        max_method_length: int = DEFAULT_MAX_METHOD_LENGTH,
    ):
        """
        Args:
            max_request_size: Largest buffer accepted, in bytes.
            max_method_length: Method tokens are truncated to this length.
        """
        self.max_request_size = max_request_size
        self.max_method_length = max_method_length

    def parse(
        self,
        data: bytes,
        client_address: Optional[tuple[str, int]] = None,
    ) -> HTTPRequest:
        """
        Parse the request line out of a receive buffer.

        Args:
            data: Bytes read from the socket.
            client_address: Client's (ip, port) tuple, kept for logging.

        Returns:
            The parsed request.

        Raises:
            RequestTooLarge: If data exceeds max_request_size.
            MalformedRequest: If data is empty, not UTF-8, or lacks a
                              method and a target.
        """
        if len(data) > self.max_request_size:
            raise RequestTooLarge(f"Request too large: {len(data)} bytes")

        # Tolerate stray blank lines before the request line (RFC 9112 2.2)
        request_line = data.lstrip(b"\r\n").split(b"\n", 1)[0]

        # bytes.split() breaks on ASCII whitespace only, so control
        # characters and NBSP stay inside the target
        raw_tokens = request_line.split()
        if not raw_tokens:
            raise MalformedRequest("Empty request")
        if len(raw_tokens) < 2:
            raise MalformedRequest(f"Invalid request line: {request_line.strip()!r}")

        try:
            tokens = [token.decode("utf-8") for token in raw_tokens[:2]]
        except UnicodeDecodeError as e:
            raise MalformedRequest(f"Failed to decode request line: {e}") from None

        return HTTPRequest(
            method=tokens[0][:self.max_method_length],
            target=tokens[1],
            client_address=client_address,
        )


def parse_request(
    data: bytes,
    client_address: Optional[tuple[str, int]] = None,
) -> HTTPRequest:
    """
    Convenience function to parse a request with default limits.

    Use RequestParser directly to change the size or method limits.
    """
    return RequestParser().parse(data, client_address)
