"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for exactly one request/response
exchange:

    accept() ──► Connection ──► read_request() ──► send_response()
                                                ──► send_body()
                                                ──► close()

There is no keep-alive. Every response carries "Connection: close" and
the socket is closed right after the body.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

A single recv() may return half a request line:

    Client sends:  "GET /index.html HTTP/1.1\r\n"
    recv() #1  →   "GET /ind"
    recv() #2  →   "ex.html HTTP/1.1\r\n"

So read_request() keeps reading until it has seen the end of the request
line, the client stops sending, or the buffer limit is reached. Headers
that arrive in the same chunks ride along and are ignored by the parser.

=============================================================================
WHY THE CLOSE SEQUENCE MATTERS
=============================================================================

We never read the request headers. If we close() while unread bytes sit
in the kernel receive buffer, Linux answers with RST instead of FIN, and
the client may lose the response it has not read yet. close() therefore
does shutdown(SHUT_WR) first, drains what is left, then closes.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import uuid

from ..http.errors import RequestTooLarge
from .transfer import Transfer


logger = logging.getLogger(__name__)

# Longest time close() spends discarding unread input
DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Useful in logs and when debugging a stuck server.
    """
    NEW = "new"                # Just accepted
    READING = "reading"        # Waiting for the request line
    PROCESSING = "processing"  # Handler is resolving the target
    WRITING = "writing"        # Sending header or body
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log correlation.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        bytes_sent: Header and body bytes written so far.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    bytes_sent: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 4096
    timeout: Optional[float] = 30.0

    def __post_init__(self):
        # None = blocking forever, as a plain socket would
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read until the request line is complete.

        Stops when any of these happens:
        - the line feed ending the request line has been received (blank
          lines in front of it are skipped, even across reads)
        - the client closed its side or reset the connection
        - the receive timeout expired

        Returns:
            The bytes received, possibly empty. The parser decides whether
            they form a usable request.

        Raises:
            RequestTooLarge: If buffer_size bytes arrived without a line
                             terminator.
        """
        self.state = ConnectionState.READING
        buffer = b""

        try:
            while b"\n" not in buffer.lstrip(b"\r\n"):
                if len(buffer) >= self.buffer_size:
                    raise RequestTooLarge(
                        f"Request line exceeds {self.buffer_size} bytes"
                    )

                chunk = self.socket.recv(self.buffer_size - len(buffer))
                if not chunk:
                    break  # Client closed its side

                buffer += chunk

        except socket.timeout:
            logger.debug(f"[{self.id}] Receive timeout after {len(buffer)} bytes")
        except (ConnectionResetError, BrokenPipeError):
            logger.debug(f"[{self.id}] Connection reset while reading")

        self.state = ConnectionState.PROCESSING
        return buffer

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send header bytes to the client.

        Uses sendall() so the whole block goes out or an error is raised;
        plain send() may write only part of it.

        Returns:
            True if sent, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            self.bytes_sent += len(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def send_body(self, transfer: Transfer, file: BinaryIO, count: int) -> bool:
        """
        Stream `count` bytes of an open file to the client.

        Returns:
            True if the transfer finished, False if the connection was lost.
            A partial body is not retried.
        """
        self.state = ConnectionState.WRITING

        try:
            self.bytes_sent += transfer.send(self.socket, file, count)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Body transfer failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): FIN to the client, which sees end of body
        2. Drain unread input (headers we never parsed) for a moment
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        # Bounded by wall time, so a client that keeps sending cannot hold us
        deadline = time.monotonic() + DRAIN_TIMEOUT
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(1024):
                    break
        except OSError:
            pass  # Timeout or reset, we are closing anyway

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
